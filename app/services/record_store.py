import logging
from datetime import datetime
from typing import List, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.database.models import StudentDocument
from app.services.file_storage import SupabaseFileStorage, get_file_storage
from app.workflow.errors import NotFound, ServerUnavailable
from app.workflow.records import DocumentRecord, FileUpload
from app.workflow.status import DocumentStatus
from app.workflow.store import RecordStore

logger = logging.getLogger(__name__)


class BeanieRecordStore(RecordStore):
    """MongoDB-backed record store; file bytes go to Supabase Storage."""

    def __init__(self, storage: SupabaseFileStorage):
        self.storage = storage

    async def _find(self, student_id: str, document_type: str) -> Optional[StudentDocument]:
        return await StudentDocument.find_one(
            StudentDocument.student_id == student_id,
            StudentDocument.document_type == document_type,
        )

    async def _get(self, record_id: str) -> StudentDocument:
        try:
            doc = await StudentDocument.get(PydanticObjectId(record_id))
        except InvalidId:
            doc = None
        except PyMongoError as e:
            logger.error(f"Failed to load document {record_id}: {e}")
            raise ServerUnavailable(f"Document store unavailable: {e}") from e
        if doc is None:
            raise NotFound(f"Document {record_id} not found", status_code=404)
        return doc

    async def fetch_records(self, student_id: str) -> List[DocumentRecord]:
        try:
            docs = await StudentDocument.find(StudentDocument.student_id == student_id).to_list()
        except PyMongoError as e:
            logger.error(f"Failed to fetch documents for student {student_id}: {e}")
            raise ServerUnavailable(f"Document store unavailable: {e}") from e
        return [doc.to_record() for doc in docs]

    async def get_record(self, record_id: str) -> DocumentRecord:
        return (await self._get(record_id)).to_record()

    # Creates the record on first upload, otherwise replaces the file and resets the review
    async def upsert_upload(self, student_id: str, document_type: str, upload: FileUpload) -> DocumentRecord:
        file_path = await self.storage.upload(student_id, document_type, upload)
        now = datetime.utcnow()
        metadata = {"content_type": upload.content_type or "", "size": str(upload.size)}

        try:
            doc = await self._find(student_id, document_type)
            previous_path = doc.file_path if doc else None
            if doc is None:
                doc = StudentDocument(
                    student_id=student_id,
                    document_type=document_type,
                    status=DocumentStatus.uploaded,
                    file_path=file_path,
                    file_name=upload.filename,
                    file_metadata=metadata,
                    uploaded_at=now,
                    updated_at=now,
                )
                try:
                    await doc.insert()
                except DuplicateKeyError:
                    # a concurrent first upload won the insert; overwrite it
                    doc = await self._find(student_id, document_type)
                    previous_path = doc.file_path
                    self._reset_for_upload(doc, file_path, upload, metadata, now)
                    await doc.save()
            else:
                self._reset_for_upload(doc, file_path, upload, metadata, now)
                await doc.save()
        except PyMongoError as e:
            logger.error(f"Failed to save {document_type} for student {student_id}: {e}")
            await self.storage.delete_quietly(file_path)
            raise ServerUnavailable(f"Failed to save document record: {e}") from e

        if previous_path and previous_path != file_path:
            await self.storage.delete_quietly(previous_path)

        logger.info(f"Stored {document_type} for student {student_id} at {file_path}")
        return doc.to_record()

    @staticmethod
    def _reset_for_upload(doc: StudentDocument, file_path: str, upload: FileUpload, metadata, now: datetime):
        doc.status = DocumentStatus.uploaded
        doc.file_path = file_path
        doc.file_name = upload.filename
        doc.file_metadata = metadata
        doc.remarks = None
        doc.reviewed_at = None
        doc.reviewed_by = None
        doc.uploaded_at = now
        doc.updated_at = now

    async def update_status(self, record_id, status, remarks=None, reviewed_by=None, reviewed_at=None) -> DocumentRecord:
        doc = await self._get(record_id)
        # only the review fields; a concurrent re-upload keeps its file_path
        try:
            await doc.set({
                "status": DocumentStatus(status),
                "remarks": remarks,
                "reviewed_by": reviewed_by,
                "reviewed_at": reviewed_at,
                "updated_at": datetime.utcnow(),
            })
        except PyMongoError as e:
            logger.error(f"Failed to update status of document {record_id}: {e}")
            raise ServerUnavailable(f"Failed to update document: {e}") from e
        return (await self._get(record_id)).to_record()

    async def delete_student_records(self, student_id: str) -> int:
        try:
            docs = await StudentDocument.find(StudentDocument.student_id == student_id).to_list()
            for doc in docs:
                await self.storage.delete_quietly(doc.file_path)
            await StudentDocument.find(StudentDocument.student_id == student_id).delete()
        except PyMongoError as e:
            logger.error(f"Failed to delete documents for student {student_id}: {e}")
            raise ServerUnavailable(f"Failed to delete documents: {e}") from e
        logger.info(f"Deleted {len(docs)} documents for student {student_id}")
        return len(docs)


_store: Optional[BeanieRecordStore] = None


def get_record_store() -> RecordStore:
    global _store
    if _store is None:
        _store = BeanieRecordStore(get_file_storage())
    return _store
