import logging
from typing import List, Optional

from fastapi import HTTPException, status

from app.services.audit_service import AuditService, audit_service
from app.services.file_storage import SupabaseFileStorage
from app.services.record_store import get_record_store
from app.workflow import actions
from app.workflow.aggregator import ProgressSummary, aggregate
from app.workflow.catalog import REQUIRED_DOCUMENTS, is_known_document_type
from app.workflow.errors import NotFound, ServerUnavailable, WorkflowError
from app.workflow.records import DocumentRecord, FileUpload, find_record, materialize
from app.workflow.session import SessionContext
from app.workflow.state_machine import can_upload
from app.workflow.status import ReviewDecision, Role, document_badge
from app.workflow.store import RecordStore

logger = logging.getLogger(__name__)


class DocumentService:
    """Runs workflow actions against a record store and keeps the audit trail.

    Stored records carry an object path; every record handed back to a caller
    gets a fresh signed URL when a file storage is configured.
    """

    def __init__(self, store: RecordStore, storage: Optional[SupabaseFileStorage] = None, audit: AuditService = audit_service):
        self.store = store
        self.storage = storage
        self.audit = audit

    async def _with_link(self, record: DocumentRecord) -> DocumentRecord:
        if not self.storage or not record.file_url:
            return record
        try:
            url = await self.storage.signed_url(record.file_url)
        except ServerUnavailable as e:
            logger.warning(f"Failed to refresh signed URL for {record.document_type}: {e.message}")
            return record
        return record.model_copy(update={"file_url": url})

    async def list_records(self, student_id: str) -> List[DocumentRecord]:
        records = await self.store.fetch_records(student_id)
        return [await self._with_link(record) for record in records]

    async def get_record(self, record_id: str) -> DocumentRecord:
        return await self._with_link(await self.store.get_record(record_id))

    async def current_record(self, student_id: str, document_type: str) -> DocumentRecord:
        records = await self.store.fetch_records(student_id)
        return find_record(records, student_id, document_type) or DocumentRecord.pending(student_id, document_type)

    # One row per catalog entry, joined with the student's current record
    async def document_statuses(self, student_id: str) -> List[dict]:
        records = await self.list_records(student_id)
        rows = []
        for spec, record in zip(REQUIRED_DOCUMENTS, materialize(student_id, records)):
            rows.append({
                "document_id": spec.id,
                "name": spec.name,
                "category": spec.category,
                "copies": spec.copies,
                "status": record.status,
                "badge": document_badge(record.status).label,
                "can_upload": can_upload(record.status),
                "record_id": record.id,
                "file_url": record.file_url,
                "file_name": record.file_name,
                "remarks": record.remarks,
            })
        return rows

    async def progress(self, student_id: str) -> ProgressSummary:
        records = await self.store.fetch_records(student_id)
        return aggregate(REQUIRED_DOCUMENTS, records)

    async def upload(self, session: SessionContext, student_id: str, document_type: str, upload: FileUpload) -> DocumentRecord:
        if not is_known_document_type(document_type):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown document type: {document_type}")

        record = await self.current_record(student_id, document_type)
        try:
            updated = await actions.apply_upload(self.store, record, upload, session)
        except WorkflowError as e:
            logger.warning(f"Upload of {document_type} for student {student_id} blocked: {e.message}")
            await self.audit.record("upload_document", session.actor, student_id, status="failed", detail=f"{document_type}: {e.code}")
            raise

        await self.audit.record("upload_document", session.actor, student_id, detail=document_type)
        return await self._with_link(updated)

    async def review(self, session: SessionContext, record_id: str, decision: ReviewDecision, remarks: Optional[str]) -> DocumentRecord:
        record = await self.store.get_record(record_id)
        try:
            updated = await actions.apply_review(self.store, record, decision, remarks, session)
        except WorkflowError as e:
            logger.warning(f"Review of document {record_id} blocked: {e.message}")
            await self.audit.record("review_document", session.actor, record_id, status="failed", detail=e.code)
            raise

        await self.audit.record("review_document", session.actor, record_id, detail=updated.status.value)
        return await self._with_link(updated)

    async def begin_review(self, session: SessionContext, record_id: str) -> DocumentRecord:
        record = await self.store.get_record(record_id)
        updated = await actions.begin_review(self.store, record, session)
        await self.audit.record("begin_review", session.actor, record_id)
        return await self._with_link(updated)

    async def remove_student_documents(self, session: SessionContext, student_id: str) -> int:
        session.require_role(Role.admin)
        try:
            return await self.store.delete_student_records(student_id)
        except NotFound:
            return 0


_service: Optional[DocumentService] = None


def get_document_service() -> DocumentService:
    global _service
    if _service is None:
        store = get_record_store()
        _service = DocumentService(store, storage=getattr(store, "storage", None))
    return _service
