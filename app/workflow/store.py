import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from app.workflow.errors import NotFound
from app.workflow.records import DocumentRecord, FileUpload
from app.workflow.session import utcnow
from app.workflow.status import DocumentStatus


class RecordStore(ABC):
    """Persistence contract for document records.

    Records are keyed by (student_id, document_type). Every call may fail with
    a TransportError; implementations never retry on their own.
    """

    @abstractmethod
    async def fetch_records(self, student_id: str) -> List[DocumentRecord]:
        ...

    @abstractmethod
    async def get_record(self, record_id: str) -> DocumentRecord:
        ...

    @abstractmethod
    async def upsert_upload(self, student_id: str, document_type: str, upload: FileUpload) -> DocumentRecord:
        """Attach `upload` as the current file and reset the record to uploaded."""

    @abstractmethod
    async def update_status(
        self,
        record_id: str,
        status: DocumentStatus,
        remarks: Optional[str] = None,
        reviewed_by: Optional[str] = None,
        reviewed_at: Optional[datetime] = None,
    ) -> DocumentRecord:
        ...

    @abstractmethod
    async def delete_student_records(self, student_id: str) -> int:
        ...


class InMemoryRecordStore(RecordStore):
    """Process-local store for development and tests. Files are kept in a dict."""

    def __init__(self):
        self._records: Dict[Tuple[str, str], DocumentRecord] = {}
        self.files: Dict[str, bytes] = {}

    async def fetch_records(self, student_id: str) -> List[DocumentRecord]:
        return [record for (owner, _), record in self._records.items() if owner == student_id]

    async def get_record(self, record_id: str) -> DocumentRecord:
        for record in self._records.values():
            if record.id == record_id:
                return record
        raise NotFound(f"Document {record_id} not found", status_code=404)

    async def upsert_upload(self, student_id: str, document_type: str, upload: FileUpload) -> DocumentRecord:
        key = (student_id, document_type)
        existing = self._records.get(key)
        if existing and existing.file_url:
            self.files.pop(existing.file_url, None)

        file_url = f"memory://{student_id}/{document_type}/{uuid.uuid4()}"
        self.files[file_url] = upload.content
        record = DocumentRecord(
            id=existing.id if existing else str(uuid.uuid4()),
            student_id=student_id,
            document_type=document_type,
            status=DocumentStatus.uploaded,
            file_url=file_url,
            file_name=upload.filename,
            uploaded_at=utcnow(),
        )
        self._records[key] = record
        return record

    async def update_status(self, record_id, status, remarks=None, reviewed_by=None, reviewed_at=None) -> DocumentRecord:
        current = await self.get_record(record_id)
        record = DocumentRecord(
            **current.model_dump(exclude={"status", "remarks", "reviewed_by", "reviewed_at"}),
            status=status,
            remarks=remarks,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
        )
        self._records[(record.student_id, record.document_type)] = record
        return record

    async def delete_student_records(self, student_id: str) -> int:
        keys = [key for key in self._records if key[0] == student_id]
        for key in keys:
            record = self._records.pop(key)
            if record.file_url:
                self.files.pop(record.file_url, None)
        return len(keys)
