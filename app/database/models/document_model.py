from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, IndexModel
from typing import Optional, Dict
from datetime import datetime

from app.workflow.records import DocumentRecord
from app.workflow.status import DocumentStatus


class StudentDocument(Document):
    student_id: str = Field(..., description="Id of the owning student user")
    document_type: str = Field(..., description="Catalog id of the required document")
    status: DocumentStatus = Field(default=DocumentStatus.uploaded)
    file_path: str = Field(..., description="Object path inside the storage bucket")
    file_name: Optional[str] = None
    file_metadata: Optional[Dict[str, str]] = None  # {content_type, size}
    remarks: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "student_documents"
        indexes = [
            IndexModel(
                [("student_id", ASCENDING), ("document_type", ASCENDING)],
                unique=True,
                name="student_document_type_unique",
            ),
        ]

    def to_record(self) -> DocumentRecord:
        return DocumentRecord(
            id=str(self.id) if self.id else None,
            student_id=self.student_id,
            document_type=self.document_type,
            status=self.status,
            file_url=self.file_path,
            file_name=self.file_name,
            remarks=self.remarks,
            uploaded_at=self.uploaded_at,
            reviewed_at=self.reviewed_at,
            reviewed_by=self.reviewed_by,
        )
