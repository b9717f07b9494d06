from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.workflow.catalog import REQUIRED_DOCUMENTS
from app.workflow.status import DocumentStatus


class DocumentRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id", description="Identifier assigned by the record store")
    student_id: str
    document_type: str
    status: DocumentStatus = DocumentStatus.pending
    file_url: Optional[str] = Field(default=None, description="Storage reference of the current file")
    file_name: Optional[str] = None
    remarks: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    @model_validator(mode="after")
    def _check_invariants(self):
        if self.status == DocumentStatus.pending and self.file_url:
            raise ValueError("a pending document cannot carry a file reference")
        if self.status != DocumentStatus.pending and not self.file_url:
            raise ValueError(f"a {self.status.value} document must carry a file reference")
        if self.status == DocumentStatus.rejected and not (self.remarks or "").strip():
            raise ValueError("a rejected document must carry remarks")
        return self

    @classmethod
    def pending(cls, student_id: str, document_type: str) -> "DocumentRecord":
        return cls(student_id=student_id, document_type=document_type)

    @property
    def is_stored(self) -> bool:
        return self.status != DocumentStatus.pending


@dataclass(frozen=True)
class FileUpload:
    filename: str
    content_type: Optional[str]
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def find_record(records: Iterable[DocumentRecord], student_id: str, document_type: str) -> Optional[DocumentRecord]:
    found = None
    for record in records:
        if record.student_id == student_id and record.document_type == document_type:
            # last write wins if a store ever hands back duplicates
            found = record
    return found


# Expands stored records to one record per catalog entry, absent ones pending
def materialize(student_id: str, records: Iterable[DocumentRecord], catalog=REQUIRED_DOCUMENTS) -> List[DocumentRecord]:
    records = list(records)
    result = []
    for spec in catalog:
        record = find_record(records, student_id, spec.id)
        result.append(record or DocumentRecord.pending(student_id, spec.id))
    return result
