from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional

from app.workflow.catalog import CopiesRequirement, DocumentCategory, RequiredDocumentSpec
from app.workflow.status import DocumentStatus, ReviewDecision


class ReviewRequest(BaseModel):
    status: ReviewDecision = Field(..., description="approved or rejected")
    remarks: Optional[str] = Field(None, description="Required when rejecting")


class CatalogCategory(BaseModel):
    id: DocumentCategory
    name: str
    documents: List[RequiredDocumentSpec]


class CatalogResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_required: int
    documents: List[RequiredDocumentSpec]
    categories: List[CatalogCategory]


class DocumentStatusView(BaseModel):
    """One catalog entry joined with the student's current record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    document_id: str
    name: str
    category: DocumentCategory
    copies: CopiesRequirement
    status: DocumentStatus
    badge: str
    can_upload: bool
    record_id: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    remarks: Optional[str] = None
