from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.workflow.catalog import CATEGORY_LABELS, REQUIRED_DOCUMENTS, DocumentCategory, RequiredDocumentSpec
from app.workflow.records import DocumentRecord
from app.workflow.status import AWAITING_REVIEW_STATUSES, SUBMITTED_STATUSES, DocumentStatus, StudentStatus


class CategoryBreakdown(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: DocumentCategory
    label: str
    documents: List[RequiredDocumentSpec] = Field(default_factory=list)
    records: List[DocumentRecord] = Field(default_factory=list)


class ProgressSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_required: int
    submitted_count: int
    approved_count: int
    under_review_count: int
    rejected_count: int
    pending_count: int
    upload_progress_pct: float = Field(..., ge=0, le=100)
    approval_progress_pct: float = Field(..., ge=0, le=100)
    overall_status: StudentStatus
    categories: List[CategoryBreakdown] = Field(default_factory=list)


def percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return min(100.0, max(0.0, count / total * 100))


def overall_status(total_required: int, submitted: int, approved: int, rejected: int) -> StudentStatus:
    if total_required > 0 and approved == total_required:
        return StudentStatus.approved
    if rejected > 0:
        return StudentStatus.rejected
    if submitted > 0:
        return StudentStatus.under_review
    return StudentStatus.incomplete


def _latest_by_type(catalog: List[RequiredDocumentSpec], records: Iterable[DocumentRecord]) -> Dict[str, DocumentRecord]:
    known = {spec.id for spec in catalog}
    latest: Dict[str, DocumentRecord] = {}
    for record in records:
        if record.document_type in known and record.status != DocumentStatus.pending:
            latest[record.document_type] = record
    return latest


def aggregate(catalog: Optional[Iterable[RequiredDocumentSpec]] = None, records: Iterable[DocumentRecord] = ()) -> ProgressSummary:
    """Derive a student's progress from their stored records.

    Only records whose document type is in the catalog count, one per type.
    Pending placeholders are treated as absent. An empty catalog reports 0%.
    """
    catalog = list(REQUIRED_DOCUMENTS if catalog is None else catalog)
    by_type = _latest_by_type(catalog, records)
    statuses = [record.status for record in by_type.values()]

    total = len(catalog)
    submitted = sum(1 for status in statuses if status in SUBMITTED_STATUSES)
    approved = sum(1 for status in statuses if status == DocumentStatus.approved)
    under_review = sum(1 for status in statuses if status in AWAITING_REVIEW_STATUSES)
    rejected = sum(1 for status in statuses if status == DocumentStatus.rejected)

    categories = []
    for category in DocumentCategory:
        documents = [spec for spec in catalog if spec.category == category]
        categories.append(CategoryBreakdown(
            category=category,
            label=CATEGORY_LABELS[category],
            documents=documents,
            records=[by_type[spec.id] for spec in documents if spec.id in by_type],
        ))

    return ProgressSummary(
        total_required=total,
        submitted_count=submitted,
        approved_count=approved,
        under_review_count=under_review,
        rejected_count=rejected,
        pending_count=total - submitted,
        upload_progress_pct=percentage(submitted, total),
        approval_progress_pct=percentage(approved, total),
        overall_status=overall_status(total, submitted, approved, rejected),
        categories=categories,
    )
