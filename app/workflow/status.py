from enum import Enum
from typing import Dict, FrozenSet, NamedTuple


class DocumentStatus(str, Enum):
    pending = "pending"
    uploaded = "uploaded"
    reviewing = "reviewing"
    approved = "approved"
    rejected = "rejected"


class StudentStatus(str, Enum):
    incomplete = "incomplete"
    under_review = "under-review"
    approved = "approved"
    rejected = "rejected"


class ReviewDecision(str, Enum):
    approve = "approved"
    reject = "rejected"

    @property
    def target(self) -> DocumentStatus:
        return DocumentStatus(self.value)


class Role(str, Enum):
    student = "student"
    admin = "admin"


# Statuses that only exist once a file has been attached at least once
SUBMITTED_STATUSES: FrozenSet[DocumentStatus] = frozenset({
    DocumentStatus.uploaded,
    DocumentStatus.reviewing,
    DocumentStatus.approved,
    DocumentStatus.rejected,
})

AWAITING_REVIEW_STATUSES: FrozenSet[DocumentStatus] = frozenset({
    DocumentStatus.uploaded,
    DocumentStatus.reviewing,
})


class Badge(NamedTuple):
    label: str
    variant: str
    icon: str


DOCUMENT_BADGES: Dict[DocumentStatus, Badge] = {
    DocumentStatus.pending: Badge("Pending", "outline", "alert-triangle"),
    DocumentStatus.uploaded: Badge("Uploaded", "secondary", "upload"),
    DocumentStatus.reviewing: Badge("Reviewing", "secondary", "clock"),
    DocumentStatus.approved: Badge("Approved", "default", "check-circle"),
    DocumentStatus.rejected: Badge("Rejected", "destructive", "x-circle"),
}

STUDENT_BADGES: Dict[StudentStatus, Badge] = {
    StudentStatus.incomplete: Badge("Incomplete", "outline", "alert-triangle"),
    StudentStatus.under_review: Badge("Under review", "secondary", "clock"),
    StudentStatus.approved: Badge("Approved", "default", "check-circle"),
    StudentStatus.rejected: Badge("Rejected", "destructive", "x-circle"),
}


def _check_exhaustive(enum_cls, mapping: Dict) -> None:
    missing = [member.value for member in enum_cls if member not in mapping]
    if missing:
        raise RuntimeError(f"{enum_cls.__name__} has no badge for: {', '.join(missing)}")


# A status added without a badge fails at import, not at render time
_check_exhaustive(DocumentStatus, DOCUMENT_BADGES)
_check_exhaustive(StudentStatus, STUDENT_BADGES)


def document_badge(status) -> Badge:
    return DOCUMENT_BADGES[DocumentStatus(status)]


def student_badge(status) -> Badge:
    return STUDENT_BADGES[StudentStatus(status)]
