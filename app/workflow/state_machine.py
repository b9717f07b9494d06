import os
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from app.workflow.errors import (
    EmptyFile,
    FileTooLarge,
    IllegalTransition,
    InvalidFileType,
    MissingRemarks,
)
from app.workflow.records import DocumentRecord, FileUpload, find_record
from app.workflow.session import SessionContext
from app.workflow.status import DocumentStatus, ReviewDecision, Role


ALLOWED_TYPES = frozenset({"application/pdf", "image/jpeg", "image/png"})
TYPE_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}
MAX_SIZE = 10 * 1024 * 1024

_EXTENSION_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}


class Event(str, Enum):
    upload = "upload"
    begin_review = "begin review"
    approve = "approve"
    reject = "reject"


# (from, event) -> (to, actor)
TRANSITIONS: Dict[Tuple[DocumentStatus, Event], Tuple[DocumentStatus, Role]] = {
    (DocumentStatus.pending, Event.upload): (DocumentStatus.uploaded, Role.student),
    (DocumentStatus.rejected, Event.upload): (DocumentStatus.uploaded, Role.student),
    # re-upload over an unresolved submission replaces the file, last write wins
    (DocumentStatus.uploaded, Event.upload): (DocumentStatus.uploaded, Role.student),
    (DocumentStatus.reviewing, Event.upload): (DocumentStatus.uploaded, Role.student),
    (DocumentStatus.uploaded, Event.begin_review): (DocumentStatus.reviewing, Role.admin),
    (DocumentStatus.uploaded, Event.approve): (DocumentStatus.approved, Role.admin),
    (DocumentStatus.reviewing, Event.approve): (DocumentStatus.approved, Role.admin),
    (DocumentStatus.uploaded, Event.reject): (DocumentStatus.rejected, Role.admin),
    (DocumentStatus.reviewing, Event.reject): (DocumentStatus.rejected, Role.admin),
}

_DECISION_EVENTS = {
    ReviewDecision.approve: Event.approve,
    ReviewDecision.reject: Event.reject,
}


def can_transition(current: DocumentStatus, event: Event) -> bool:
    return (DocumentStatus(current), Event(event)) in TRANSITIONS


def next_status(current: DocumentStatus, event: Event) -> DocumentStatus:
    target = TRANSITIONS.get((DocumentStatus(current), Event(event)))
    if target is None:
        raise IllegalTransition(DocumentStatus(current), Event(event).value)
    return target[0]


def actor_for(current: DocumentStatus, event: Event) -> Role:
    target = TRANSITIONS.get((DocumentStatus(current), Event(event)))
    if target is None:
        raise IllegalTransition(DocumentStatus(current), Event(event).value)
    return target[1]


def can_upload(status: DocumentStatus) -> bool:
    return can_transition(status, Event.upload)


def compute_status(student_id: str, document_type: str, records: Iterable[DocumentRecord]) -> DocumentStatus:
    record = find_record(records, student_id, document_type)
    return record.status if record else DocumentStatus.pending


# Works out the real content type when the client sent none or application/octet-stream
def resolve_content_type(upload: FileUpload) -> Optional[str]:
    content_type = (upload.content_type or "application/octet-stream").split(";")[0].strip().lower()
    content_type = TYPE_ALIASES.get(content_type, content_type)
    if content_type not in ("application/octet-stream", ""):
        return content_type

    header = upload.content[:8]
    if header.startswith(b"%PDF-"):
        return "application/pdf"
    if header.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if header.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"

    ext = os.path.splitext(upload.filename or "")[1].lower()
    return _EXTENSION_TYPES.get(ext, content_type)


def validate_file(upload: FileUpload) -> str:
    if upload.size == 0:
        raise EmptyFile()
    if upload.size > MAX_SIZE:
        raise FileTooLarge(upload.size, MAX_SIZE)
    content_type = resolve_content_type(upload)
    if content_type not in ALLOWED_TYPES:
        raise InvalidFileType(content_type, ALLOWED_TYPES)
    return content_type


def check_upload(record: DocumentRecord, upload: FileUpload, session: SessionContext, now=None) -> str:
    """Guard for the upload transition; returns the resolved content type.

    File checks run before the transition lookup.
    """
    session.require_owner(record.student_id, now)
    content_type = validate_file(upload)
    next_status(record.status, Event.upload)
    return content_type


def check_review(
    record: DocumentRecord,
    decision: ReviewDecision,
    remarks: Optional[str],
    session: SessionContext,
    now=None,
) -> Tuple[DocumentStatus, Optional[str]]:
    session.require_role(Role.admin, now)
    decision = ReviewDecision(decision)
    cleaned = (remarks or "").strip()
    if decision == ReviewDecision.reject and not cleaned:
        raise MissingRemarks()
    target = next_status(record.status, _DECISION_EVENTS[decision])
    if not record.file_url:
        raise IllegalTransition(record.status, _DECISION_EVENTS[decision].value)
    return target, (cleaned if decision == ReviewDecision.reject else None)


def check_begin_review(record: DocumentRecord, session: SessionContext, now=None) -> DocumentStatus:
    session.require_role(Role.admin, now)
    return next_status(record.status, Event.begin_review)
