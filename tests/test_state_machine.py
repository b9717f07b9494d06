import pytest

from app.workflow import actions
from app.workflow.errors import (
    EmptyFile,
    FileTooLarge,
    IllegalTransition,
    InvalidFileType,
    MissingRemarks,
    PermissionDenied,
)
from app.workflow.records import DocumentRecord, FileUpload
from app.workflow.state_machine import (
    MAX_SIZE,
    Event,
    actor_for,
    can_transition,
    can_upload,
    compute_status,
    next_status,
    resolve_content_type,
    validate_file,
)
from app.workflow.status import DocumentStatus, ReviewDecision, Role

from tests.conftest import JPEG_BYTES, OTHER_STUDENT_ID, PDF_BYTES, PNG_BYTES, STUDENT_ID

MIB = 1024 * 1024


async def _uploaded(store, pdf_upload, document_type="birth-certificate"):
    return await store.upsert_upload(STUDENT_ID, document_type, pdf_upload)


def test_transition_table_matches_lifecycle():
    assert next_status(DocumentStatus.pending, Event.upload) == DocumentStatus.uploaded
    assert next_status(DocumentStatus.rejected, Event.upload) == DocumentStatus.uploaded
    assert next_status(DocumentStatus.uploaded, Event.begin_review) == DocumentStatus.reviewing
    assert next_status(DocumentStatus.reviewing, Event.approve) == DocumentStatus.approved
    assert next_status(DocumentStatus.uploaded, Event.reject) == DocumentStatus.rejected
    assert actor_for(DocumentStatus.pending, Event.upload) == Role.student
    assert actor_for(DocumentStatus.reviewing, Event.reject) == Role.admin


def test_approved_is_terminal():
    for event in Event:
        assert not can_transition(DocumentStatus.approved, event)
    with pytest.raises(IllegalTransition):
        next_status(DocumentStatus.approved, Event.upload)


def test_pending_cannot_be_reviewed():
    with pytest.raises(IllegalTransition):
        next_status(DocumentStatus.pending, Event.approve)
    with pytest.raises(IllegalTransition):
        next_status(DocumentStatus.pending, Event.begin_review)


def test_can_upload_by_status():
    assert can_upload(DocumentStatus.pending)
    assert can_upload(DocumentStatus.rejected)
    assert can_upload(DocumentStatus.uploaded)
    assert not can_upload(DocumentStatus.approved)


def test_compute_status_defaults_to_pending():
    assert compute_status(STUDENT_ID, "birth-certificate", []) == DocumentStatus.pending
    record = DocumentRecord(student_id=STUDENT_ID, document_type="birth-certificate",
                            status=DocumentStatus.approved, file_url="memory://x")
    assert compute_status(STUDENT_ID, "birth-certificate", [record]) == DocumentStatus.approved
    assert compute_status(OTHER_STUDENT_ID, "birth-certificate", [record]) == DocumentStatus.pending


def test_validate_file_rejects_bad_input():
    with pytest.raises(EmptyFile):
        validate_file(FileUpload("a.pdf", "application/pdf", b""))
    with pytest.raises(FileTooLarge):
        validate_file(FileUpload("a.pdf", "application/pdf", b"%PDF-" + b"0" * MAX_SIZE))
    with pytest.raises(InvalidFileType):
        validate_file(FileUpload("a.gif", "image/gif", b"GIF89a" + b"0" * 10))


def test_validate_file_accepts_exact_limit():
    content = b"%PDF-" + b"0" * (MAX_SIZE - 5)
    assert validate_file(FileUpload("a.pdf", "application/pdf", content)) == "application/pdf"


def test_resolve_content_type_sniffs_generic_uploads():
    assert resolve_content_type(FileUpload("scan", "application/octet-stream", PDF_BYTES)) == "application/pdf"
    assert resolve_content_type(FileUpload("scan", None, PNG_BYTES)) == "image/png"
    assert resolve_content_type(FileUpload("scan", "", JPEG_BYTES)) == "image/jpeg"
    assert resolve_content_type(FileUpload("photo.JPG", "application/octet-stream", b"abc")) == "image/jpeg"
    assert resolve_content_type(FileUpload("photo.jpg", "image/jpg", JPEG_BYTES)) == "image/jpeg"


def test_declared_text_type_is_not_rescued_by_extension():
    upload = FileUpload("notes.pdf", "text/plain", b"just some text, not a pdf")
    assert resolve_content_type(upload) == "text/plain"
    with pytest.raises(InvalidFileType):
        validate_file(upload)
    with pytest.raises(InvalidFileType):
        validate_file(FileUpload("notes.pdf", "text/plain", PDF_BYTES))


@pytest.mark.asyncio
async def test_reject_without_remarks_leaves_record_unchanged(store, admin_session, pdf_upload):
    record = await _uploaded(store, pdf_upload)

    for remarks in (None, "", "   "):
        with pytest.raises(MissingRemarks):
            await actions.apply_review(store, record, ReviewDecision.reject, remarks, admin_session)

    stored = await store.get_record(record.id)
    assert stored.status == DocumentStatus.uploaded
    assert stored.remarks is None


@pytest.mark.asyncio
async def test_reject_records_trimmed_remarks_and_reviewer(store, admin_session, pdf_upload):
    record = await _uploaded(store, pdf_upload)
    updated = await actions.apply_review(store, record, ReviewDecision.reject, "  blurry scan ", admin_session)

    assert updated.status == DocumentStatus.rejected
    assert updated.remarks == "blurry scan"
    assert updated.reviewed_by == "registrar"
    assert updated.reviewed_at is not None


@pytest.mark.asyncio
async def test_oversized_upload_never_reaches_store(store, student_session):
    record = DocumentRecord.pending(STUDENT_ID, "birth-certificate")
    upload = FileUpload("big.pdf", "application/pdf", b"%PDF-" + b"0" * (15 * MIB))

    with pytest.raises(FileTooLarge):
        await actions.apply_upload(store, record, upload, student_session)
    assert await store.fetch_records(STUDENT_ID) == []
    assert store.files == {}


@pytest.mark.asyncio
async def test_reupload_after_rejection(store, admin_session, student_session, pdf_upload):
    record = await _uploaded(store, pdf_upload)
    rejected = await actions.apply_review(store, record, ReviewDecision.reject, "unreadable", admin_session)

    upload = FileUpload("letter-v2.pdf", "application/pdf", b"%PDF-" + b"0" * (9 * MIB))
    updated = await actions.apply_upload(store, rejected, upload, student_session)

    assert updated.status == DocumentStatus.uploaded
    assert updated.id == record.id
    assert updated.file_name == "letter-v2.pdf"
    assert updated.file_url != record.file_url
    assert updated.remarks is None
    assert updated.reviewed_by is None


@pytest.mark.asyncio
async def test_upload_over_approved_is_blocked(store, admin_session, student_session, pdf_upload):
    record = await _uploaded(store, pdf_upload)
    approved = await actions.apply_review(store, record, ReviewDecision.approve, None, admin_session)

    with pytest.raises(IllegalTransition):
        await actions.apply_upload(store, approved, pdf_upload, student_session)
    stored = await store.get_record(record.id)
    assert stored.status == DocumentStatus.approved
    assert stored.file_url == approved.file_url


@pytest.mark.asyncio
async def test_double_upload_keeps_single_record(store, student_session, pdf_upload):
    pending = DocumentRecord.pending(STUDENT_ID, "medical-form")
    first = await actions.apply_upload(store, pending, pdf_upload, student_session)
    second = await actions.apply_upload(store, first, pdf_upload, student_session)

    records = await store.fetch_records(STUDENT_ID)
    assert len(records) == 1
    assert second.status == DocumentStatus.uploaded
    assert second.id == first.id
    assert len(store.files) == 1


@pytest.mark.asyncio
async def test_approve_clears_remarks(store, admin_session, pdf_upload):
    record = await _uploaded(store, pdf_upload)
    updated = await actions.apply_review(store, record, ReviewDecision.approve, "looks fine", admin_session)
    assert updated.status == DocumentStatus.approved
    assert updated.remarks is None


@pytest.mark.asyncio
async def test_begin_review_then_approve(store, admin_session, pdf_upload):
    record = await _uploaded(store, pdf_upload)
    reviewing = await actions.begin_review(store, record, admin_session)
    assert reviewing.status == DocumentStatus.reviewing

    approved = await actions.apply_review(store, reviewing, ReviewDecision.approve, None, admin_session)
    assert approved.status == DocumentStatus.approved


@pytest.mark.asyncio
async def test_students_cannot_act_for_others_or_review(store, student_session, other_student_session, pdf_upload):
    pending = DocumentRecord.pending(STUDENT_ID, "birth-certificate")
    with pytest.raises(PermissionDenied):
        await actions.apply_upload(store, pending, pdf_upload, other_student_session)

    record = await _uploaded(store, pdf_upload)
    with pytest.raises(PermissionDenied):
        await actions.apply_review(store, record, ReviewDecision.approve, None, student_session)
    with pytest.raises(PermissionDenied):
        await actions.begin_review(store, record, student_session)


@pytest.mark.asyncio
async def test_admin_cannot_upload(store, admin_session, pdf_upload):
    pending = DocumentRecord.pending(STUDENT_ID, "birth-certificate")
    with pytest.raises(PermissionDenied):
        await actions.apply_upload(store, pending, pdf_upload, admin_session)


@pytest.mark.asyncio
async def test_expired_session_is_refused(store, expired_session, pdf_upload):
    pending = DocumentRecord.pending(STUDENT_ID, "birth-certificate")
    with pytest.raises(PermissionDenied):
        await actions.apply_upload(store, pending, pdf_upload, expired_session)
    assert store.files == {}


def test_record_invariants():
    with pytest.raises(ValueError):
        DocumentRecord(student_id=STUDENT_ID, document_type="x", status=DocumentStatus.pending, file_url="memory://a")
    with pytest.raises(ValueError):
        DocumentRecord(student_id=STUDENT_ID, document_type="x", status=DocumentStatus.uploaded)
    with pytest.raises(ValueError):
        DocumentRecord(student_id=STUDENT_ID, document_type="x", status=DocumentStatus.rejected,
                       file_url="memory://a", remarks=" ")
