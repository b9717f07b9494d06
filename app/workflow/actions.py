import logging
from typing import Optional

from app.workflow.records import DocumentRecord, FileUpload, find_record
from app.workflow.session import SessionContext, utcnow
from app.workflow.state_machine import check_begin_review, check_review, check_upload
from app.workflow.status import ReviewDecision
from app.workflow.store import RecordStore

logger = logging.getLogger(__name__)


# Reads the record back from the store instead of trusting what we just wrote
async def _reload(store: RecordStore, written: DocumentRecord) -> DocumentRecord:
    records = await store.fetch_records(written.student_id)
    current = find_record(records, written.student_id, written.document_type)
    if current is None:
        logger.warning(
            f"Record {written.document_type} for student {written.student_id} missing right after write"
        )
        return written
    return current


async def apply_upload(
    store: RecordStore,
    record: DocumentRecord,
    upload: FileUpload,
    session: SessionContext,
    now=None,
) -> DocumentRecord:
    content_type = check_upload(record, upload, session, now)
    logger.info(
        f"Uploading {record.document_type} for student {record.student_id} "
        f"(size={upload.size}, content_type={content_type}, previous={record.status.value})"
    )
    normalized = FileUpload(filename=upload.filename, content_type=content_type, content=upload.content)
    written = await store.upsert_upload(record.student_id, record.document_type, normalized)
    return await _reload(store, written)


async def apply_review(
    store: RecordStore,
    record: DocumentRecord,
    decision: ReviewDecision,
    remarks: Optional[str],
    session: SessionContext,
    now=None,
) -> DocumentRecord:
    target, cleaned = check_review(record, decision, remarks, session, now)
    logger.info(
        f"Review of {record.document_type} for student {record.student_id} by {session.actor}: "
        f"{record.status.value} -> {target.value}"
    )
    written = await store.update_status(
        record.id,
        target,
        remarks=cleaned,
        reviewed_by=session.actor,
        reviewed_at=now or utcnow(),
    )
    return await _reload(store, written)


async def begin_review(store: RecordStore, record: DocumentRecord, session: SessionContext, now=None) -> DocumentRecord:
    target = check_begin_review(record, session, now)
    logger.info(f"{session.actor} started reviewing {record.document_type} for student {record.student_id}")
    written = await store.update_status(record.id, target, reviewed_by=session.actor)
    return await _reload(store, written)
