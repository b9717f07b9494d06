from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import List
import logging

from app.core.auth_dependencies import ensure_can_view_student, get_current_session, get_student_session
from app.schemas.document_schema import DocumentStatusView
from app.services.document_service import DocumentService, get_document_service
from app.workflow.aggregator import ProgressSummary
from app.workflow.records import DocumentRecord, FileUpload
from app.workflow.session import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Documents"])


# Lists the stored document records of a student
@router.get("/students/{student_id}/documents", response_model=List[DocumentRecord])
async def list_student_documents(
    student_id: str,
    session: SessionContext = Depends(get_current_session),
    service: DocumentService = Depends(get_document_service),
):
    ensure_can_view_student(session, student_id)
    return await service.list_records(student_id)


# Uploads or replaces the file for one required document
@router.post("/students/{student_id}/documents", response_model=DocumentRecord, status_code=status.HTTP_201_CREATED)
async def upload_student_document(
    student_id: str,
    file: UploadFile = File(...),
    document_type: str = Form(..., alias="documentType"),
    session: SessionContext = Depends(get_student_session),
    service: DocumentService = Depends(get_document_service),
):
    content = await file.read()
    upload = FileUpload(filename=file.filename or document_type, content_type=file.content_type, content=content)
    logger.info(f"Upload of {document_type} ({upload.size} bytes) by {session.actor}")
    return await service.upload(session, student_id, document_type, upload)


# Derived progress of a student across the catalog
@router.get("/students/{student_id}/progress", response_model=ProgressSummary)
async def get_student_progress(
    student_id: str,
    session: SessionContext = Depends(get_current_session),
    service: DocumentService = Depends(get_document_service),
):
    ensure_can_view_student(session, student_id)
    return await service.progress(student_id)


# One row per catalog entry with its current status and badge
@router.get("/students/{student_id}/status-board", response_model=List[DocumentStatusView])
async def get_status_board(
    student_id: str,
    session: SessionContext = Depends(get_current_session),
    service: DocumentService = Depends(get_document_service),
):
    ensure_can_view_student(session, student_id)
    rows = await service.document_statuses(student_id)
    return [DocumentStatusView(**row) for row in rows]


# Retrieves a single document record by its ID
@router.get("/documents/{record_id}", response_model=DocumentRecord)
async def get_document(
    record_id: str,
    session: SessionContext = Depends(get_current_session),
    service: DocumentService = Depends(get_document_service),
):
    record = await service.get_record(record_id)
    ensure_can_view_student(session, record.student_id)
    return record
