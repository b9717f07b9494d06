from fastapi import APIRouter, Depends, Query
from typing import Dict, List, Optional
import logging

from app.core.auth_dependencies import get_admin_session
from app.schemas.document_schema import ReviewRequest
from app.schemas.student_schema import StudentDetail, StudentListResponse
from app.services.document_service import DocumentService, get_document_service
from app.services.student_service import StudentService, get_student_service
from app.workflow.records import DocumentRecord
from app.workflow.session import SessionContext
from app.workflow.status import StudentStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


# Lists students with their derived status, optionally filtered
@router.get("/students", response_model=StudentListResponse)
async def list_students(
    status: Optional[StudentStatus] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Match on name, username or email"),
    session: SessionContext = Depends(get_admin_session),
    service: StudentService = Depends(get_student_service),
):
    return await service.list_students(status_filter=status, search=search)


@router.get("/students/{student_id}", response_model=StudentDetail)
async def get_student(
    student_id: str,
    session: SessionContext = Depends(get_admin_session),
    service: StudentService = Depends(get_student_service),
):
    return await service.get_student(student_id)


@router.get("/students/{student_id}/documents", response_model=List[DocumentRecord])
async def get_student_documents(
    student_id: str,
    session: SessionContext = Depends(get_admin_session),
    service: DocumentService = Depends(get_document_service),
):
    return await service.list_records(student_id)


# Deletes a student account and every document it uploaded
@router.delete("/students/{student_id}")
async def delete_student(
    student_id: str,
    session: SessionContext = Depends(get_admin_session),
    service: StudentService = Depends(get_student_service),
) -> Dict[str, int]:
    deleted = await service.delete_student(session, student_id)
    return {"deletedDocuments": deleted}


# Approves or rejects a submitted document
@router.post("/documents/{record_id}/review", response_model=DocumentRecord)
async def review_document(
    record_id: str,
    payload: ReviewRequest,
    session: SessionContext = Depends(get_admin_session),
    service: DocumentService = Depends(get_document_service),
):
    return await service.review(session, record_id, payload.status, payload.remarks)


# Marks an uploaded document as being looked at
@router.post("/documents/{record_id}/begin-review", response_model=DocumentRecord)
async def begin_review(
    record_id: str,
    session: SessionContext = Depends(get_admin_session),
    service: DocumentService = Depends(get_document_service),
):
    return await service.begin_review(session, record_id)
