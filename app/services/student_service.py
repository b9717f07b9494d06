import logging
from typing import List, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import HTTPException, status

from app.database.models import User
from app.schemas.student_schema import StudentDetail, StudentListResponse, StudentProfile, StudentSummary
from app.services.audit_service import AuditService, audit_service
from app.services.document_service import DocumentService, get_document_service
from app.workflow.aggregator import aggregate
from app.workflow.catalog import REQUIRED_DOCUMENTS
from app.workflow.session import SessionContext
from app.workflow.status import Role, StudentStatus

logger = logging.getLogger(__name__)


def _profile(user: User) -> StudentProfile:
    return StudentProfile(
        id=str(user.id),
        username=user.username,
        name=user.full_name or "",
        email=user.email,
        department=user.department,
        level=user.level,
        created_at=user.created_at,
    )


class StudentService:
    """Admin-facing view of students and their derived document progress."""

    def __init__(self, documents: DocumentService, audit: AuditService = audit_service):
        self.documents = documents
        self.audit = audit

    async def _load_students(self) -> List[StudentProfile]:
        users = await User.find(User.role == Role.student).sort("-created_at").to_list()
        return [_profile(user) for user in users]

    async def _load_student(self, student_id: str) -> Optional[StudentProfile]:
        try:
            user = await User.get(PydanticObjectId(student_id))
        except InvalidId:
            return None
        if user is None or user.role != Role.student:
            return None
        return _profile(user)

    async def _delete_user(self, student_id: str) -> None:
        user = await User.get(PydanticObjectId(student_id))
        if user is not None:
            await user.delete()

    async def summarize(self, profile: StudentProfile) -> StudentDetail:
        records = await self.documents.store.fetch_records(profile.id)
        progress = aggregate(REQUIRED_DOCUMENTS, records)
        return StudentDetail(
            **profile.model_dump(),
            documents_submitted=progress.submitted_count,
            documents_approved=progress.approved_count,
            total_documents=progress.total_required,
            status=progress.overall_status,
            progress=progress,
        )

    async def list_students(self, status_filter: Optional[StudentStatus] = None, search: Optional[str] = None) -> StudentListResponse:
        profiles = await self._load_students()
        if search:
            needle = search.strip().lower()
            profiles = [
                p for p in profiles
                if needle in (p.name or "").lower()
                or needle in p.username.lower()
                or needle in (p.email or "").lower()
            ]

        summaries = []
        counts = {s.value: 0 for s in StudentStatus}
        for profile in profiles:
            detail = await self.summarize(profile)
            counts[detail.status.value] += 1
            if status_filter is None or detail.status == status_filter:
                summaries.append(StudentSummary(**detail.model_dump(exclude={"progress"})))

        return StudentListResponse(students=summaries, total=len(summaries), counts=counts)

    async def get_student(self, student_id: str) -> StudentDetail:
        profile = await self._load_student(student_id)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
        return await self.summarize(profile)

    # Removes a student together with all of their document records and files
    async def delete_student(self, session: SessionContext, student_id: str) -> int:
        profile = await self._load_student(student_id)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

        deleted = await self.documents.remove_student_documents(session, student_id)
        await self._delete_user(student_id)
        logger.info(f"Admin {session.actor} removed student {profile.username} and {deleted} documents")
        await self.audit.record("delete_student", session.actor, student_id, detail=f"{deleted} documents")
        return deleted


_service: Optional[StudentService] = None


def get_student_service() -> StudentService:
    global _service
    if _service is None:
        _service = StudentService(get_document_service())
    return _service
