from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.workflow.aggregator import ProgressSummary
from app.workflow.status import StudentStatus


class StudentProfile(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., alias="_id")
    username: str
    name: str = ""
    email: Optional[str] = None
    department: Optional[str] = None
    level: Optional[str] = None
    created_at: Optional[datetime] = None


class StudentSummary(StudentProfile):
    documents_submitted: int = 0
    documents_approved: int = 0
    total_documents: int = 0
    status: StudentStatus = StudentStatus.incomplete


class StudentListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    students: List[StudentSummary]
    total: int
    counts: Dict[str, int] = Field(default_factory=dict, description="Students per overall status")


class StudentDetail(StudentSummary):
    progress: Optional[ProgressSummary] = None
