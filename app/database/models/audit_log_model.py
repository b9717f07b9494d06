from beanie import Document
from pydantic import Field
from datetime import datetime
from typing import Optional


class AuditLog(Document):
    action: str = Field(..., description="Action performed (e.g. 'login', 'upload_document', 'review_document')")
    actor: Optional[str] = Field(None, description="Username or id of whoever performed the action")
    acted: Optional[str] = Field(None, description="Entity acted upon (student id, document id)")
    detail: Optional[str] = Field(None, description="Short free-text context, e.g. the new status")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="When the action occurred")
    status: str = Field(..., description="Result status: 'successful' or 'failed'")

    class Settings:
        name = "audit_logs"
