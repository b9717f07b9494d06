from app.database.models.user_model import User
from app.database.models.document_model import StudentDocument
from app.database.models.audit_log_model import AuditLog

__all__ = ["User", "StudentDocument", "AuditLog"]
