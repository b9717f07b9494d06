from beanie import Document, Indexed
from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional

from app.workflow.status import Role


class User(Document):
    username: Indexed(str, unique=True) = Field(..., description="Login name; matriculation number for students")
    role: Role = Field(default=Role.student, description="student or admin")
    full_name: str = Field(default="", description="Full name of the user")
    email: Optional[EmailStr] = Field(None, description="Email address of the user")
    department: Optional[str] = Field(None, description="Department code, e.g. CSC")
    level: Optional[str] = Field(None, description="Current level, e.g. 100")
    hashed_password: str = Field(..., description="Hashed password for the user account")
    is_active: bool = Field(default=True, description="Indicates if the user account is active")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Timestamp when the user was created")
    updated_at: Optional[datetime] = Field(None, description="Timestamp when the user was last updated")

    class Settings:
        name = "users"
