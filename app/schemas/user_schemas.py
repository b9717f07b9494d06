from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional

from app.workflow.status import Role


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, description="Login name; matriculation number for students")
    password: str = Field(..., min_length=8, description="Password for the user account")
    role: Role = Field(default=Role.student)
    name: Optional[str] = Field(None, description="Full name of the user")
    email: Optional[EmailStr] = None
    department: Optional[str] = None
    level: Optional[str] = None
    registration_code: Optional[str] = Field(None, alias="registrationCode", description="Required for admin sign-up when configured")

    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(BaseModel):
    username: str
    password: str


class AuthResponse(BaseModel):
    id: str = Field(..., alias="_id")
    username: str
    role: Role
    token: str
    token_type: str = Field(default="bearer", alias="tokenType")

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    id: str = Field(..., alias="_id")
    username: str
    role: Role
    name: str = ""
    email: Optional[EmailStr] = None
    department: Optional[str] = None
    level: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
