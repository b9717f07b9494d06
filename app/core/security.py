import logging
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from typing import Optional, Dict, Any
from app.core.config import settings
from app.workflow.session import SessionContext
from app.workflow.status import Role

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Validates that a password meets minimum length requirements
def is_valid_password(password: str) -> bool:
    return len(password or "") >= 8

# Hashes a password using bcrypt after validating its length
def hash_password(password: str) -> str:
    if not is_valid_password(password):
        raise ValueError("Password must be at least 8 characters long")

    try:
        return pwd_context.hash(password)
    except Exception as e:
        raise ValueError("Failed to hash password") from e

# Verifies a plain password against its hashed version
def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(f"Password verification error: {e}")
        return False

# Creates a JWT access token carrying the user id and role
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    if not settings.JWT_SECRET_KEY:
        raise ValueError("JWT_SECRET_KEY is not configured")
    try:
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    except JWTError as e:
        raise ValueError("Failed to create access token") from e

# Decodes and validates a JWT token returning its payload
def decode_token(token: str) -> Optional[Dict[str, Any]]:
    if not settings.JWT_SECRET_KEY:
        return None
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

# Builds the explicit session object handed to workflow operations
def session_from_token(token: str) -> Optional[SessionContext]:
    payload = decode_token(token)
    if not payload:
        return None
    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or role not in {r.value for r in Role}:
        return None
    expires_at = None
    if payload.get("exp") is not None:
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
    return SessionContext(
        user_id=str(user_id),
        role=Role(role),
        token=token,
        expires_at=expires_at,
        username=payload.get("username"),
    )
