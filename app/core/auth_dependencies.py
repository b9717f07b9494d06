from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from app.core.security import session_from_token
from app.workflow.session import SessionContext
from app.workflow.status import Role
import logging

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

# Extracts and validates the bearer token into a SessionContext
async def get_current_session(token: str = Depends(oauth2_scheme)) -> SessionContext:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    session = session_from_token(token)
    if session is None:
        logger.warning("Token validation failed")
        raise credentials_exception
    if session.is_expired():
        logger.debug("Session for %s has expired", session.user_id)
        raise credentials_exception
    return session

# Requires a student session
async def get_student_session(session: SessionContext = Depends(get_current_session)) -> SessionContext:
    if session.role != Role.student:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student access required")
    return session

# Requires an admin session
async def get_admin_session(session: SessionContext = Depends(get_current_session)) -> SessionContext:
    if session.role != Role.admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return session

# Students may only read their own documents; admins may read anyone's
def ensure_can_view_student(session: SessionContext, student_id: str) -> None:
    if session.role == Role.admin:
        return
    if session.user_id != student_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to view another student's documents")
