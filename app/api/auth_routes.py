from fastapi import APIRouter, Depends, HTTPException, status
import logging

from app.services.auth_service import auth_service, user_to_response
from app.schemas.user_schemas import RegisterRequest, LoginRequest, AuthResponse, UserResponse
from app.core.auth_dependencies import get_current_session
from app.services.audit_service import audit_service
from app.workflow.session import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication"]
)

# Registers a new student or admin account and signs it in
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(data: RegisterRequest) -> AuthResponse:
    try:
        payload = await auth_service.register_user(data)
    except HTTPException as e:
        await audit_service.record("register", data.username, status="failed", detail=str(e.detail))
        raise

    await audit_service.record("register", data.username, payload["_id"], detail=data.role.value)
    return AuthResponse(**payload)

# Authenticates username and password and returns an access token
@router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
async def login_user(data: LoginRequest) -> AuthResponse:
    try:
        payload = await auth_service.login_user(data.username, data.password)
    except HTTPException:
        await audit_service.record("login", data.username, status="failed")
        raise

    await audit_service.record("login", data.username, payload["_id"])
    return AuthResponse(**payload)

# Retrieves the signed-in user's profile
@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def get_current_user_info(session: SessionContext = Depends(get_current_session)) -> UserResponse:
    user = await auth_service.get_user_by_id(session.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse(**user_to_response(user))

# Issues a fresh token for the signed-in user
@router.post("/refresh", response_model=AuthResponse, status_code=status.HTTP_200_OK)
async def refresh_token(session: SessionContext = Depends(get_current_session)) -> AuthResponse:
    payload = await auth_service.refresh_user_token(session.user_id)
    logger.debug(f"Refreshed token for {session.actor}")
    return AuthResponse(**payload)
