from fastapi import HTTPException, status
from beanie import PydanticObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError
from app.database.models import User
from app.schemas.user_schemas import RegisterRequest
from app.core.config import settings
from app.core.security import hash_password, verify_password, create_access_token
from app.workflow.status import Role
from typing import Dict, Optional
from datetime import datetime
import hmac
import logging

logger = logging.getLogger(__name__)


class AuthService:
    # Issues a token for a user and returns the login payload the portal expects
    @staticmethod
    def _token_payload(user: User) -> Dict:
        try:
            token = create_access_token(data={
                "sub": str(user.id),
                "role": user.role.value,
                "username": user.username,
            })
        except ValueError as e:
            logger.error("Token creation failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not create access token"
            )
        return {
            "_id": str(user.id),
            "username": user.username,
            "role": user.role,
            "token": token,
        }

    # Register a new student or admin account
    @staticmethod
    async def register_user(data: RegisterRequest) -> Dict:
        if data.role == Role.admin and settings.ADMIN_REGISTRATION_CODE:
            supplied = data.registration_code or ""
            if not hmac.compare_digest(supplied, settings.ADMIN_REGISTRATION_CODE):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Invalid admin registration code"
                )

        if data.role == Role.student and not (data.name and data.email and data.department and data.level):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Please fill in all fields"
            )

        existing_user = await User.find_one(User.username == data.username)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already registered"
            )

        try:
            hashed = hash_password(data.password)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Password must be at least 8 characters long"
            )

        new_user = User(
            username=data.username,
            role=data.role,
            full_name=data.name or "",
            email=data.email,
            department=data.department,
            level=data.level,
            hashed_password=hashed,
            created_at=datetime.utcnow()
        )

        try:
            await new_user.insert()
        except DuplicateKeyError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already registered"
            )
        except PyMongoError as e:
            logger.error("User save failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="User registration failed"
            )

        logger.info("Registered %s account %s", new_user.role.value, new_user.username)
        return AuthService._token_payload(new_user)

    # Authenticate user and generate access token
    @staticmethod
    async def login_user(username: str, password: str) -> Dict:
        user = await User.find_one(User.username == username)

        # Do NOT log the incoming plaintext password
        if not user or not user.is_active or not verify_password(password, user.hashed_password):
            logger.warning("Failed login for username: %s", username)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username or password"
            )
        return AuthService._token_payload(user)

    @staticmethod
    async def get_user_by_id(user_id: str) -> Optional[User]:
        try:
            return await User.get(PydanticObjectId(user_id))
        except InvalidId:
            return None

    # Generate a new access token for an existing user
    @staticmethod
    async def refresh_user_token(user_id: str) -> Dict:
        user = await AuthService.get_user_by_id(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        return AuthService._token_payload(user)


def user_to_response(user: User) -> Dict:
    return {
        "_id": str(user.id),
        "username": user.username,
        "role": user.role,
        "name": user.full_name,
        "email": user.email,
        "department": user.department,
        "level": user.level,
    }


auth_service = AuthService()
