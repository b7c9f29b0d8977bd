"""
Authentication Endpoints.

- `/login`: Checks email and password and returns a bearer token with the
  user's public profile.
- `/me`: Returns the profile of the currently authenticated user.

Tokens are stateless HS256 JWTs valid for seven days; there is no refresh or
revocation.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from core.auth import get_jwt_manager
from core.logging_config import get_logger, log_function_call
from core.models import User
from services.user_service import UserService

from .dependencies import get_current_user, get_session
from .schemas import LoginRequest, UserResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


class TokenResponse(BaseModel):
    token: str
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse


@router.post("/login", response_model=TokenResponse)
@log_function_call(logger)
async def login_user(request: LoginRequest, session: AsyncSession = Depends(get_session)):
    """Authenticate user and return a token"""
    user = await UserService(session).authenticate(request.email, request.password)
    token = get_jwt_manager().create_access_token(user.id, user.email, user.role)

    logger.info("User logged in", extra={"user_id": user.id})
    return TokenResponse(token=token, user=UserResponse.from_row(user))


@router.get("/me", response_model=MeResponse)
@log_function_call(logger)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return MeResponse(user=UserResponse.from_row(current_user))
