"""
Request-scoped dependencies: database session, authenticated user, outbound
clients and the webhook secret gate.
"""

from typing import AsyncIterator, Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from core.auth import get_jwt_manager
from core.database import Database
from core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from core.models import User, UserRole
from providers.drive_provider import DriveProvider, GoogleDriveProvider
from providers.social_provider import FacebookMetricsProvider, SocialProvider
from services.notifier import OutboundNotifier
from services.user_service import UserService
from services.webhook_pipeline import verify_webhook_secret

notifier = OutboundNotifier()
drive_provider = GoogleDriveProvider()
social_provider = FacebookMetricsProvider()

bearer_scheme = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_session(database: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
    async with database.session() as session:
        yield session


def get_notifier() -> OutboundNotifier:
    return notifier


def get_drive_provider() -> DriveProvider:
    return drive_provider


def get_social_provider() -> SocialProvider:
    return social_provider


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    if credentials is None:
        raise UnauthorizedError("Access token required")

    payload = get_jwt_manager().verify_token(credentials.credentials)
    try:
        return await UserService(session).get(payload["sub"])
    except NotFoundError:
        raise UnauthorizedError("User no longer exists")


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    # current_user was just loaded from the store, so the role is current
    if current_user.role != UserRole.ADMIN.value:
        raise ForbiddenError()
    return current_user


async def verify_webhook(x_webhook_secret: Optional[str] = Header(None)) -> None:
    verify_webhook_secret(x_webhook_secret)
