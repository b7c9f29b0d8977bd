"""
Admin Endpoints.

Integration settings and user accounts. Every route requires an admin; the
role is re-read from the database on each request.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import InvalidInputError
from core.logging_config import get_logger, log_function_call
from core.models import User
from core.validation import InputValidator
from services.settings_store import SettingsStore
from services.user_service import UserService

from .dependencies import get_session, require_admin
from .schemas import CreateUserRequest, UpdateUserRequest, UserResponse

logger = get_logger(__name__)
router = APIRouter(tags=["Administration"])


@router.get("/settings")
@log_function_call(logger)
async def get_settings(
    session: AsyncSession = Depends(get_session), admin: User = Depends(require_admin)
):
    return {"settings": await SettingsStore(session).get_all()}


@router.put("/settings")
@log_function_call(logger)
async def update_settings(
    values: Dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if not values:
        raise InvalidInputError("settings", "No settings provided")
    settings = await SettingsStore(session).update(values, admin.id)
    await session.commit()
    return {"message": "Settings updated", "settings": settings}


@router.get("/users")
@log_function_call(logger)
async def list_users(
    session: AsyncSession = Depends(get_session), admin: User = Depends(require_admin)
):
    users = await UserService(session).list_users()
    return {"users": [UserResponse.from_row(u) for u in users]}


@router.post("/users", status_code=201)
@log_function_call(logger)
async def create_user(
    request: CreateUserRequest,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = await UserService(session).create(
        request.email, request.password, request.name, request.role
    )
    await session.commit()
    return {"user": UserResponse.from_row(user)}


@router.put("/users/{user_id}")
@log_function_call(logger)
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user_id = InputValidator.validate_uuid(user_id)
    user = await UserService(session).update(
        user_id,
        email=request.email,
        password=request.password,
        name=request.name,
        role=request.role,
    )
    await session.commit()
    return {"user": UserResponse.from_row(user)}


@router.delete("/users/{user_id}")
@log_function_call(logger)
async def delete_user(
    user_id: str,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user_id = InputValidator.validate_uuid(user_id)
    await UserService(session).delete(user_id, admin.id)
    await session.commit()
    return {"message": "User deleted", "userId": user_id}
