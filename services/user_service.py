"""
User Service.

Database-backed users for the Auth Gate: credential checks for login and the
admin-only user management operations. Password hashes never leave this
module; callers get `User` rows and serialize them without the hash.
"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.auth import PasswordManager
from core.exceptions import ConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from core.logging_config import get_logger
from core.models import User, UserRole
from core.validation import InputValidator

logger = get_logger(__name__)


class UserService:
    """User accounts on an injected session"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.exec(select(User).where(User.email == email.strip().lower()))
        return result.first()

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.find_by_email(email)
        if user is None or not PasswordManager.verify_password(password, user.password_hash):
            logger.warning("Login failed", extra={"email": email})
            raise UnauthorizedError("Invalid credentials")
        logger.info("User authenticated", extra={"user_id": user.id})
        return user

    async def list_users(self) -> List[User]:
        result = await self.session.exec(select(User).order_by(User.created_at))
        return list(result.all())

    async def create(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> User:
        user = User(
            email=InputValidator.validate_email(email),
            password_hash=PasswordManager.hash_password(InputValidator.validate_password(password)),
            name=name,
            role=InputValidator.validate_role(role),
        )
        if await self.find_by_email(user.email):
            raise ConflictError("A user with this email already exists", {"email": user.email})

        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("A user with this email already exists", {"email": user.email})

        logger.info("User created", extra={"user_id": user.id, "role": user.role})
        return user

    async def update(
        self,
        user_id: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
        name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> User:
        user = await self.get(user_id)

        if email is not None:
            email = InputValidator.validate_email(email)
            other = await self.find_by_email(email)
            if other and other.id != user.id:
                raise ConflictError("A user with this email already exists", {"email": email})
            user.email = email
        if password:
            user.password_hash = PasswordManager.hash_password(
                InputValidator.validate_password(password)
            )
        if name is not None:
            user.name = name
        if role is not None:
            user.role = InputValidator.validate_role(role)

        self.session.add(user)
        await self.session.flush()
        logger.info("User updated", extra={"user_id": user.id})
        return user

    async def delete(self, user_id: str, acting_user_id: str) -> None:
        if user_id == acting_user_id:
            raise InvalidInputError("id", "You cannot delete your own account")
        user = await self.get(user_id)
        await self.session.delete(user)
        await self.session.flush()
        logger.info("User deleted", extra={"user_id": user_id})

    async def ensure_admin(self, email: str, password: str, name: Optional[str] = None) -> User:
        """Create the bootstrap admin if no account uses this email yet."""
        existing = await self.find_by_email(email)
        if existing:
            return existing
        return await self.create(email, password, name or "Administrator", UserRole.ADMIN.value)
