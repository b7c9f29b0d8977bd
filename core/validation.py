"""
Input Validation Utilities.

This module holds the field-level rules of the content review workflow in one
place so the HTTP layer, the stores and the webhook pipeline apply them
identically.

Key Components:
- `InputValidator`: Static validators for identifiers (UUID path ids, drive
  file ids), user fields (email, password, role) and caption fields (tone,
  content). Identifier problems raise `InvalidInputError`; caption domain
  rule violations raise `ValidationError`.
- Caption limits: `MAX_CAPTION_LENGTH`, `MIN_WEBHOOK_CAPTION_LENGTH` and the
  batch bounds shared by the direct and webhook creation paths.

Architectural Design:
- Static Methods for Reusability: validators need no state and are called from
  request models, stores and services alike.
- Fail early: validators run before any database access, so a malformed
  request never costs a query.
"""

import re
import uuid
from typing import Any, Optional

from core.logging_config import get_logger
from core.exceptions import InvalidInputError, ValidationError
from core.models import FileType, Tone, UserRole

logger = get_logger(__name__)

MAX_CAPTION_LENGTH = 5000
MIN_WEBHOOK_CAPTION_LENGTH = 10
MAX_CAPTIONS_PER_BATCH = 10
MAX_SYNC_BATCH = 100
MIN_DRIVE_FILE_ID_LENGTH = 10
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128


class InputValidator:
    """Field validation for the content review API"""

    EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

    @staticmethod
    def validate_uuid(value: Any, field: str = "id") -> str:
        if not isinstance(value, str) or not value:
            raise InvalidInputError(field, f"{field} is required")
        try:
            parsed = uuid.UUID(value)
        except ValueError:
            raise InvalidInputError(field, f"Invalid {field} format")
        return str(parsed)

    @staticmethod
    def validate_drive_file_id(value: Any, field: str = "driveFileId") -> str:
        """Drive ids are opaque, but anything shorter than ten characters is not one."""
        if not isinstance(value, str) or len(value.strip()) < MIN_DRIVE_FILE_ID_LENGTH:
            raise InvalidInputError(
                field,
                f"{field} must be a drive file id (string, min "
                f"{MIN_DRIVE_FILE_ID_LENGTH} characters)",
            )
        return value.strip()

    @staticmethod
    def validate_tone(value: Any) -> str:
        try:
            return Tone(value).value
        except ValueError:
            raise ValidationError(
                "tone",
                "Tone must be Professional, Casual, or Engaging",
                {"value": str(value)},
            )

    @staticmethod
    def validate_caption_content(value: Any, field: str = "content") -> str:
        if not isinstance(value, str):
            raise ValidationError(field, "Content must be a string")
        if not value.strip():
            raise ValidationError(field, "Content cannot be empty")
        if len(value) > MAX_CAPTION_LENGTH:
            raise ValidationError(
                field,
                f"Content must be at most {MAX_CAPTION_LENGTH} characters",
                {"length": len(value)},
            )
        return value

    @staticmethod
    def is_acceptable_generated_caption(caption: Any) -> bool:
        """Filter rule for captions arriving from the generation webhook."""
        if not isinstance(caption, dict):
            return False
        tone = caption.get("tone")
        content = caption.get("content")
        if not isinstance(tone, str) or tone not in {t.value for t in Tone}:
            return False
        if not isinstance(content, str):
            return False
        trimmed = content.strip()
        return MIN_WEBHOOK_CAPTION_LENGTH <= len(trimmed) <= MAX_CAPTION_LENGTH

    @staticmethod
    def validate_file_type(value: Any, field: str = "fileType") -> str:
        try:
            return FileType(value).value
        except ValueError:
            raise InvalidInputError(field, "fileType must be video or image")

    @staticmethod
    def validate_email(value: Any) -> str:
        if not isinstance(value, str) or not InputValidator.EMAIL_PATTERN.match(value.strip()):
            raise InvalidInputError("email", "Invalid email format")
        return value.strip().lower()

    @staticmethod
    def validate_password(value: Any) -> str:
        if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(
                "password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(value) > MAX_PASSWORD_LENGTH:
            raise InvalidInputError(
                "password", f"Password must be at most {MAX_PASSWORD_LENGTH} characters"
            )
        return value

    @staticmethod
    def validate_role(value: Optional[str]) -> str:
        try:
            return UserRole((value or UserRole.USER.value).lower()).value
        except ValueError:
            raise InvalidInputError("role", "Role must be user or admin")
