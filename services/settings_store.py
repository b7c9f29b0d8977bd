"""
Settings Store.

Admin-managed integration configuration kept as flat string key/value rows.
Only the keys listed in `SETTING_DESCRIPTIONS` may be written.
"""

from typing import Any, Dict, Mapping, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.exceptions import InvalidInputError
from core.logging_config import get_logger
from core.models import Setting, utc_now

logger = get_logger(__name__)

SETTING_DESCRIPTIONS = {
    "google_drive_folder_id": "Drive folder whose videos and images are reviewed",
    "google_drive_api_key": "Drive API key used to list the folder",
    "n8n_webhook_url": "Webhook notified when a caption is approved",
    "n8n_recaption_webhook_url": "Webhook that starts caption generation for an item",
    "facebook_app_id": "Facebook app id",
    "facebook_app_secret": "Facebook app secret",
    "facebook_access_token": "Page access token used to read post metrics",
    "facebook_page_id": "Facebook page the posts are published to",
}


class SettingsStore:
    """Key/value settings on an injected session"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_value(self, key: str) -> Optional[str]:
        setting = await self.session.get(Setting, key)
        if setting is None or not setting.value.strip():
            return None
        return setting.value.strip()

    async def get_all(self) -> Dict[str, Dict[str, Any]]:
        result = await self.session.exec(select(Setting).order_by(Setting.key))
        return {
            row.key: {
                "value": row.value,
                "description": row.description,
                "updatedAt": row.updated_at,
            }
            for row in result.all()
        }

    async def update(self, values: Mapping[str, Any], updated_by: str) -> Dict[str, Dict[str, Any]]:
        unknown = sorted(set(values) - set(SETTING_DESCRIPTIONS))
        if unknown:
            raise InvalidInputError("settings", f"Unknown setting keys: {', '.join(unknown)}")

        now = utc_now()
        for key, value in values.items():
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise InvalidInputError(key, "Setting values must be strings")

            setting = await self.session.get(Setting, key)
            if setting is None:
                setting = Setting(key=key, description=SETTING_DESCRIPTIONS[key])
            setting.value = value
            setting.updated_by = updated_by
            setting.updated_at = now
            self.session.add(setting)

        await self.session.flush()
        logger.info(
            "Settings updated",
            extra={"keys": sorted(values.keys()), "updated_by": updated_by},
        )
        return await self.get_all()
