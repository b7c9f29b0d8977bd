"""
Unit tests for content reference parsing and identity resolution.
"""
import pytest
from sqlalchemy import update

from core.exceptions import IdentityMismatchError, InvalidInputError, NotFoundError
from core.models import ContentItem, new_id
from services.identity_resolver import (
    ByBoth,
    ByExternalId,
    ByInternalId,
    IdentityResolver,
    parse_content_reference,
)


class TestParseContentReference:
    """Reference parsing happens before any query."""

    def test_internal_id_only(self):
        content_item_id = new_id()
        assert parse_content_reference(content_item_id, None) == ByInternalId(content_item_id)

    def test_drive_file_id_only_is_trimmed(self):
        assert parse_content_reference(None, "  gdrive123456789 ") == ByExternalId(
            "gdrive123456789"
        )

    def test_both_identifiers(self):
        content_item_id = new_id()
        reference = parse_content_reference(content_item_id, "gdrive123456789")
        assert reference == ByBoth(content_item_id, "gdrive123456789")

    def test_empty_strings_count_as_absent(self):
        with pytest.raises(InvalidInputError):
            parse_content_reference("", "")

    def test_neither_identifier(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_content_reference(None, None)
        assert exc_info.value.status_code == 400

    def test_short_drive_file_id_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_content_reference(None, "short")
        assert exc_info.value.details["field"] == "driveFileId"

    def test_non_string_drive_file_id_rejected(self):
        with pytest.raises(InvalidInputError):
            parse_content_reference(None, 12345678901)

    def test_malformed_internal_id_rejected(self):
        with pytest.raises(InvalidInputError):
            parse_content_reference("not-a-uuid", None)


@pytest.mark.unit
class TestIdentityResolver:

    async def test_internal_and_external_resolve_to_same_item(self, session, content_item):
        resolver = IdentityResolver(session)

        by_internal = await resolver.resolve(ByInternalId(content_item.id))
        by_external = await resolver.resolve(ByExternalId(content_item.drive_file_id))
        by_both = await resolver.resolve(ByBoth(content_item.id, content_item.drive_file_id))

        assert by_internal.id == by_external.id == by_both.id == content_item.id

    async def test_mismatched_pair_never_picks_one(
        self, session, content_item, other_content_item
    ):
        resolver = IdentityResolver(session)

        with pytest.raises(IdentityMismatchError) as exc_info:
            await resolver.resolve(ByBoth(content_item.id, other_content_item.drive_file_id))

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {
            "contentItemId": content_item.id,
            "driveFileId": other_content_item.drive_file_id,
        }

    async def test_unknown_internal_id(self, session):
        with pytest.raises(NotFoundError):
            await IdentityResolver(session).resolve(ByInternalId(new_id()))

    async def test_unknown_drive_file_id(self, session, content_item):
        with pytest.raises(NotFoundError) as exc_info:
            await IdentityResolver(session).resolve(ByExternalId("gdrive000000000"))
        assert exc_info.value.details["driveFileId"] == "gdrive000000000"

    async def test_refresh_reads_current_row(self, session, content_item):
        resolver = IdentityResolver(session)
        await resolver.by_internal_id(content_item.id)

        # Write behind the identity map's back
        await session.execute(
            update(ContentItem)
            .where(ContentItem.id == content_item.id)
            .values(filename="renamed.mp4")
            .execution_options(synchronize_session=False)
        )

        fresh = await resolver.by_internal_id(content_item.id, refresh=True)
        assert fresh.filename == "renamed.mp4"

    async def test_unsupported_reference_type(self, session):
        with pytest.raises(TypeError):
            await IdentityResolver(session).resolve("gdrive123456789")
