"""Tests for request dispatch (RequestAction via FileField)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from stowage.errors import UnsupportedFileTypeError
from stowage.fields.definition import FieldPaths
from stowage.fields.field import FileField
from stowage.fields.request import select_action, select_upload
from stowage.records.store import InMemoryRecord


@pytest.fixture
def field(destination: str, store: Any) -> FileField:
    """A png-only avatar field."""
    return FileField("avatar", {"destination": destination, "allowed_types": ["image/png"]}, store)


def _inbound(descriptor: Any) -> dict[str, Any]:
    return {
        "path": descriptor.staging_path,
        "name": descriptor.declared_name,
        "mimetype": descriptor.content_type,
        "size": descriptor.size,
    }


class TestActions:
    """Tests for action tokens."""

    async def test_delete_action(
        self, field: FileField, record: InMemoryRecord, stage_file: Any, destination: str
    ) -> None:
        """The delete action removes the stored artifact and clears metadata."""
        await field.upload(record, stage_file(), apply_to_record=True)

        outcome = await field.handle_request(record, {"avatar_action": "delete"}, {})

        assert outcome.action == "delete"
        assert outcome.metadata is None
        assert not Path(destination, "photo.png").exists()
        assert field.state.metadata(record).is_empty

    async def test_reset_action_keeps_file(
        self, field: FileField, record: InMemoryRecord, stage_file: Any, destination: str
    ) -> None:
        """The reset action clears metadata only."""
        await field.upload(record, stage_file(), apply_to_record=True)

        outcome = await field.handle_request(record, {"avatar_action": "reset"}, None)

        assert outcome.action == "reset"
        assert Path(destination, "photo.png").exists()
        assert field.state.metadata(record).is_empty

    @pytest.mark.parametrize("token", ["Delete", "RESET", "clear", " delete", "delete-all", ""])
    async def test_other_tokens_ignored(
        self, field: FileField, record: InMemoryRecord, stage_file: Any, token: str
    ) -> None:
        """Only the exact lowercase literals trigger an action."""
        metadata = await field.upload(record, stage_file(), apply_to_record=True)

        outcome = await field.handle_request(record, {"avatar_action": token}, {})

        assert outcome.is_noop
        assert field.state.metadata(record) == metadata

    async def test_multi_valued_token_uses_first_entry(
        self, field: FileField, record: InMemoryRecord, stage_file: Any, destination: str
    ) -> None:
        """A repeated form field applies its first value."""
        await field.upload(record, stage_file(), apply_to_record=True)

        outcome = await field.handle_request(record, {"avatar_action": ["delete", "reset"]}, {})

        assert outcome.action == "delete"
        assert not Path(destination, "photo.png").exists()
        assert field.state.metadata(record).is_empty

    @pytest.mark.parametrize("token", [[], ["clear"], [["delete"]], {"delete": 1}, 1, None])
    async def test_non_string_tokens_ignored(
        self, field: FileField, record: InMemoryRecord, stage_file: Any, token: Any
    ) -> None:
        """Tokens that are not one of the literals are a no-op, never an error."""
        metadata = await field.upload(record, stage_file(), apply_to_record=True)

        outcome = await field.handle_request(record, {"avatar_action": token}, {})

        assert outcome.is_noop
        assert field.state.metadata(record) == metadata


class TestSelectAction:
    """Tests for action token selection."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [("delete", "delete"), (["reset"], "reset"), (("delete",), "delete"), (b"delete", None)],
    )
    def test_select_action(self, token: Any, expected: str | None) -> None:
        assert select_action(token) == expected


class TestUploads:
    """Tests for the upload branch."""

    async def test_upload_applies_to_record(
        self, field: FileField, record: InMemoryRecord, stage_file: Any
    ) -> None:
        """An upload-slot entry is moved and applied to the record."""
        descriptor = stage_file()

        outcome = await field.handle_request(record, {}, {"avatar_upload": _inbound(descriptor)})

        assert outcome.action is None
        assert outcome.metadata is not None
        assert record.get("avatar") == outcome.metadata.to_dict()
        assert await field.exists(record) is True
        assert field.is_modified(record) is True

    async def test_multi_valued_slot_uses_first_entry(
        self, field: FileField, record: InMemoryRecord, stage_file: Any
    ) -> None:
        """A list of files selects the first one."""
        first = stage_file(name="first.png")
        second = stage_file(name="second.png")

        outcome = await field.handle_request(
            record, {}, {"avatar_upload": [_inbound(first), _inbound(second)]}
        )

        assert outcome.metadata is not None
        assert outcome.metadata.file_name == "first.png"
        assert Path(second.staging_path).exists()

    async def test_no_upload_is_noop(self, field: FileField, record: InMemoryRecord) -> None:
        """Nothing to do completes successfully."""
        outcome = await field.handle_request(record, None, {"other_upload": {"path": "/x"}})

        assert outcome.is_noop
        assert record.get("avatar") is None

    async def test_empty_list_counts_as_absent(
        self, field: FileField, record: InMemoryRecord
    ) -> None:
        """An empty multi-valued slot is treated as no upload."""
        outcome = await field.handle_request(record, {}, {"avatar_upload": []})

        assert outcome.is_noop

    async def test_delete_then_upload_in_one_request(
        self, field: FileField, record: InMemoryRecord, stage_file: Any, destination: str
    ) -> None:
        """Delete runs first, then the new upload repopulates the record."""
        await field.upload(record, stage_file(name="old.png"), apply_to_record=True)
        replacement = stage_file(name="new.png")

        outcome = await field.handle_request(
            record, {"avatar_action": "delete"}, {"avatar_upload": _inbound(replacement)}
        )

        assert outcome.action == "delete"
        assert outcome.metadata is not None
        assert outcome.metadata.file_name == "new.png"
        assert not Path(destination, "old.png").exists()
        assert Path(destination, "new.png").exists()
        assert field.state.metadata(record).file_name == "new.png"

    async def test_upload_failure_propagates(
        self, field: FileField, record: InMemoryRecord, stage_file: Any
    ) -> None:
        """Pipeline errors are raised to the caller exactly once."""
        gif = stage_file(name="anim.gif", content_type="image/gif")

        with pytest.raises(UnsupportedFileTypeError):
            await field.handle_request(record, {}, {"avatar_upload": _inbound(gif)})

        assert record.get("avatar") is None

    async def test_custom_paths(
        self, field: FileField, record: InMemoryRecord, stage_file: Any
    ) -> None:
        """Callers may read the action and upload from other slots."""
        paths = FieldPaths.for_key("photo")
        descriptor = stage_file()

        outcome = await field.handle_request(
            record, {}, {"photo_upload": _inbound(descriptor)}, paths
        )

        assert outcome.metadata is not None
        assert record.get("avatar") == outcome.metadata.to_dict()

    async def test_get_request_handler_defers_work(
        self, field: FileField, record: InMemoryRecord, stage_file: Any, store: Any
    ) -> None:
        """The returned handler does nothing until awaited."""
        descriptor = stage_file()
        handler = field.get_request_handler(record, {}, {"avatar_upload": _inbound(descriptor)})

        assert store.moves == []
        outcome = await handler()

        assert outcome.metadata is not None
        assert len(store.moves) == 1


class TestSelectUpload:
    """Tests for inbound entry conversion."""

    def test_reads_common_multipart_keys(self) -> None:
        """Type may arrive as "type" and name as "originalname"."""
        descriptor = select_upload(
            {"path": "/tmp/abc", "originalname": "cv.pdf", "type": "application/pdf", "size": "12"}
        )

        assert descriptor is not None
        assert descriptor.declared_name == "cv.pdf"
        assert descriptor.content_type == "application/pdf"
        assert descriptor.size == 12

    def test_missing_path_rejected(self) -> None:
        """Entries without a staging path are invalid."""
        with pytest.raises(ValueError):
            select_upload({"name": "x.png"})

    def test_none_is_absent(self) -> None:
        assert select_upload(None) is None
