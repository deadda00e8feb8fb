"""Tests for the create-or-update helper."""

from unittest.mock import MagicMock

import pytest

from hcp_platform.upsert import OperationResult, create_or_update, read_or_none
from hcp_platform.utils.errors import (
    ConflictError,
    NotFoundError,
    PlatformAdapterError,
    ResourceExistsError,
)


class TestReadOrNone:
    """Test read_or_none."""

    def test_returns_object(self) -> None:
        assert read_or_none(lambda: {"a": 1}) == {"a": 1}

    def test_not_found_is_none(self) -> None:
        def read():
            raise NotFoundError("Secret", "x", "ns")

        assert read_or_none(read) is None

    def test_other_errors_propagate(self) -> None:
        def read():
            raise PlatformAdapterError("boom")

        with pytest.raises(PlatformAdapterError):
            read_or_none(read)


class TestCreateOrUpdate:
    """Test create_or_update."""

    def test_creates_when_absent(self) -> None:
        create = MagicMock(return_value="created")
        update = MagicMock()

        obj, result = create_or_update(lambda: None, create, update, lambda current: True)

        assert (obj, result) == ("created", OperationResult.CREATED)
        update.assert_not_called()

    def test_unchanged_does_not_write(self) -> None:
        create = MagicMock()
        update = MagicMock()

        obj, result = create_or_update(lambda: "current", create, update, lambda current: False)

        assert (obj, result) == ("current", OperationResult.UNCHANGED)
        create.assert_not_called()
        update.assert_not_called()

    def test_updates_when_different(self) -> None:
        update = MagicMock(return_value="updated")

        obj, result = create_or_update(lambda: "current", MagicMock(), update, lambda current: True)

        assert (obj, result) == ("updated", OperationResult.UPDATED)
        update.assert_called_once_with("current")

    def test_create_race_rereads_and_updates(self) -> None:
        """A create that loses a race falls through to update on the next attempt."""
        reads = iter([None, "theirs"])
        create = MagicMock(side_effect=ResourceExistsError("Secret", "x", "ns"))
        update = MagicMock(return_value="ours")

        obj, result = create_or_update(lambda: next(reads), create, update, lambda current: True)

        assert (obj, result) == ("ours", OperationResult.UPDATED)
        update.assert_called_once_with("theirs")

    def test_conflict_retries_are_bounded(self) -> None:
        update = MagicMock(side_effect=ConflictError("Secret", "x", "ns"))

        with pytest.raises(ConflictError):
            create_or_update(lambda: "current", MagicMock(), update, lambda c: True, attempts=3)

        assert update.call_count == 3

    def test_other_errors_are_not_retried(self) -> None:
        update = MagicMock(side_effect=PlatformAdapterError("forbidden"))

        with pytest.raises(PlatformAdapterError, match="forbidden"):
            create_or_update(lambda: "current", MagicMock(), update, lambda c: True)

        assert update.call_count == 1
