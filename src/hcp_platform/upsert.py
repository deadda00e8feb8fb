"""Idempotent create-or-update for objects owned by a hosted cluster.

Every mutation performed by a platform adapter goes through
create_or_update(): read the current object, create it when absent, and
write only when the desired state differs from what is stored. A retried
call after a transient failure therefore converges instead of duplicating
objects or amplifying writes.

Write conflicts (another writer changed the object between our read and
our write, or created it first) are retried within the same call by
re-reading, up to a bounded number of attempts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)

from hcp_platform.utils.errors import ConflictError, NotFoundError, ResourceExistsError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationResult(str, Enum):
    """Outcome of a create-or-update."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


def read_or_none(read: Callable[[], T]) -> T | None:
    """Call read(), mapping NotFoundError to None."""
    try:
        return read()
    except NotFoundError:
        return None


def create_or_update(
    read: Callable[[], T | None],
    create: Callable[[], T],
    update: Callable[[T], T],
    needs_update: Callable[[T], bool],
    attempts: int = 3,
) -> tuple[T, OperationResult]:
    """Converge one object toward its desired state.

    Args:
        read: Returns the current object, or None when it does not exist.
        create: Creates the object from scratch and returns it.
        update: Writes the desired state over the given current object.
        needs_update: Returns True when the current object differs from the
            desired state.
        attempts: Maximum attempts when writes hit conflicts.

    Returns:
        Tuple of (object, result). When nothing was written the object is the
        one that was read.
    """
    retrying = Retrying(
        retry=retry_if_exception_type((ConflictError, ResourceExistsError)),
        stop=stop_after_attempt(attempts),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=True,
    )
    result: tuple[T, OperationResult] = retrying(
        _apply_once, read, create, update, needs_update
    )
    return result


def _apply_once(
    read: Callable[[], Any],
    create: Callable[[], Any],
    update: Callable[[Any], Any],
    needs_update: Callable[[Any], bool],
) -> tuple[Any, OperationResult]:
    current = read()
    if current is None:
        return create(), OperationResult.CREATED
    if not needs_update(current):
        return current, OperationResult.UNCHANGED
    return update(current), OperationResult.UPDATED
