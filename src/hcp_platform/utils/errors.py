"""Exceptions raised by platform adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pydantic


class PlatformAdapterError(Exception):
    """Base exception for all platform adapter errors."""

    pass


class AuthenticationError(PlatformAdapterError):
    """Failed to authenticate against the Kubernetes API."""

    pass


class NotFoundError(PlatformAdapterError):
    """A Kubernetes object does not exist."""

    def __init__(self, kind: str, name: str, namespace: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} '{location}' not found")


class ResourceExistsError(PlatformAdapterError):
    """A Kubernetes object already exists (create raced with another writer)."""

    def __init__(self, kind: str, name: str, namespace: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} '{location}' already exists")


class ConflictError(PlatformAdapterError):
    """A write was rejected because the object changed since it was read.

    Conflicts are transient: the caller re-reads the object and retries.
    """

    def __init__(self, kind: str, name: str, namespace: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"Conflict writing {kind} '{location}'")


class MisconfiguredPlatformError(PlatformAdapterError):
    """The platform-specific block of a spec is missing or of the wrong type.

    This is a caller contract violation. Retrying will not help, so it
    should be surfaced as a terminal status condition.
    """

    pass


class ValidationError(PlatformAdapterError):
    """User-supplied input is incomplete or out of range.

    Carries the identity of the offending resource and field so the message
    is actionable when copied into a status condition.
    """

    def __init__(
        self,
        message: str,
        resource: str | None = None,
        field: str | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        prefix = f"{resource}: " if resource else ""
        super().__init__(f"{prefix}{message}")

    @classmethod
    def from_pydantic(
        cls, exc: pydantic.ValidationError, resource: str | None = None
    ) -> ValidationError:
        """Wrap a pydantic validation failure, keeping the first bad field."""
        errors = exc.errors()
        if not errors:
            return cls(str(exc), resource=resource)
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", str(exc))
        if field:
            message = f"{field}: {message}"
        return cls(message, resource=resource, field=field or None)


class TemplateNamingError(PlatformAdapterError):
    """A machine template name could not be derived from its spec."""

    pass
