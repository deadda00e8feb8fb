"""One-way sync of MAAS credentials into the control plane namespace.

The user's credential secret is the source of truth. Its copy in the
control plane namespace is what the provider controller reads. The sync
contract is:

- the source must carry every required key, checked before anything is
  read or written;
- an absent copy is created from the source data;
- a present copy is fully replaced (all keys, not merged) when
  credential_diff() reports any required key whose bytes differ;
- otherwise nothing is written, so consumers are not restarted needlessly.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import TYPE_CHECKING, Any

from hcp_platform.config import CredentialNaming
from hcp_platform.platforms.maas.models import (
    REQUIRED_CREDENTIAL_KEYS,
    CredentialDescriptor,
)
from hcp_platform.upsert import OperationResult, create_or_update, read_or_none
from hcp_platform.utils.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from hcp_platform.clients.base import K8sClient

logger = logging.getLogger(__name__)

MAX_CREDENTIAL_VALUE_LENGTH = 255


def credential_copy_name(
    cluster_name: str,
    identity_name: str,
    naming: CredentialNaming,
    platform: str = "maas",
) -> str:
    """Name of the credential copy in the control plane namespace."""
    if naming == CredentialNaming.DERIVED:
        return f"{cluster_name}-{platform}-credentials"
    return identity_name


def credential_diff(
    source: dict[str, str], existing: dict[str, str] | None
) -> list[str]:
    """Required keys whose values differ between source and existing copy.

    Values are compared in their base64 form, which is equivalent to a
    byte-for-byte comparison of the decoded values.
    """
    existing = existing or {}
    return [key for key in REQUIRED_CREDENTIAL_KEYS if source.get(key) != existing.get(key)]


def validate_credentials(source: CredentialDescriptor | None) -> CredentialDescriptor:
    """Check that a credential descriptor is usable.

    Raises:
        ValidationError: If the descriptor is missing, lacks a required key,
            or a required value is empty, not base64, or too long.
    """
    if source is None:
        raise ValidationError("MAAS credentials secret is missing", resource="Secret")

    resource = f"Secret {source.namespace}/{source.name}"
    missing = source.missing_keys()
    if missing:
        raise ValidationError(
            f"MAAS credentials secret is missing required key: {missing[0]}",
            resource=resource,
            field=missing[0],
        )

    for key in REQUIRED_CREDENTIAL_KEYS:
        try:
            value = base64.b64decode(source.data[key], validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            raise ValidationError(f"key '{key}' is not valid base64 text", resource, key)
        if not value.strip():
            raise ValidationError(f"key '{key}' is empty", resource, key)
        if len(value) > MAX_CREDENTIAL_VALUE_LENGTH:
            raise ValidationError(
                f"key '{key}' exceeds {MAX_CREDENTIAL_VALUE_LENGTH} characters",
                resource,
                key,
            )
    return source


class CredentialPropagator:
    """Keeps a credential copy in sync with its source secret."""

    def __init__(self, k8s: K8sClient, attempts: int = 3) -> None:
        self._k8s = k8s
        self._attempts = attempts

    def propagate(
        self,
        source: CredentialDescriptor | None,
        namespace: str,
        name: str,
        labels: dict[str, str] | None = None,
    ) -> OperationResult:
        """Create or update the copy named `name` in `namespace`.

        Returns:
            CREATED, UPDATED, or UNCHANGED when no write was needed.
        """
        data = dict(validate_credentials(source).data)
        labels = dict(labels or {})

        def read() -> Any:
            return read_or_none(lambda: self._k8s.get_secret(name, namespace))

        def create() -> Any:
            logger.info(f"Creating MAAS credentials secret {namespace}/{name}")
            return self._k8s.create_secret(
                name=name,
                namespace=namespace,
                data=data,
                labels=labels,
                string_data=False,
            )

        def needs_update(existing: Any) -> bool:
            changed = credential_diff(data, existing.data)
            if changed:
                logger.info(
                    f"MAAS credentials secret {namespace}/{name} is stale "
                    f"(changed: {', '.join(changed)})"
                )
            return bool(changed)

        def update(existing: Any) -> Any:
            merged_labels = dict(existing.metadata.labels or {})
            merged_labels.update(labels)
            return self._k8s.replace_secret(
                name=name,
                namespace=namespace,
                data=data,
                labels=merged_labels,
                annotations=existing.metadata.annotations,
                resource_version=existing.metadata.resource_version,
            )

        _, result = create_or_update(
            read, create, update, needs_update, attempts=self._attempts
        )
        if result == OperationResult.UNCHANGED:
            logger.debug(f"MAAS credentials secret {namespace}/{name} is up to date")
        return result

    def delete(self, name: str, namespace: str) -> bool:
        """Delete the copy. Returns False when it was already absent."""
        try:
            self._k8s.delete_secret(name, namespace)
        except NotFoundError:
            logger.debug(f"MAAS credentials secret {namespace}/{name} already deleted")
            return False
        logger.info(f"Deleted MAAS credentials secret {namespace}/{name}")
        return True
