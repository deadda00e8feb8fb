"""Derivation of MAAS machine templates from node pool specs.

Each resolved field of the machine spec is described by one row of the
precedence table: a default, and an ordered list of node pool fields that
override it. The first source that is set wins. An unset source keeps the
default; it never clears it.

Templates are content addressed. The name is a digest of the resolved
spec, so node pools with the same effective spec share a template and any
change to a resolved field produces a new name. The node scaling controller
treats a new name as "roll the nodes".
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from hcp_platform.platforms.maas.models import (
    MaasMachineSpec,
    MAASNodePoolPlatform,
    MachineTemplate,
)
from hcp_platform.utils.errors import TemplateNamingError

logger = logging.getLogger(__name__)

DEFAULT_MACHINE_IMAGE = "ubuntu/focal"
DEFAULT_MIN_CPU = 1
DEFAULT_MIN_MEMORY_MB = 1024

TEMPLATE_NAME_PREFIX = "maas"
TEMPLATE_DIGEST_LENGTH = 16

_DNS_SUBDOMAIN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")

TemplateNameGenerator = Callable[[MaasMachineSpec], str]


def _is_set(value: Any) -> bool:
    return value is not None and value != "" and value != []


@dataclass(frozen=True)
class FieldPrecedence:
    """How one machine spec field is resolved from a node pool."""

    target: str
    default: Any
    sources: tuple[str, ...]
    is_set: Callable[[Any], bool] = field(default=_is_set, compare=False)

    def resolve(self, node_pool: MAASNodePoolPlatform | None) -> Any:
        """First set source value, else the default."""
        if node_pool is not None:
            for source in self.sources:
                value = getattr(node_pool, source)
                if self.is_set(value):
                    return _copy(value)
        return _copy(self.default)


def _copy(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_copy(deep=True)
    if isinstance(value, list):
        return list(value)
    return value


def machine_spec_precedence(
    default_image: str = DEFAULT_MACHINE_IMAGE,
) -> tuple[FieldPrecedence, ...]:
    """The precedence table for MAAS machine specs."""
    return (
        FieldPrecedence("image", default_image, ("image",)),
        FieldPrecedence("min_cpu", DEFAULT_MIN_CPU, ("min_cpu",)),
        FieldPrecedence("min_memory_in_mb", DEFAULT_MIN_MEMORY_MB, ("min_memory",)),
        FieldPrecedence("tags", [], ("tags",)),
        FieldPrecedence("resource_pool", None, ("resource_pool",)),
        # failureDomain is the more specific field; zone is its fallback
        FieldPrecedence("failure_domain", None, ("failure_domain", "zone")),
        FieldPrecedence("min_disk_size_in_gb", None, ("min_disk_size",)),
        FieldPrecedence(
            "lxd", None, ("lxd",), is_set=lambda v: v is not None and v.enabled
        ),
        FieldPrecedence(
            "static_ip", None, ("static_ip",), is_set=lambda v: v is not None and bool(v.ip)
        ),
    )


def resolve_machine_spec(
    node_pool: MAASNodePoolPlatform | None,
    default_image: str = DEFAULT_MACHINE_IMAGE,
) -> MaasMachineSpec:
    """Apply the precedence table to a node pool's MAAS block."""
    resolved = {row.target: row.resolve(node_pool) for row in machine_spec_precedence(default_image)}
    return MaasMachineSpec(**resolved)


def canonical_spec_json(spec: MaasMachineSpec) -> str:
    """Serialize a spec with sorted keys and no optional whitespace.

    Key order never depends on how the spec was built, so equal specs always
    serialize identically. List order (tags, nameservers) is significant.
    """
    return json.dumps(spec.to_cr(), sort_keys=True, separators=(",", ":"))


def generate_template_name(spec: MaasMachineSpec) -> str:
    """Content-derived template name, e.g. maas-3f2a9c0d1b7e4a56."""
    digest = hashlib.sha256(canonical_spec_json(spec).encode("utf-8")).hexdigest()
    return f"{TEMPLATE_NAME_PREFIX}-{digest[:TEMPLATE_DIGEST_LENGTH]}"


def derive_machine_template(
    node_pool: MAASNodePoolPlatform | None,
    default_image: str = DEFAULT_MACHINE_IMAGE,
    name_generator: TemplateNameGenerator = generate_template_name,
) -> MachineTemplate:
    """Derive the machine template for a node pool.

    Raises:
        TemplateNamingError: If the name generator fails or returns a name
            that is not a valid Kubernetes object name.
    """
    spec = resolve_machine_spec(node_pool, default_image)

    try:
        name = name_generator(spec)
    except Exception as e:
        raise TemplateNamingError(f"failed to generate template name: {e}") from e

    if not name or len(name) > 253 or not _DNS_SUBDOMAIN.match(name):
        raise TemplateNamingError(f"generated template name '{name}' is not a valid object name")

    logger.debug(f"Derived MAAS machine template {name}")
    return MachineTemplate(name=name, spec=spec)
