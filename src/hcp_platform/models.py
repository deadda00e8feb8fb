"""Pydantic models for hosted clusters and node pools.

The platform block of a cluster or node pool is a tagged union keyed on
`type`: exactly one platform variant is present, and adapters check for
their own variant instead of probing optional per-platform fields.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from hcp_platform.platforms.base import PlatformType
from hcp_platform.platforms.maas.models import MAASNodePoolPlatform, MAASPlatformSpec
from hcp_platform.utils.errors import MisconfiguredPlatformError, ValidationError


class APIEndpoint(BaseModel):
    """Address of the hosted control plane API server."""

    host: str = Field(..., min_length=1, description="Host name or IP address")
    port: int = Field(..., ge=1, le=65535, description="Port number")


class NonePlatformSpec(BaseModel):
    """Cluster without a managed infrastructure provider."""

    type: Literal[PlatformType.NONE] = PlatformType.NONE


class NoneNodePoolPlatform(BaseModel):
    """Node pool without a managed infrastructure provider."""

    type: Literal[PlatformType.NONE] = PlatformType.NONE


ClusterPlatform = Annotated[
    Union[MAASPlatformSpec, NonePlatformSpec],
    Field(discriminator="type"),
]

NodePoolPlatform = Annotated[
    Union[MAASNodePoolPlatform, NoneNodePoolPlatform],
    Field(discriminator="type"),
]


class HostedClusterSpec(BaseModel):
    """Read-only view of a hosted cluster for one reconcile pass."""

    name: str = Field(..., min_length=1, description="Cluster name")
    namespace: str = Field(..., min_length=1, description="Cluster namespace")
    platform: ClusterPlatform | None = Field(None, description="Platform-specific block")
    control_plane_endpoint: APIEndpoint = Field(..., description="Control plane API endpoint")

    @property
    def platform_type(self) -> PlatformType | None:
        """The platform type tag, or None when no platform block is set."""
        return self.platform.type if self.platform is not None else None

    @classmethod
    def from_cr(cls, cr: dict[str, Any]) -> HostedClusterSpec:
        """Build from a HostedCluster object.

        The control plane endpoint is read from `status.controlPlaneEndpoint`,
        which is where the orchestrator publishes it.
        """
        metadata = cr.get("metadata") or {}
        spec = cr.get("spec") or {}
        status = cr.get("status") or {}
        resource = f"HostedCluster {metadata.get('namespace')}/{metadata.get('name')}"

        platform = _cluster_platform_from_cr(spec.get("platform") or {}, resource)
        endpoint = status.get("controlPlaneEndpoint") or {}
        try:
            return cls(
                name=metadata.get("name", ""),
                namespace=metadata.get("namespace", ""),
                platform=platform,
                control_plane_endpoint=APIEndpoint(
                    host=endpoint.get("host", ""),
                    port=endpoint.get("port", 0),
                ),
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, resource=resource)


class NodePoolSpec(BaseModel):
    """Read-only view of a node pool for one reconcile pass."""

    name: str = Field(..., min_length=1, description="Node pool name")
    namespace: str = Field(..., min_length=1, description="Node pool namespace")
    cluster_name: str = Field(..., min_length=1, description="Owning hosted cluster")
    platform: NodePoolPlatform | None = Field(None, description="Platform-specific block")

    @classmethod
    def from_cr(cls, cr: dict[str, Any]) -> NodePoolSpec:
        """Build from a NodePool object."""
        metadata = cr.get("metadata") or {}
        spec = cr.get("spec") or {}
        resource = f"NodePool {metadata.get('namespace')}/{metadata.get('name')}"

        platform_cr = spec.get("platform") or {}
        platform: MAASNodePoolPlatform | NoneNodePoolPlatform | None = None
        platform_type = platform_cr.get("type")
        if platform_type == PlatformType.MAAS.value:
            platform = MAASNodePoolPlatform.from_cr(platform_cr.get("maas") or {})
        elif platform_type == PlatformType.NONE.value:
            platform = NoneNodePoolPlatform()
        elif platform_type:
            raise MisconfiguredPlatformError(
                f"{resource}: unsupported platform type '{platform_type}'"
            )

        try:
            return cls(
                name=metadata.get("name", ""),
                namespace=metadata.get("namespace", ""),
                cluster_name=spec.get("clusterName", ""),
                platform=platform,
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, resource=resource)


def _cluster_platform_from_cr(
    platform_cr: dict[str, Any], resource: str
) -> MAASPlatformSpec | NonePlatformSpec | None:
    platform_type = platform_cr.get("type")
    if not platform_type:
        return None
    if platform_type == PlatformType.MAAS.value:
        maas = platform_cr.get("maas")
        if maas is None:
            raise MisconfiguredPlatformError(f"{resource}: empty MAAS platform spec")
        return MAASPlatformSpec.from_cr(maas)
    if platform_type == PlatformType.NONE.value:
        return NonePlatformSpec()
    raise MisconfiguredPlatformError(f"{resource}: unsupported platform type '{platform_type}'")
