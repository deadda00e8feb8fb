"""Pydantic models for the MAAS platform."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from hcp_platform.platforms.base import PlatformType
from hcp_platform.platforms.maas.crds import MaasCRDs
from hcp_platform.utils.errors import MisconfiguredPlatformError, ValidationError

if TYPE_CHECKING:
    from hcp_platform.models import HostedClusterSpec

# Keys a MAAS credential secret must carry
CREDENTIAL_ENDPOINT_KEY = "endpoint"
CREDENTIAL_API_KEY_KEY = "api-key"
CREDENTIAL_ZONE_KEY = "zone"
REQUIRED_CREDENTIAL_KEYS = (CREDENTIAL_ENDPOINT_KEY, CREDENTIAL_API_KEY_KEY)

MAX_TAGS = 10


def split_comma_separated(value: Any) -> Any:
    """Split "a, b,c" into ["a", "b", "c"].

    List entries are trimmed the same way and empty entries are dropped, so
    both forms of the same values compare equal. Other values pass through.
    """
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        items = [item.strip() if isinstance(item, str) else item for item in value]
        return [item for item in items if item != ""]
    return value


class MAASIdentityReference(BaseModel):
    """Reference to the secret holding MAAS credentials."""

    name: str = Field(..., min_length=1, max_length=253, description="Secret name")


class MAASPlatformSpec(BaseModel):
    """MAAS configuration of a hosted cluster."""

    type: Literal[PlatformType.MAAS] = PlatformType.MAAS
    identity_ref: MAASIdentityReference = Field(
        ..., description="Secret holding the MAAS endpoint and API key"
    )
    dns_domain: str | None = Field(None, max_length=255, description="Cluster DNS domain")
    zone: str | None = Field(None, max_length=255, description="MAAS zone")

    @classmethod
    def from_cr(cls, maas: dict[str, Any]) -> MAASPlatformSpec:
        """Build from the `spec.platform.maas` block of a HostedCluster."""
        identity_ref = maas.get("identityRef") or {}
        try:
            return cls(
                identity_ref=MAASIdentityReference(name=identity_ref.get("name", "")),
                dns_domain=maas.get("dnsDomain") or None,
                zone=maas.get("zone") or None,
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, resource="MAASPlatformSpec")


class MAASLXDConfig(BaseModel):
    """Options for creating a machine as an LXD VM on a MAAS host."""

    enabled: bool = Field(False, description="Create the machine as an LXD VM")
    storage_pool: str | None = Field(None, max_length=255, description="VM storage pool")
    network: str | None = Field(None, max_length=255, description="VM network")

    def to_cr(self) -> dict[str, Any]:
        body: dict[str, Any] = {"enabled": self.enabled}
        if self.storage_pool:
            body["storagePool"] = self.storage_pool
        if self.network:
            body["network"] = self.network
        return body


class MAASStaticIPConfig(BaseModel):
    """Static address configuration for a VM."""

    ip: str | None = Field(None, description="Static IP address")
    cidr: str | None = Field(None, description="Network CIDR")
    gateway: str | None = Field(None, description="Network gateway")
    nameservers: list[str] = Field(default_factory=list, description="DNS servers")

    @field_validator("nameservers", mode="before")
    @classmethod
    def parse_nameservers(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        return split_comma_separated(v)

    def to_cr(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.ip:
            body["ip"] = self.ip
        if self.cidr:
            body["cidr"] = self.cidr
        if self.gateway:
            body["gateway"] = self.gateway
        if self.nameservers:
            body["nameservers"] = list(self.nameservers)
        return body


class MAASNodePoolPlatform(BaseModel):
    """MAAS configuration of a node pool.

    Every field is optional. An unset field means "keep the platform
    default" when the machine template is derived, never "clear".
    """

    type: Literal[PlatformType.MAAS] = PlatformType.MAAS
    identity_ref: MAASIdentityReference | None = Field(
        None, description="Secret holding MAAS credentials"
    )
    machine_type: str | None = Field(None, max_length=255, description="MAAS machine type")
    zone: str | None = Field(None, max_length=255, description="MAAS zone")
    resource_pool: str | None = Field(None, max_length=255, description="MAAS resource pool")
    tags: list[str] = Field(
        default_factory=list, max_length=MAX_TAGS, description="MAAS tags, in order"
    )
    min_cpu: int | None = Field(None, ge=1, description="Minimum CPU count")
    min_memory: int | None = Field(None, ge=1024, description="Minimum memory in MB")
    image: str | None = Field(None, max_length=255, description="MAAS image")
    failure_domain: str | None = Field(None, max_length=255, description="Failure domain")
    min_disk_size: int | None = Field(None, ge=1, description="Minimum disk size in GB")
    lxd: MAASLXDConfig | None = Field(None, description="LXD VM hosting options")
    static_ip: MAASStaticIPConfig | None = Field(None, description="Static IP options")

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if v is None:
            return []
        return split_comma_separated(v)

    @classmethod
    def from_cr(cls, maas: dict[str, Any]) -> MAASNodePoolPlatform:
        """Build from the `spec.platform.maas` block of a NodePool."""
        identity_ref = maas.get("identityRef")
        lxd = maas.get("lxd")
        static_ip = maas.get("staticIP")
        try:
            return cls(
                identity_ref=(
                    MAASIdentityReference(name=identity_ref.get("name", ""))
                    if identity_ref
                    else None
                ),
                machine_type=maas.get("machineType") or None,
                zone=maas.get("zone") or None,
                resource_pool=maas.get("resourcePool") or None,
                tags=maas.get("tags") or [],
                min_cpu=maas.get("minCpu"),
                min_memory=maas.get("minMemory"),
                image=maas.get("image") or None,
                failure_domain=maas.get("failureDomain") or None,
                min_disk_size=maas.get("minDiskSize"),
                lxd=(
                    MAASLXDConfig(
                        enabled=bool(lxd.get("enabled", False)),
                        storage_pool=lxd.get("storagePool") or None,
                        network=lxd.get("network") or None,
                    )
                    if lxd
                    else None
                ),
                static_ip=(
                    MAASStaticIPConfig(
                        ip=static_ip.get("ip") or None,
                        cidr=static_ip.get("cidr") or None,
                        gateway=static_ip.get("gateway") or None,
                        nameservers=static_ip.get("nameservers") or [],
                    )
                    if static_ip
                    else None
                ),
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, resource="MAASNodePoolPlatform")


class CredentialDescriptor(BaseModel):
    """A MAAS credential secret as read from the cluster.

    Values are kept base64 encoded exactly as the API returns them, so a
    copy is byte-for-byte identical to its source.
    """

    name: str = Field(..., description="Secret name")
    namespace: str = Field(..., description="Secret namespace")
    data: dict[str, str] = Field(default_factory=dict, description="Base64 encoded data")

    @classmethod
    def from_secret(cls, secret: Any) -> CredentialDescriptor:
        """Build from a V1Secret."""
        return cls(
            name=secret.metadata.name,
            namespace=secret.metadata.namespace,
            data=dict(secret.data or {}),
        )

    def missing_keys(self) -> list[str]:
        """Required keys absent from the data, in declaration order."""
        return [key for key in REQUIRED_CREDENTIAL_KEYS if key not in self.data]


class MaasMachineSpec(BaseModel):
    """Fully resolved machine spec of a MAAS machine template."""

    image: str = Field(..., description="MAAS image")
    min_cpu: int = Field(..., ge=1, description="Minimum CPU count")
    min_memory_in_mb: int = Field(..., ge=1024, description="Minimum memory in MB")
    tags: list[str] = Field(default_factory=list, max_length=MAX_TAGS, description="Tags")
    resource_pool: str | None = Field(None, description="Resource pool")
    failure_domain: str | None = Field(None, description="Failure domain")
    min_disk_size_in_gb: int | None = Field(None, ge=1, description="Minimum disk in GB")
    lxd: MAASLXDConfig | None = Field(None, description="LXD VM hosting options")
    static_ip: MAASStaticIPConfig | None = Field(None, description="Static IP options")

    def to_cr(self) -> dict[str, Any]:
        """Render as the camelCase `spec.template.spec` block, omitting unset fields."""
        body: dict[str, Any] = {
            "image": self.image,
            "minCPU": self.min_cpu,
            "minMemoryInMB": self.min_memory_in_mb,
        }
        if self.tags:
            body["tags"] = list(self.tags)
        if self.resource_pool:
            body["resourcePool"] = self.resource_pool
        if self.failure_domain:
            body["failureDomain"] = self.failure_domain
        if self.min_disk_size_in_gb is not None:
            body["minDiskSizeInGB"] = self.min_disk_size_in_gb
        if self.lxd is not None:
            body["lxd"] = self.lxd.to_cr()
        if self.static_ip is not None:
            body["staticIP"] = self.static_ip.to_cr()
        return body


class MachineTemplate(BaseModel):
    """A content-addressed MAAS machine template."""

    name: str = Field(..., description="Name derived from the spec content")
    spec: MaasMachineSpec = Field(..., description="Resolved machine spec")

    def to_cr(self, namespace: str, labels: dict[str, str] | None = None) -> dict[str, Any]:
        """Render as a MaasMachineTemplate object body."""
        metadata: dict[str, Any] = {"name": self.name, "namespace": namespace}
        if labels:
            metadata["labels"] = dict(labels)
        return {
            "apiVersion": MaasCRDs.MAAS_MACHINE_TEMPLATE.api_version,
            "kind": MaasCRDs.MAAS_MACHINE_TEMPLATE.kind,
            "metadata": metadata,
            "spec": {"template": {"spec": self.spec.to_cr()}},
        }


def require_maas_platform(cluster: HostedClusterSpec, operation: str) -> MAASPlatformSpec:
    """Return the cluster's MAAS block.

    Raises:
        MisconfiguredPlatformError: If the cluster has no MAAS block.
    """
    if not isinstance(cluster.platform, MAASPlatformSpec):
        raise MisconfiguredPlatformError(
            f"failed to {operation} for HostedCluster {cluster.namespace}/{cluster.name}, "
            "empty MAAS platform spec"
        )
    return cluster.platform
