"""Platform adapter interface.

Each supported infrastructure platform has exactly one PlatformAdapter
subclass. The orchestrator selects the adapter once per cluster from the
platform type tag and calls only that adapter's methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from kubernetes.client import V1DeploymentSpec, V1PolicyRule

    from hcp_platform.clients.base import K8sClient
    from hcp_platform.config import HCPPlatformConfig
    from hcp_platform.models import HostedClusterSpec, NodePoolSpec
    from hcp_platform.platforms.maas.models import MachineTemplate
    from hcp_platform.upsert import OperationResult


class PlatformType(str, Enum):
    """Platform type tag carried by cluster and node pool specs."""

    MAAS = "MAAS"
    NONE = "None"


class PlatformAdapter(ABC):
    """Translates a generic hosted cluster into provider-specific objects.

    Every mutating method is safe to call again with unchanged input: it
    reads current state and writes only when the desired state differs.
    """

    platform_type: ClassVar[PlatformType]

    def __init__(self, k8s: K8sClient, config: HCPPlatformConfig) -> None:
        self._k8s = k8s
        self._config = config

    @abstractmethod
    def reconcile_infrastructure(
        self, cluster: HostedClusterSpec, namespace: str
    ) -> dict[str, Any] | None:
        """Create or update the cluster-level infrastructure descriptor.

        Returns the reconciled object, or None for platforms without one.
        """

    @abstractmethod
    def propagate_credentials(
        self, cluster: HostedClusterSpec, namespace: str
    ) -> OperationResult | None:
        """Copy the cluster's credentials into the control plane namespace."""

    @abstractmethod
    def build_deployment_spec(
        self, cluster: HostedClusterSpec
    ) -> V1DeploymentSpec | None:
        """Build the deployment spec for the platform's provisioning controller."""

    @abstractmethod
    def derive_machine_template(self, node_pool: NodePoolSpec) -> MachineTemplate | None:
        """Derive the machine template for a node pool."""

    @abstractmethod
    def delete_credentials(self, cluster: HostedClusterSpec, namespace: str) -> None:
        """Delete the credential copy. Deleting an absent copy succeeds."""

    def policy_rules(self) -> list[V1PolicyRule]:
        """Access rules the provider controller needs beyond the default set."""
        return []
