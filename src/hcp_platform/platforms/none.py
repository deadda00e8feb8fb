"""Adapter for clusters without a managed infrastructure provider."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hcp_platform.platforms.base import PlatformAdapter, PlatformType

if TYPE_CHECKING:
    from hcp_platform.models import HostedClusterSpec, NodePoolSpec


class NonePlatform(PlatformAdapter):
    """Nodes are provisioned by the user; there is nothing to reconcile."""

    platform_type = PlatformType.NONE

    def reconcile_infrastructure(self, cluster: HostedClusterSpec, namespace: str) -> None:
        return None

    def propagate_credentials(self, cluster: HostedClusterSpec, namespace: str) -> None:
        return None

    def build_deployment_spec(self, cluster: HostedClusterSpec) -> None:
        return None

    def derive_machine_template(self, node_pool: NodePoolSpec) -> None:
        return None

    def delete_credentials(self, cluster: HostedClusterSpec, namespace: str) -> None:
        return None
