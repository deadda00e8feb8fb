"""Reconciliation of the MaasCluster infrastructure descriptor."""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from hcp_platform.clients.base import as_dict
from hcp_platform.platforms.maas.crds import MaasCRDs
from hcp_platform.platforms.maas.models import require_maas_platform
from hcp_platform.upsert import OperationResult, create_or_update, read_or_none
from hcp_platform.utils.labels import HCPAnnotations, HCPLabels

if TYPE_CHECKING:
    from hcp_platform.clients.base import K8sClient
    from hcp_platform.config import HCPPlatformConfig
    from hcp_platform.models import HostedClusterSpec

logger = logging.getLogger(__name__)


class InfrastructureReconciler:
    """Creates or updates the one MaasCluster of a hosted cluster.

    The desired state is derived from the cluster spec on every pass, so
    edits to the DNS domain or endpoint (by the user or anyone else) are
    corrected on the next reconcile. The object is never deleted here; it
    goes away with its parent cluster.
    """

    def __init__(self, k8s: K8sClient, config: HCPPlatformConfig) -> None:
        self._k8s = k8s
        self._config = config

    def desired_spec(self, cluster: HostedClusterSpec) -> dict[str, Any]:
        """The MaasCluster spec derived from the cluster spec."""
        maas = require_maas_platform(cluster, "reconcile MAAS CAPI cluster")
        return {
            "dnsDomain": maas.dns_domain or self._config.default_dns_domain,
            "controlPlaneEndpoint": {
                "host": cluster.control_plane_endpoint.host,
                "port": cluster.control_plane_endpoint.port,
            },
        }

    def reconcile(self, cluster: HostedClusterSpec, namespace: str) -> dict[str, Any]:
        """Create or update the MaasCluster and return it.

        Raises:
            MisconfiguredPlatformError: If the cluster has no MAAS block.
        """
        spec = self.desired_spec(cluster)
        labels = HCPLabels.owned_by(cluster.name, "maas")
        crd = MaasCRDs.MAAS_CLUSTER

        def apply_desired(current: dict[str, Any]) -> dict[str, Any]:
            desired = copy.deepcopy(current)
            metadata = desired.setdefault("metadata", {})
            metadata["annotations"] = {
                **(metadata.get("annotations") or {}),
                HCPAnnotations.MAAS_CUSTOM_DNS_PROVIDED: "",
            }
            metadata["labels"] = {**(metadata.get("labels") or {}), **labels}
            desired["spec"] = copy.deepcopy(spec)
            return desired

        def read() -> dict[str, Any] | None:
            current = read_or_none(lambda: self._k8s.get(crd, cluster.name, namespace))
            return as_dict(current) if current is not None else None

        def create() -> dict[str, Any]:
            logger.info(f"Creating {crd.kind} {namespace}/{cluster.name}")
            body = apply_desired(
                {
                    "apiVersion": crd.api_version,
                    "kind": crd.kind,
                    "metadata": {"name": cluster.name, "namespace": namespace},
                }
            )
            return as_dict(self._k8s.create(crd, body=body, namespace=namespace))

        def needs_update(current: dict[str, Any]) -> bool:
            return apply_desired(current) != current

        def update(current: dict[str, Any]) -> dict[str, Any]:
            logger.info(f"Updating drifted {crd.kind} {namespace}/{cluster.name}")
            return as_dict(self._k8s.replace(crd, body=apply_desired(current), namespace=namespace))

        obj, result = create_or_update(
            read, create, update, needs_update, attempts=self._config.conflict_retries
        )
        if result == OperationResult.UNCHANGED:
            logger.debug(f"{crd.kind} {namespace}/{cluster.name} is up to date")
        return obj
