"""MAAS implementation of the platform adapter interface."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from hcp_platform.platforms.base import PlatformAdapter, PlatformType
from hcp_platform.platforms.maas.credentials import (
    CredentialPropagator,
    credential_copy_name,
    validate_credentials,
)
from hcp_platform.platforms.maas.deployment import build_deployment_spec
from hcp_platform.platforms.maas.infrastructure import InfrastructureReconciler
from hcp_platform.platforms.maas.machine_template import derive_machine_template
from hcp_platform.platforms.maas.models import (
    CredentialDescriptor,
    MAASNodePoolPlatform,
    MAASPlatformSpec,
    MachineTemplate,
    require_maas_platform,
)
from hcp_platform.upsert import OperationResult
from hcp_platform.utils.errors import (
    MisconfiguredPlatformError,
    NotFoundError,
    ValidationError,
)
from hcp_platform.utils.labels import HCPLabels

if TYPE_CHECKING:
    from kubernetes.client import V1DeploymentSpec

    from hcp_platform.clients.base import K8sClient
    from hcp_platform.config import HCPPlatformConfig
    from hcp_platform.models import HostedClusterSpec, NodePoolSpec

logger = logging.getLogger(__name__)

PLATFORM_LABEL_VALUE = "maas"


class MAASPlatform(PlatformAdapter):
    """Drives a hosted cluster on MAAS through the MAAS Cluster API provider."""

    platform_type = PlatformType.MAAS

    def __init__(self, k8s: K8sClient, config: HCPPlatformConfig) -> None:
        super().__init__(k8s, config)
        self._infrastructure = InfrastructureReconciler(k8s, config)
        self._propagator = CredentialPropagator(k8s, attempts=config.conflict_retries)

    def credentials_secret_name(self, cluster: HostedClusterSpec) -> str:
        """Name of the credential copy in the control plane namespace."""
        maas = require_maas_platform(cluster, "resolve MAAS credentials")
        return credential_copy_name(
            cluster.name,
            maas.identity_ref.name,
            self._config.credential_naming,
            platform=PLATFORM_LABEL_VALUE,
        )

    def reconcile_infrastructure(
        self, cluster: HostedClusterSpec, namespace: str
    ) -> dict[str, Any]:
        """Create or update the MaasCluster.

        The referenced credential secret must be complete before the
        infrastructure object is created or updated.

        Raises:
            MisconfiguredPlatformError: If the cluster has no MAAS block.
            ValidationError: If the source secret is absent or incomplete.
        """
        maas = require_maas_platform(cluster, "reconcile MAAS CAPI cluster")
        validate_credentials(self._read_source_credentials(cluster, maas))
        return self._infrastructure.reconcile(cluster, namespace)

    def propagate_credentials(
        self, cluster: HostedClusterSpec, namespace: str
    ) -> OperationResult:
        """Copy the cluster's MAAS credential secret into `namespace`.

        Raises:
            MisconfiguredPlatformError: If the cluster has no MAAS block.
            ValidationError: If the source secret is absent or incomplete.
        """
        maas = require_maas_platform(cluster, "reconcile MAAS credentials")
        source = self._read_source_credentials(cluster, maas)
        return self._propagator.propagate(
            source,
            namespace=namespace,
            name=self.credentials_secret_name(cluster),
            labels=HCPLabels.owned_by(cluster.name, PLATFORM_LABEL_VALUE),
        )

    def _read_source_credentials(
        self, cluster: HostedClusterSpec, maas: MAASPlatformSpec
    ) -> CredentialDescriptor:
        name = maas.identity_ref.name
        try:
            secret = self._k8s.get_secret(name, cluster.namespace)
        except NotFoundError:
            logger.warning(
                f"HostedCluster {cluster.namespace}/{cluster.name} references missing "
                f"MAAS credentials secret {name}"
            )
            raise ValidationError(
                f"MAAS credentials secret {cluster.namespace}/{name} not found",
                resource=f"HostedCluster {cluster.namespace}/{cluster.name}",
                field="identityRef",
            )
        return CredentialDescriptor.from_secret(secret)

    def build_deployment_spec(self, cluster: HostedClusterSpec) -> V1DeploymentSpec:
        return build_deployment_spec(
            cluster,
            image=self._config.capi_provider_image,
            credentials_secret_name=self.credentials_secret_name(cluster),
        )

    def derive_machine_template(self, node_pool: NodePoolSpec) -> MachineTemplate:
        """Derive the machine template for a MAAS node pool.

        A node pool without a platform block gets the all-defaults template.
        """
        platform = node_pool.platform
        if platform is not None and not isinstance(platform, MAASNodePoolPlatform):
            raise MisconfiguredPlatformError(
                f"failed to derive MAAS machine template for NodePool "
                f"{node_pool.namespace}/{node_pool.name}, platform type is {platform.type.value}"
            )
        return derive_machine_template(platform, default_image=self._config.default_machine_image)

    def delete_credentials(self, cluster: HostedClusterSpec, namespace: str) -> None:
        name = self.credentials_secret_name(cluster)
        if not self._propagator.delete(name, namespace):
            logger.debug(f"No MAAS credentials to delete for HostedCluster {cluster.name}")
