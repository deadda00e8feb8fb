"""CRD definitions for the MAAS platform."""

from hcp_platform.clients.base import CRDDefinition


class MaasCRDs:
    """Cluster API provider for MAAS CRD definitions."""

    # Cluster-level infrastructure descriptor
    MAAS_CLUSTER = CRDDefinition(
        group="infrastructure.cluster.x-k8s.io",
        version="v1beta1",
        plural="maasclusters",
        kind="MaasCluster",
    )

    # Node machine template, one per distinct effective node pool spec
    MAAS_MACHINE_TEMPLATE = CRDDefinition(
        group="infrastructure.cluster.x-k8s.io",
        version="v1beta1",
        plural="maasmachinetemplates",
        kind="MaasMachineTemplate",
    )
