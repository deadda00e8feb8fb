"""Tests for MaasCluster reconciliation."""

import pytest

from hcp_platform.models import HostedClusterSpec, NonePlatformSpec
from hcp_platform.platforms.maas.crds import MaasCRDs
from hcp_platform.platforms.maas.infrastructure import InfrastructureReconciler
from hcp_platform.utils.errors import ConflictError, MisconfiguredPlatformError
from hcp_platform.utils.labels import HCPAnnotations, HCPLabels

CUSTOM_DNS = HCPAnnotations.MAAS_CUSTOM_DNS_PROVIDED


class TestInfrastructureReconciler:
    """Test InfrastructureReconciler against the in-memory client."""

    @pytest.fixture
    def reconciler(self, fake_k8s, config) -> InfrastructureReconciler:
        return InfrastructureReconciler(fake_k8s, config)

    def _stored(self, fake_k8s) -> dict:
        return fake_k8s.objects[("MaasCluster", "clusters-demo", "demo")]

    def test_creates_maas_cluster(self, reconciler, fake_k8s, maas_cluster) -> None:
        obj = reconciler.reconcile(maas_cluster, "clusters-demo")

        assert obj["kind"] == "MaasCluster"
        assert obj["apiVersion"] == "infrastructure.cluster.x-k8s.io/v1beta1"
        assert obj["spec"] == {
            "dnsDomain": "example.test",
            "controlPlaneEndpoint": {"host": "10.0.0.10", "port": 6443},
        }
        assert obj["metadata"]["annotations"] == {CUSTOM_DNS: ""}
        assert obj["metadata"]["labels"][HCPLabels.CLUSTER] == "demo"
        assert obj["metadata"]["labels"][HCPLabels.PLATFORM] == "maas"
        assert fake_k8s.writes == [("create", "MaasCluster", "demo")]

    def test_default_dns_domain(self, reconciler, maas_cluster) -> None:
        """A cluster without a DNS domain gets the configured default."""
        maas_cluster.platform.dns_domain = None

        obj = reconciler.reconcile(maas_cluster, "clusters-demo")

        assert obj["spec"]["dnsDomain"] == "maas.local"

    def test_second_reconcile_writes_nothing(self, reconciler, fake_k8s, maas_cluster) -> None:
        reconciler.reconcile(maas_cluster, "clusters-demo")
        reconciler.reconcile(maas_cluster, "clusters-demo")

        assert len(fake_k8s.writes) == 1

    def test_drift_is_corrected(self, reconciler, fake_k8s, maas_cluster) -> None:
        """Edits made outside the adapter are overwritten on the next pass."""
        reconciler.reconcile(maas_cluster, "clusters-demo")
        self._stored(fake_k8s)["spec"]["dnsDomain"] = "edited.test"

        obj = reconciler.reconcile(maas_cluster, "clusters-demo")

        assert obj["spec"]["dnsDomain"] == "example.test"
        assert fake_k8s.writes[-1] == ("replace", "MaasCluster", "demo")

    def test_removed_annotation_is_restored(self, reconciler, fake_k8s, maas_cluster) -> None:
        reconciler.reconcile(maas_cluster, "clusters-demo")
        del self._stored(fake_k8s)["metadata"]["annotations"][CUSTOM_DNS]

        obj = reconciler.reconcile(maas_cluster, "clusters-demo")

        assert obj["metadata"]["annotations"][CUSTOM_DNS] == ""

    def test_foreign_metadata_is_kept(self, reconciler, fake_k8s, maas_cluster) -> None:
        """Annotations and labels set by other controllers survive an update."""
        fake_k8s.add_object(
            MaasCRDs.MAAS_CLUSTER,
            {
                "apiVersion": MaasCRDs.MAAS_CLUSTER.api_version,
                "kind": "MaasCluster",
                "metadata": {
                    "name": "demo",
                    "namespace": "clusters-demo",
                    "annotations": {"other/annotation": "x"},
                    "labels": {"other": "y"},
                },
                "spec": {"dnsDomain": "old.test"},
            },
        )

        obj = reconciler.reconcile(maas_cluster, "clusters-demo")

        assert obj["metadata"]["annotations"] == {"other/annotation": "x", CUSTOM_DNS: ""}
        assert obj["metadata"]["labels"]["other"] == "y"

    def test_endpoint_change_updates_object(self, reconciler, maas_cluster) -> None:
        reconciler.reconcile(maas_cluster, "clusters-demo")
        maas_cluster.control_plane_endpoint.port = 443

        obj = reconciler.reconcile(maas_cluster, "clusters-demo")

        assert obj["spec"]["controlPlaneEndpoint"] == {"host": "10.0.0.10", "port": 443}

    def test_conflict_is_retried(self, reconciler, fake_k8s, maas_cluster) -> None:
        reconciler.reconcile(maas_cluster, "clusters-demo")
        self._stored(fake_k8s)["spec"]["dnsDomain"] = "edited.test"
        fake_k8s.write_errors.append(ConflictError("MaasCluster", "demo", "clusters-demo"))

        obj = reconciler.reconcile(maas_cluster, "clusters-demo")

        assert obj["spec"]["dnsDomain"] == "example.test"

    def test_missing_maas_block(self, reconciler, fake_k8s, maas_cluster) -> None:
        """A cluster without a MAAS block is rejected before any read."""
        cluster = HostedClusterSpec(
            name="demo",
            namespace="clusters",
            platform=NonePlatformSpec(),
            control_plane_endpoint=maas_cluster.control_plane_endpoint,
        )

        with pytest.raises(MisconfiguredPlatformError, match="empty MAAS platform spec"):
            reconciler.reconcile(cluster, "clusters-demo")

        assert fake_k8s.reads == 0
        assert fake_k8s.writes == []
