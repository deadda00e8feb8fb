"""Shared fixtures for platform adapter tests."""

import base64
import copy
from typing import Any

import pytest
from kubernetes import client

from hcp_platform.clients.base import CRDDefinition
from hcp_platform.config import HCPPlatformConfig
from hcp_platform.models import APIEndpoint, HostedClusterSpec
from hcp_platform.platforms.maas.models import MAASIdentityReference, MAASPlatformSpec
from hcp_platform.utils.errors import ConflictError, NotFoundError, ResourceExistsError


class FakeK8sClient:
    """In-memory stand-in for K8sClient.

    Stores secrets and custom resources, bumps resourceVersion on every
    write and records each write in `writes` so tests can assert that an
    unchanged reconcile wrote nothing. Exceptions queued in `write_errors`
    are raised by the next writes, in order.
    """

    def __init__(self) -> None:
        self.secrets: dict[tuple[str, str], dict[str, Any]] = {}
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.writes: list[tuple[str, str, str]] = []
        self.write_errors: list[Exception] = []
        self.reads = 0
        self._version = 0

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _record(self, verb: str, kind: str, name: str) -> None:
        if self.write_errors:
            raise self.write_errors.pop(0)
        self.writes.append((verb, kind, name))

    # Seeding helpers (not counted as writes)
    def add_secret(self, name: str, namespace: str, values: dict[str, str]) -> None:
        self.secrets[(namespace, name)] = {
            "data": {k: base64.b64encode(v.encode()).decode() for k, v in values.items()},
            "labels": {},
            "annotations": None,
            "resource_version": self._next_version(),
        }

    def add_object(self, crd: CRDDefinition, body: dict[str, Any]) -> None:
        body = copy.deepcopy(body)
        metadata = body["metadata"]
        metadata["resourceVersion"] = self._next_version()
        self.objects[(crd.kind, metadata["namespace"], metadata["name"])] = body

    # Custom resources
    def get(self, crd: CRDDefinition, name: str, namespace: str) -> dict[str, Any]:
        self.reads += 1
        key = (crd.kind, namespace, name)
        if key not in self.objects:
            raise NotFoundError(crd.kind, name, namespace)
        return copy.deepcopy(self.objects[key])

    def create(self, crd: CRDDefinition, body: dict[str, Any], namespace: str) -> dict[str, Any]:
        name = body["metadata"]["name"]
        key = (crd.kind, namespace, name)
        if key in self.objects:
            raise ResourceExistsError(crd.kind, name, namespace)
        self._record("create", crd.kind, name)
        stored = copy.deepcopy(body)
        stored["metadata"]["resourceVersion"] = self._next_version()
        self.objects[key] = stored
        return copy.deepcopy(stored)

    def replace(self, crd: CRDDefinition, body: dict[str, Any], namespace: str) -> dict[str, Any]:
        name = body["metadata"]["name"]
        key = (crd.kind, namespace, name)
        if key not in self.objects:
            raise NotFoundError(crd.kind, name, namespace)
        if body["metadata"].get("resourceVersion") != self.objects[key]["metadata"]["resourceVersion"]:
            raise ConflictError(crd.kind, name, namespace)
        self._record("replace", crd.kind, name)
        stored = copy.deepcopy(body)
        stored["metadata"]["resourceVersion"] = self._next_version()
        self.objects[key] = stored
        return copy.deepcopy(stored)

    # Secrets
    def get_secret(self, name: str, namespace: str) -> client.V1Secret:
        self.reads += 1
        stored = self.secrets.get((namespace, name))
        if stored is None:
            raise NotFoundError("Secret", name, namespace)
        return client.V1Secret(
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=namespace,
                labels=dict(stored["labels"] or {}),
                annotations=copy.deepcopy(stored["annotations"]),
                resource_version=stored["resource_version"],
            ),
            data=dict(stored["data"]),
            type="Opaque",
        )

    def create_secret(
        self,
        name: str,
        namespace: str,
        data: dict[str, str],
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        string_data: bool = True,
    ) -> client.V1Secret:
        if (namespace, name) in self.secrets:
            raise ResourceExistsError("Secret", name, namespace)
        self._record("create", "Secret", name)
        if string_data:
            data = {k: base64.b64encode(v.encode()).decode() for k, v in data.items()}
        self.secrets[(namespace, name)] = {
            "data": dict(data),
            "labels": dict(labels or {}),
            "annotations": copy.deepcopy(annotations),
            "resource_version": self._next_version(),
        }
        return self.get_secret(name, namespace)

    def replace_secret(
        self,
        name: str,
        namespace: str,
        data: dict[str, str],
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        resource_version: str | None = None,
    ) -> client.V1Secret:
        stored = self.secrets.get((namespace, name))
        if stored is None:
            raise NotFoundError("Secret", name, namespace)
        if resource_version is not None and resource_version != stored["resource_version"]:
            raise ConflictError("Secret", name, namespace)
        self._record("replace", "Secret", name)
        self.secrets[(namespace, name)] = {
            "data": dict(data),
            "labels": dict(labels or {}),
            "annotations": copy.deepcopy(annotations),
            "resource_version": self._next_version(),
        }
        return self.get_secret(name, namespace)

    def delete_secret(self, name: str, namespace: str) -> None:
        if (namespace, name) not in self.secrets:
            raise NotFoundError("Secret", name, namespace)
        self._record("delete", "Secret", name)
        del self.secrets[(namespace, name)]


@pytest.fixture
def fake_k8s() -> FakeK8sClient:
    """Create an empty in-memory Kubernetes client."""
    return FakeK8sClient()


@pytest.fixture
def config() -> HCPPlatformConfig:
    """Create a configuration with the built-in defaults."""
    return HCPPlatformConfig(
        capi_provider_image="registry.test/maas-provider:v1",
        default_dns_domain="maas.local",
        default_machine_image="ubuntu/focal",
        conflict_retries=3,
    )


@pytest.fixture
def maas_cluster() -> HostedClusterSpec:
    """Create a MAAS hosted cluster with an identity reference."""
    return HostedClusterSpec(
        name="demo",
        namespace="clusters",
        platform=MAASPlatformSpec(
            identity_ref=MAASIdentityReference(name="maas-creds"),
            dns_domain="example.test",
        ),
        control_plane_endpoint=APIEndpoint(host="10.0.0.10", port=6443),
    )


@pytest.fixture
def credentials() -> dict[str, str]:
    """Plain text values of a complete MAAS credential secret."""
    return {
        "endpoint": "http://maas.example.test:5240/MAAS",
        "api-key": "consumer:token:secret",
    }
