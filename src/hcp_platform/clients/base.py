"""Base Kubernetes client used by platform adapters."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.resource import Resource, ResourceInstance

from hcp_platform.config import AuthMode, HCPPlatformConfig, get_config
from hcp_platform.utils.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PlatformAdapterError,
    ResourceExistsError,
)

logger = logging.getLogger(__name__)


class CRDDefinition:
    """Definition of a Custom Resource."""

    def __init__(
        self,
        group: str,
        version: str,
        plural: str,
        kind: str,
    ) -> None:
        self.group = group
        self.version = version
        self.plural = plural
        self.kind = kind

    @property
    def api_version(self) -> str:
        """Get the full API version string."""
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version


class K8sClient:
    """Kubernetes client for the objects platform adapters own.

    Supports multiple authentication modes:
    - auto: Try in-cluster first, fall back to kubeconfig
    - kubeconfig: Use kubeconfig file with optional context
    - token: Use explicit API server URL and token

    API errors are translated into the platform adapter error taxonomy:
    404 becomes NotFoundError, 409 on create becomes ResourceExistsError and
    409 on replace becomes ConflictError.
    """

    def __init__(self, config_obj: HCPPlatformConfig | None = None) -> None:
        self._config = config_obj or get_config()
        self._api_client: client.ApiClient | None = None
        self._dynamic_client: DynamicClient | None = None
        self._core_v1: client.CoreV1Api | None = None
        self._crd_cache: dict[str, Resource] = {}

    def connect(self) -> None:
        """Establish connection to Kubernetes API."""
        try:
            self._api_client = self._create_api_client()
            self._dynamic_client = DynamicClient(self._api_client)
            self._core_v1 = client.CoreV1Api(self._api_client)
            logger.info("Connected to Kubernetes API")
        except Exception as e:
            raise AuthenticationError(f"Failed to connect to Kubernetes API: {e}")

    def disconnect(self) -> None:
        """Close connection to Kubernetes API."""
        if self._api_client:
            self._api_client.close()
            self._api_client = None
            self._dynamic_client = None
            self._core_v1 = None
            self._crd_cache.clear()
            logger.info("Disconnected from Kubernetes API")

    @property
    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self._api_client is not None

    def _create_api_client(self) -> client.ApiClient:
        """Create API client based on authentication mode."""
        auth_mode = self._config.auth_mode

        if auth_mode == AuthMode.TOKEN:
            return self._create_token_client()
        elif auth_mode == AuthMode.KUBECONFIG:
            return self._create_kubeconfig_client()
        else:  # AUTO
            return self._create_auto_client()

    def _create_token_client(self) -> client.ApiClient:
        """Create client using explicit token authentication."""
        if not self._config.api_server or not self._config.api_token:
            raise AuthenticationError(
                "api_server and api_token are required for token authentication"
            )

        configuration = client.Configuration()
        configuration.host = self._config.api_server
        configuration.api_key = {"authorization": f"Bearer {self._config.api_token}"}
        configuration.verify_ssl = True

        return client.ApiClient(configuration)

    def _create_kubeconfig_client(self) -> client.ApiClient:
        """Create client using kubeconfig file."""
        kubeconfig_path = self._config.effective_kubeconfig_path
        if not kubeconfig_path.exists():
            raise AuthenticationError(f"Kubeconfig not found: {kubeconfig_path}")

        return config.new_client_from_config(
            config_file=str(kubeconfig_path),
            context=self._config.kubeconfig_context,
        )

    def _create_auto_client(self) -> client.ApiClient:
        """Auto-detect authentication mode."""
        if Path("/var/run/secrets/kubernetes.io/serviceaccount/token").exists():
            logger.info("Using in-cluster authentication")
            config.load_incluster_config()
            configuration = client.Configuration.get_default_copy()
            return client.ApiClient(configuration)

        kubeconfig_path = self._config.effective_kubeconfig_path
        if kubeconfig_path.exists():
            logger.info(f"Using kubeconfig: {kubeconfig_path}")
            return config.new_client_from_config(
                config_file=str(kubeconfig_path),
                context=self._config.kubeconfig_context,
            )

        raise AuthenticationError(
            "No valid authentication method found. "
            "Not running in-cluster and no kubeconfig available."
        )

    @property
    def dynamic(self) -> DynamicClient:
        """Get the dynamic client."""
        if not self._dynamic_client:
            raise PlatformAdapterError("Client not connected. Call connect() first.")
        return self._dynamic_client

    @property
    def core_v1(self) -> client.CoreV1Api:
        """Get the CoreV1 API client."""
        if not self._core_v1:
            raise PlatformAdapterError("Client not connected. Call connect() first.")
        return self._core_v1

    def get_resource(self, crd: CRDDefinition) -> Resource:
        """Get a dynamic resource for a CRD.

        Uses caching to avoid repeated API discovery calls.
        """
        cache_key = f"{crd.api_version}/{crd.plural}"
        if cache_key not in self._crd_cache:
            self._crd_cache[cache_key] = self.dynamic.resources.get(
                api_version=crd.api_version,
                kind=crd.kind,
            )
        return self._crd_cache[cache_key]

    # Custom resource operations (infrastructure descriptors, machine templates)
    def get(
        self,
        crd: CRDDefinition,
        name: str,
        namespace: str,
    ) -> ResourceInstance:
        """Get a namespaced custom resource by name."""
        resource = self.get_resource(crd)
        try:
            return resource.get(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError(crd.kind, name, namespace)
            raise PlatformAdapterError(f"Failed to get {crd.kind} '{name}': {e.reason}")

    def create(
        self,
        crd: CRDDefinition,
        body: dict[str, Any],
        namespace: str,
    ) -> ResourceInstance:
        """Create a namespaced custom resource."""
        resource = self.get_resource(crd)
        try:
            return resource.create(body=body, namespace=namespace)
        except ApiException as e:
            if e.status == 409:
                name = body.get("metadata", {}).get("name", "unknown")
                raise ResourceExistsError(crd.kind, name, namespace)
            raise PlatformAdapterError(f"Failed to create {crd.kind}: {e.reason}")

    def replace(
        self,
        crd: CRDDefinition,
        body: dict[str, Any],
        namespace: str,
    ) -> ResourceInstance:
        """Replace a namespaced custom resource.

        The body must carry the resourceVersion that was read, so a concurrent
        writer surfaces as ConflictError instead of a lost update.
        """
        resource = self.get_resource(crd)
        name = body.get("metadata", {}).get("name", "unknown")
        try:
            return resource.replace(body=body, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError(crd.kind, name, namespace)
            if e.status == 409:
                raise ConflictError(crd.kind, name, namespace)
            raise PlatformAdapterError(f"Failed to replace {crd.kind} '{name}': {e.reason}")

    # Secret operations (credential descriptors and their copies)
    def get_secret(self, name: str, namespace: str) -> Any:
        """Get a secret."""
        try:
            return self.core_v1.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError("Secret", name, namespace)
            raise PlatformAdapterError(f"Failed to get secret '{name}': {e.reason}")

    def create_secret(
        self,
        name: str,
        namespace: str,
        data: dict[str, str],
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        string_data: bool = True,
    ) -> Any:
        """Create an Opaque secret.

        With string_data=False the values are taken as already base64 encoded,
        which lets a secret be copied byte for byte.
        """
        body = client.V1Secret(
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=namespace,
                labels=labels,
                annotations=annotations,
            ),
            type="Opaque",
            string_data=data if string_data else None,
            data=None if string_data else data,
        )
        try:
            return self.core_v1.create_namespaced_secret(
                namespace=namespace, body=body
            )
        except ApiException as e:
            if e.status == 409:
                raise ResourceExistsError("Secret", name, namespace)
            raise PlatformAdapterError(f"Failed to create secret '{name}': {e.reason}")

    def replace_secret(
        self,
        name: str,
        namespace: str,
        data: dict[str, str],
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        resource_version: str | None = None,
    ) -> Any:
        """Replace all data of an existing secret with base64 encoded values."""
        body = client.V1Secret(
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=namespace,
                labels=labels,
                annotations=annotations,
                resource_version=resource_version,
            ),
            type="Opaque",
            data=data,
        )
        try:
            return self.core_v1.replace_namespaced_secret(
                name=name, namespace=namespace, body=body
            )
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError("Secret", name, namespace)
            if e.status == 409:
                raise ConflictError("Secret", name, namespace)
            raise PlatformAdapterError(f"Failed to replace secret '{name}': {e.reason}")

    def delete_secret(self, name: str, namespace: str) -> None:
        """Delete a secret."""
        try:
            self.core_v1.delete_namespaced_secret(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError("Secret", name, namespace)
            raise PlatformAdapterError(f"Failed to delete secret '{name}': {e.reason}")


def as_dict(obj: Any) -> dict[str, Any]:
    """Convert a dynamic client ResourceInstance (or mapping) to a plain dict."""
    if hasattr(obj, "to_dict"):
        result: dict[str, Any] = obj.to_dict()
        return result
    return dict(obj)

