"""Deployment spec of the MAAS Cluster API provider controller."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from kubernetes import client

from hcp_platform.platforms.maas.models import (
    CREDENTIAL_API_KEY_KEY,
    CREDENTIAL_ENDPOINT_KEY,
    CREDENTIAL_ZONE_KEY,
    require_maas_platform,
)

if TYPE_CHECKING:
    from hcp_platform.models import HostedClusterSpec

# Overrides the configured provider image when set and non-empty
MAAS_CAPI_PROVIDER_IMAGE_ENV = "IMAGE_MAAS_CAPI_PROVIDER"

CONTAINER_NAME = "maas-capi-controller"

CONTROLLER_ARGS = [
    "--v=2",
    "--leader-elect=true",
    "--sync-period=15m",
    "--namespace=$(NAMESPACE)",
]

# Fixed floor, not derived from the cluster spec
RESOURCE_LIMITS = {"cpu": "200m", "memory": "100Mi"}
RESOURCE_REQUESTS = {"cpu": "200m", "memory": "20Mi"}


def resolve_provider_image(configured_image: str) -> str:
    """Environment override first, then the configured image."""
    return os.environ.get(MAAS_CAPI_PROVIDER_IMAGE_ENV) or configured_image


def build_deployment_spec(
    cluster: HostedClusterSpec,
    image: str,
    credentials_secret_name: str,
) -> client.V1DeploymentSpec:
    """Build the provider controller deployment spec.

    Credentials are passed as secret key references to the credential copy,
    never as literal values, so rotating the secret does not require a new
    deployment spec.

    Raises:
        MisconfiguredPlatformError: If the cluster has no MAAS block.
    """
    maas = require_maas_platform(cluster, "build MAAS CAPI provider deployment")

    env = [
        client.V1EnvVar(
            name="NAMESPACE",
            value_from=client.V1EnvVarSource(
                field_ref=client.V1ObjectFieldSelector(field_path="metadata.namespace"),
            ),
        ),
        _secret_env("MAAS_ENDPOINT", credentials_secret_name, CREDENTIAL_ENDPOINT_KEY),
        _secret_env("MAAS_API_KEY", credentials_secret_name, CREDENTIAL_API_KEY_KEY),
    ]
    if maas.zone:
        env.append(client.V1EnvVar(name="MAAS_ZONE", value=maas.zone))
    else:
        # The zone may also come from the credential bundle
        env.append(
            _secret_env("MAAS_ZONE", credentials_secret_name, CREDENTIAL_ZONE_KEY, optional=True)
        )

    labels = {"app": CONTAINER_NAME}
    return client.V1DeploymentSpec(
        selector=client.V1LabelSelector(match_labels=dict(labels)),
        template=client.V1PodTemplateSpec(
            metadata=client.V1ObjectMeta(labels=dict(labels)),
            spec=client.V1PodSpec(
                containers=[
                    client.V1Container(
                        name=CONTAINER_NAME,
                        image=resolve_provider_image(image),
                        args=list(CONTROLLER_ARGS),
                        env=env,
                        resources=client.V1ResourceRequirements(
                            limits=dict(RESOURCE_LIMITS),
                            requests=dict(RESOURCE_REQUESTS),
                        ),
                    )
                ],
            ),
        ),
    )


def _secret_env(
    name: str, secret_name: str, key: str, optional: bool | None = None
) -> client.V1EnvVar:
    return client.V1EnvVar(
        name=name,
        value_from=client.V1EnvVarSource(
            secret_key_ref=client.V1SecretKeySelector(
                name=secret_name,
                key=key,
                optional=optional,
            ),
        ),
    )
