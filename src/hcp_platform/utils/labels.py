"""Label and annotation keys written onto objects owned by a hosted cluster."""


class HCPLabels:
    """Labels applied to every object a platform adapter creates."""

    CLUSTER = "hypershift.openshift.io/cluster"
    PLATFORM = "platform"

    @classmethod
    def owned_by(cls, cluster_name: str, platform: str) -> dict[str, str]:
        """Labels tying an object to its owning cluster and platform."""
        return {
            cls.CLUSTER: cluster_name,
            cls.PLATFORM: platform,
        }


class HCPAnnotations:
    """Annotations with special meaning to provisioning backends."""

    # Tells the MAAS provider that DNS is managed externally, so it must not
    # create DNS resources for the control plane endpoint.
    MAAS_CUSTOM_DNS_PROVIDED = "spectrocloud.com/custom-dns-provided"
