"""Validated provisioning parameters."""

from dataclasses import dataclass, field
from typing import Any

# Virtual network names on the appliance
CONTROL_PLANE_NETWORK = "N2"
USER_PLANE_NETWORK = "N3"
DATA_NETWORK_PREFIX = "N6-DNN"

MAX_DNNS = 10


def mask_bits(mask: str) -> int:
    return sum(bin(int(octet)).count("1") for octet in mask.split("."))


@dataclass
class NetworkDescriptor:
    """One logical interface on the appliance (N2, N3 or a DNN)."""

    name: str
    switch_name: str
    vlan_id: int
    network: str
    subnet_mask: str
    gateway: str
    ip: str
    # Sheet parameter prefix, e.g. "N2" or "Dnn3"
    parameter_prefix: str = ""

    @property
    def prefix_length(self) -> int:
        return mask_bits(self.subnet_mask)

    @property
    def cidr(self) -> str:
        return f"{self.network}/{self.prefix_length}"

    @property
    def ip_pool(self) -> str:
        """Single-address allocation as a degenerate range."""
        return f"{self.ip}-{self.ip}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "switchName": self.switch_name,
            "vlanId": self.vlan_id,
            "network": self.network,
            "subnetMask": self.subnet_mask,
            "gateway": self.gateway,
            "ipPool": self.ip_pool,
        }


@dataclass
class DataNetwork:
    name: str
    interface: NetworkDescriptor
    ue_pool_prefix: str
    ue_static_pool_prefix: str | None = None
    napt_enabled: bool = True


@dataclass
class ProvisioningParameters:
    subscription_id: str
    resource_group: str
    location: str
    ase_name: str
    device_ip: str
    device_username: str
    device_password: str
    arc_cluster_name: str
    custom_location_name: str
    packet_core_resource_group: str
    mobile_network_name: str
    site_name: str
    mobile_country_code: str
    mobile_network_code: str
    compute_switch_name: str
    node_ip_range: str
    service_ip_range: str
    control_plane: NetworkDescriptor
    user_plane: NetworkDescriptor
    data_networks: list[DataNetwork]
    dns_addresses: list[str] = field(default_factory=list)

    @property
    def number_of_dnns(self) -> int:
        return len(self.data_networks)

    @property
    def resource_group_id(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
        )

    @property
    def ase_resource_id(self) -> str:
        return (
            f"{self.resource_group_id}/providers/Microsoft.DataBoxEdge"
            f"/dataBoxEdgeDevices/{self.ase_name}"
        )

    @property
    def connected_cluster_id(self) -> str:
        return (
            f"{self.resource_group_id}/providers/Microsoft.Kubernetes"
            f"/connectedClusters/{self.arc_cluster_name}"
        )

    @property
    def custom_location_id(self) -> str:
        return (
            f"{self.resource_group_id}/providers/Microsoft.ExtendedLocation"
            f"/customLocations/{self.custom_location_name}"
        )
