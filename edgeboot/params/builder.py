#!/usr/bin/env python3
"""
Build the structured documents derived from validated parameters:
  - device configuration payloads (virtual switches and networks)
  - the commissioning and mobile-network deployment parameter files
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from edgeboot.params.formats import DeviceFormat
from edgeboot.params.models import NetworkDescriptor, ProvisioningParameters

logger = logging.getLogger(__name__)

DEPLOYMENT_PARAMETERS_SCHEMA = (
    "https://schema.management.azure.com/schemas/2019-04-01/"
    "deploymentParameters.json#"
)
CONTENT_VERSION = "1.0.0.0"

NODE_POOL_NAME = "KubernetesNodeIPs"
SERVICE_POOL_NAME = "KubernetesServiceIPs"

PLATFORM_TYPE = "AKS-HCI"
CORE_NETWORK_TECHNOLOGY = "5GC"

ParameterDocument = dict[str, Any]


def build_network_descriptors(
    params: ProvisioningParameters,
) -> list[NetworkDescriptor]:
    """Control plane, user plane, then one descriptor per data network."""
    descriptors = [params.control_plane, params.user_plane]
    for data_network in params.data_networks:
        descriptors.append(data_network.interface)
    return descriptors


# Device configuration payloads


def _range_pool(name: str, ip_range: str, fmt: DeviceFormat) -> dict[str, str]:
    first, last = (part.strip() for part in ip_range.split("-"))
    if fmt == DeviceFormat.CIDR:
        return {"name": name, "startAddress": first, "endAddress": last}
    return {"name": name, "ipAddressRange": f"{first}-{last}"}


def render_virtual_network(
    descriptor: NetworkDescriptor, fmt: DeviceFormat
) -> dict[str, Any]:
    network: dict[str, Any] = {
        "name": descriptor.name,
        "vSwitchName": descriptor.switch_name,
        "vlanId": descriptor.vlan_id,
        "gateway": descriptor.gateway,
        "ipAddressPools": [
            {
                "name": f"{descriptor.name}-pool",
                "ipAddressRange": descriptor.ip_pool,
            }
        ],
    }
    if fmt == DeviceFormat.CIDR:
        network["network"] = descriptor.cidr
    else:
        network["network"] = descriptor.network
        network["subnetMask"] = descriptor.subnet_mask
    return network


def render_virtual_networks(
    descriptors: list[NetworkDescriptor], fmt: DeviceFormat
) -> list[dict[str, Any]]:
    return [render_virtual_network(d, fmt) for d in descriptors]


def render_compute_switch(
    switch: dict[str, Any],
    params: ProvisioningParameters,
    fmt: DeviceFormat,
) -> dict[str, Any]:
    """Enable Kubernetes compute on an existing switch definition.

    The switch keeps its physical port binding; its IP pools are replaced
    by the Kubernetes node and service ranges.
    """
    rendered = copy.deepcopy(switch)
    rendered["enabledForCompute"] = True
    rendered["ipAddressPools"] = [
        _range_pool(NODE_POOL_NAME, params.node_ip_range, fmt),
        _range_pool(SERVICE_POOL_NAME, params.service_ip_range, fmt),
    ]
    return rendered


# Deployment parameter files


def parameters_document(values: dict[str, Any]) -> ParameterDocument:
    """Wrap values in the deployment-parameters schema."""
    return {
        "$schema": DEPLOYMENT_PARAMETERS_SCHEMA,
        "contentVersion": CONTENT_VERSION,
        "parameters": {name: {"value": v} for name, v in values.items()},
    }


def build_commissioning_parameters(
    params: ProvisioningParameters,
) -> ParameterDocument:
    descriptors = build_network_descriptors(params)
    return parameters_document(
        {
            "subscriptionId": params.subscription_id,
            "resourceGroupName": params.resource_group,
            "location": params.location,
            "aseName": params.ase_name,
            "aseDeviceIp": params.device_ip,
            "arcClusterName": params.arc_cluster_name,
            "customLocationName": params.custom_location_name,
            "computeSwitchName": params.compute_switch_name,
            "kubernetesNodeIpRange": params.node_ip_range,
            "kubernetesServiceIpRange": params.service_ip_range,
            "numberOfDnns": params.number_of_dnns,
            "virtualNetworks": [d.to_dict() for d in descriptors],
        }
    )


def build_mobile_network_parameters(
    params: ProvisioningParameters,
) -> ParameterDocument:
    data_networks = [
        {
            "dataNetworkName": dn.name,
            "userPlaneDataInterfaceName": dn.interface.name,
            "userPlaneDataInterfaceIpAddress": dn.interface.ip,
            "userPlaneDataInterfaceSubnet": dn.interface.cidr,
            "userPlaneDataInterfaceGateway": dn.interface.gateway,
            "userEquipmentAddressPoolPrefix": [dn.ue_pool_prefix],
            "userEquipmentStaticAddressPoolPrefix": (
                [dn.ue_static_pool_prefix] if dn.ue_static_pool_prefix else []
            ),
            "naptEnabled": "Enabled" if dn.napt_enabled else "Disabled",
            "dnsAddresses": params.dns_addresses,
        }
        for dn in params.data_networks
    ]
    return parameters_document(
        {
            "location": params.location,
            "mobileNetworkName": params.mobile_network_name,
            "mobileCountryCode": params.mobile_country_code,
            "mobileNetworkCode": params.mobile_network_code,
            "siteName": params.site_name,
            "platformType": PLATFORM_TYPE,
            "coreNetworkTechnology": CORE_NETWORK_TECHNOLOGY,
            "azureStackEdgeDevice": params.ase_resource_id,
            "customLocation": params.custom_location_id,
            "controlPlaneAccessInterfaceName": params.control_plane.name,
            "controlPlaneAccessIpAddress": params.control_plane.ip,
            "userPlaneAccessInterfaceName": params.user_plane.name,
            "userPlaneAccessInterfaceIpAddress": params.user_plane.ip,
            "accessSubnet": params.user_plane.cidr,
            "accessGateway": params.user_plane.gateway,
            "dataNetworks": data_networks,
        }
    )


def write_parameter_file(document: ParameterDocument, path: Path) -> Path:
    with open(path, "w+") as f:
        json.dump(document, f, indent=2)
    logger.info(f"Wrote parameter file {path}")
    return path
