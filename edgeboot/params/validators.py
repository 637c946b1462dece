#!/usr/bin/env python3
"""
Parameter sheet validation.

Every validator either returns the (possibly coerced) value or raises
ValidationError naming the parameter, the value and the rule it broke.
"""

import logging
import re
import uuid
from collections.abc import Mapping

from edgeboot.errors import ValidationError
from edgeboot.params.models import (
    CONTROL_PLANE_NETWORK,
    DATA_NETWORK_PREFIX,
    MAX_DNNS,
    USER_PLANE_NETWORK,
    DataNetwork,
    NetworkDescriptor,
    ProvisioningParameters,
    mask_bits,
)

logger = logging.getLogger(__name__)

_OCTET = r"(25[0-5]|2[0-4][0-9]|1[0-9][0-9]|[1-9]?[0-9])"
_IP_PATTERN = re.compile(rf"{_OCTET}(\.{_OCTET}){{3}}")
_RESOURCE_NAME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9-]*")
_MCC_PATTERN = re.compile(r"[0-9]{3}")
_MNC_PATTERN = re.compile(r"[0-9]{2,3}")

# Octet values allowed at the boundary of a contiguous mask
VALID_MASK_OCTETS = (0, 128, 192, 224, 240, 248, 252, 254, 255)

NODE_RANGE_SPAN = 5
SERVICE_RANGE_SPANS = (0, 1)
MAX_VLAN_ID = 4094


# Pure checks


def is_valid_ip(value: str) -> bool:
    return bool(_IP_PATTERN.fullmatch(value))


def ip_to_int(value: str) -> int:
    octets = [int(o) for o in value.split(".")]
    return (octets[0] << 24) | (octets[1] << 16) | (octets[2] << 8) | octets[3]


def is_valid_mask(value: str) -> bool:
    if not is_valid_ip(value):
        return False
    octets = [int(o) for o in value.split(".")]
    seen_boundary = False
    for octet in octets:
        if seen_boundary:
            if octet != 0:
                return False
        elif octet != 255:
            if octet not in VALID_MASK_OCTETS:
                return False
            seen_boundary = True
    return True


def ip_in_subnet(address: str, network: str, mask: str) -> bool:
    """True iff ``address & mask == network & mask``."""
    mask_int = ip_to_int(mask)
    return ip_to_int(address) & mask_int == ip_to_int(network) & mask_int


def mask_to_prefix_length(mask: str) -> int:
    """Convert a dotted-decimal mask to a prefix length.

    >>> mask_to_prefix_length("255.255.255.128")
    25
    """
    if not is_valid_mask(mask):
        raise ValidationError("subnetMask", mask, "not a contiguous mask")
    return mask_bits(mask)


# Validators


def validate_present(name: str, value: str | None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(name, value, "required parameter is missing")
    return str(value).strip()


def validate_ip(name: str, value: str | None) -> str:
    value = validate_present(name, value)
    if not is_valid_ip(value):
        raise ValidationError(
            name, value, "expected four dot-separated octets in 0-255"
        )
    return value


def validate_mask(name: str, value: str | None) -> str:
    value = validate_present(name, value)
    if not is_valid_mask(value):
        raise ValidationError(
            name, value, "expected a contiguous dotted-decimal subnet mask"
        )
    return value


def validate_ip_in_subnet(
    name: str, address: str, network: str, mask: str
) -> str:
    if not ip_in_subnet(address, network, mask):
        raise ValidationError(
            name, address, f"address is not in subnet {network}/{mask}"
        )
    return address


def parse_ip_range(name: str, value: str | None) -> tuple[str, str]:
    """Split ``firstIP-lastIP`` and check both ends share one /24."""
    value = validate_present(name, value)
    parts = [p.strip() for p in value.split("-")]
    if len(parts) != 2:
        raise ValidationError(name, value, "expected format firstIP-lastIP")
    first, last = parts
    for end in parts:
        if not is_valid_ip(end):
            raise ValidationError(name, value, f"{end!r} is not a valid IP")
    if first.rsplit(".", 1)[0] != last.rsplit(".", 1)[0]:
        raise ValidationError(
            name, value, "first three octets of both ends must match"
        )
    if ip_to_int(first) > ip_to_int(last):
        raise ValidationError(name, value, "range end is before range start")
    return first, last


def _range_span(first: str, last: str) -> int:
    return int(last.rsplit(".", 1)[1]) - int(first.rsplit(".", 1)[1])


def _range_prefix(first: str) -> str:
    return first.rsplit(".", 1)[0]


def validate_node_range(name: str, value: str | None) -> str:
    first, last = parse_ip_range(name, value)
    if _range_span(first, last) != NODE_RANGE_SPAN:
        raise ValidationError(
            name,
            value,
            f"node range must contain exactly {NODE_RANGE_SPAN + 1} addresses",
        )
    return f"{first}-{last}"


def validate_service_range(
    name: str, value: str | None, node_range: str
) -> str:
    first, last = parse_ip_range(name, value)
    if _range_span(first, last) not in SERVICE_RANGE_SPANS:
        raise ValidationError(
            name, value, "service range must contain 1 or 2 addresses"
        )
    node_first, _ = parse_ip_range("nodeIpRange", node_range)
    if _range_prefix(first) != _range_prefix(node_first):
        raise ValidationError(
            name,
            value,
            f"service range must be in the same /24 as node range "
            f"{node_range}",
        )
    return f"{first}-{last}"


def validate_guid(name: str, value: str | None) -> str:
    value = validate_present(name, value)
    try:
        parsed = uuid.UUID(value)
    except ValueError as e:
        raise ValidationError(name, value, "not a valid GUID") from e
    if parsed.int == 0:
        raise ValidationError(name, value, "GUID must not be all zeros")
    return value


def validate_resource_name(name: str, value: str | None) -> str:
    value = validate_present(name, value)
    if not _RESOURCE_NAME_PATTERN.fullmatch(value):
        raise ValidationError(
            name,
            value,
            "must start with a letter and contain only letters, "
            "digits and hyphens",
        )
    return value


def _validate_int(name: str, value: str | None) -> int:
    value = validate_present(name, value)
    # Spreadsheet cells holding numbers come back as "3.0"
    if re.fullmatch(r"[0-9]+\.0+", value):
        value = value.split(".")[0]
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(name, value, "expected an integer") from e


def validate_dnn_count(name: str, value: str | None) -> int:
    count = _validate_int(name, value)
    if not 1 <= count <= MAX_DNNS:
        raise ValidationError(
            name, str(count), f"must be between 1 and {MAX_DNNS}"
        )
    return count


def validate_vlan_id(name: str, value: str | None) -> int:
    vlan_id = _validate_int(name, value)
    if not 0 <= vlan_id <= MAX_VLAN_ID:
        raise ValidationError(
            name, str(vlan_id), f"must be between 0 and {MAX_VLAN_ID}"
        )
    return vlan_id


def validate_cidr(name: str, value: str | None) -> str:
    value = validate_present(name, value)
    address, sep, prefix = value.partition("/")
    if not sep or not is_valid_ip(address) or not prefix.isdigit():
        raise ValidationError(name, value, "expected network/prefixLength")
    length = int(prefix)
    if length > 32:
        raise ValidationError(name, value, "prefix length must be <= 32")
    host_bits = (1 << (32 - length)) - 1
    if ip_to_int(address) & host_bits:
        raise ValidationError(name, value, "host bits must be zero")
    return value


def validate_ip_list(name: str, value: str | None) -> list[str]:
    if value is None or not str(value).strip():
        return []
    addresses = [a.strip() for a in str(value).split(",") if a.strip()]
    for address in addresses:
        validate_ip(name, address)
    return addresses


def _validate_flag(name: str, value: str | None, default: bool) -> bool:
    if value is None or not str(value).strip():
        return default
    text = str(value).strip().lower()
    if text in ("true", "yes", "enabled", "1"):
        return True
    if text in ("false", "no", "disabled", "0"):
        return False
    raise ValidationError(name, value, "expected Enabled or Disabled")


# Sheet-level validation


def _validate_network(
    raw: Mapping[str, str], prefix: str, network_name: str
) -> NetworkDescriptor:
    """Validate one ``<prefix>{Network,Subnet,Gateway,Ip,VlanId,SwitchName}``
    parameter group."""
    network = validate_ip(f"{prefix}Network", raw.get(f"{prefix}Network"))
    mask = validate_mask(f"{prefix}Subnet", raw.get(f"{prefix}Subnet"))
    gateway = validate_ip(f"{prefix}Gateway", raw.get(f"{prefix}Gateway"))
    ip = validate_ip(f"{prefix}Ip", raw.get(f"{prefix}Ip"))
    validate_ip_in_subnet(f"{prefix}Gateway", gateway, network, mask)
    validate_ip_in_subnet(f"{prefix}Ip", ip, network, mask)
    return NetworkDescriptor(
        name=network_name,
        switch_name=validate_present(
            f"{prefix}SwitchName", raw.get(f"{prefix}SwitchName")
        ),
        vlan_id=validate_vlan_id(f"{prefix}VlanId", raw.get(f"{prefix}VlanId")),
        network=network,
        subnet_mask=mask,
        gateway=gateway,
        ip=ip,
        parameter_prefix=prefix,
    )


def _validate_data_network(raw: Mapping[str, str], index: int) -> DataNetwork:
    prefix = f"Dnn{index}"
    static_pool = raw.get(f"{prefix}UeStaticPoolPrefix")
    return DataNetwork(
        name=validate_resource_name(f"{prefix}Name", raw.get(f"{prefix}Name")),
        interface=_validate_network(
            raw, prefix, f"{DATA_NETWORK_PREFIX}{index}"
        ),
        ue_pool_prefix=validate_cidr(
            f"{prefix}UePoolPrefix", raw.get(f"{prefix}UePoolPrefix")
        ),
        ue_static_pool_prefix=(
            validate_cidr(f"{prefix}UeStaticPoolPrefix", static_pool)
            if static_pool and str(static_pool).strip()
            else None
        ),
        napt_enabled=_validate_flag(
            f"{prefix}Napt", raw.get(f"{prefix}Napt"), default=True
        ),
    )


def validate_parameters(raw: Mapping[str, str]) -> ProvisioningParameters:
    """Validate a loaded parameter sheet.

    DNN parameter groups above ``NumberOfDNNs`` are ignored.

    Args:
        raw: Parameter name to raw string value

    Returns:
        Typed, validated parameters

    Raises:
        ValidationError: On the first rule that fails
    """
    node_range = validate_node_range(
        "KubernetesNodeIpRange", raw.get("KubernetesNodeIpRange")
    )
    number_of_dnns = validate_dnn_count("NumberOfDNNs", raw.get("NumberOfDNNs"))

    mcc = validate_present("MobileCountryCode", raw.get("MobileCountryCode"))
    if not _MCC_PATTERN.fullmatch(mcc):
        raise ValidationError("MobileCountryCode", mcc, "expected 3 digits")
    mnc = validate_present("MobileNetworkCode", raw.get("MobileNetworkCode"))
    if not _MNC_PATTERN.fullmatch(mnc):
        raise ValidationError("MobileNetworkCode", mnc, "expected 2-3 digits")

    params = ProvisioningParameters(
        subscription_id=validate_guid(
            "SubscriptionId", raw.get("SubscriptionId")
        ),
        resource_group=validate_resource_name(
            "ResourceGroupName", raw.get("ResourceGroupName")
        ),
        location=validate_resource_name("Location", raw.get("Location")),
        ase_name=validate_resource_name("AseName", raw.get("AseName")),
        device_ip=validate_ip("AseDeviceIp", raw.get("AseDeviceIp")),
        device_username=validate_present(
            "AseUsername", raw.get("AseUsername")
        ),
        device_password=validate_present(
            "AsePassword", raw.get("AsePassword")
        ),
        arc_cluster_name=validate_resource_name(
            "ArcClusterName", raw.get("ArcClusterName")
        ),
        custom_location_name=validate_resource_name(
            "CustomLocationName", raw.get("CustomLocationName")
        ),
        packet_core_resource_group=validate_resource_name(
            "PacketCoreResourceGroupName",
            raw.get("PacketCoreResourceGroupName"),
        ),
        mobile_network_name=validate_resource_name(
            "MobileNetworkName", raw.get("MobileNetworkName")
        ),
        site_name=validate_resource_name("SiteName", raw.get("SiteName")),
        mobile_country_code=mcc,
        mobile_network_code=mnc,
        compute_switch_name=validate_present(
            "ComputeSwitchName", raw.get("ComputeSwitchName")
        ),
        node_ip_range=node_range,
        service_ip_range=validate_service_range(
            "KubernetesServiceIpRange",
            raw.get("KubernetesServiceIpRange"),
            node_range,
        ),
        control_plane=_validate_network(raw, "N2", CONTROL_PLANE_NETWORK),
        user_plane=_validate_network(raw, "N3", USER_PLANE_NETWORK),
        data_networks=[
            _validate_data_network(raw, index)
            for index in range(1, number_of_dnns + 1)
        ],
        dns_addresses=validate_ip_list("DnsAddresses", raw.get("DnsAddresses")),
    )
    logger.info(
        f"Validated parameters for {params.ase_name} "
        f"with {params.number_of_dnns} data network(s)"
    )
    return params
