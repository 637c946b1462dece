#!/usr/bin/env python3
"""
Device software versions and the payload format each one expects.
"""

from enum import Enum

from edgeboot.errors import ValidationError


class DeviceFormat(str, Enum):
    """Payload shapes accepted by the device configuration API."""

    # Network and subnet mask as separate fields, switch pools as "first-last"
    SEPARATE_FIELDS = "separate-fields"
    # Network as "network/prefixLength", compute switch pools as start/end
    CIDR = "cidr"


# Device software versions this tool has been validated against
SUPPORTED_VERSIONS: dict[str, DeviceFormat] = {
    "2.2.2257.1193": DeviceFormat.SEPARATE_FIELDS,
    "3.2.2380.1632": DeviceFormat.SEPARATE_FIELDS,
    "3.2.2510.2000": DeviceFormat.CIDR,
    "3.2.2642.2487": DeviceFormat.CIDR,
}


def format_for_version(version: str) -> DeviceFormat:
    """Select the payload format for a device software version.

    Args:
        version: Software version string reported by the device

    Returns:
        The DeviceFormat for that version

    Raises:
        ValidationError: If the version is not in the allow-list
    """
    fmt = SUPPORTED_VERSIONS.get(version.strip())
    if fmt is None:
        supported = ", ".join(sorted(SUPPORTED_VERSIONS))
        raise ValidationError(
            "deviceSoftwareVersion",
            version,
            f"unsupported version; supported versions are: {supported}",
        )
    return fmt
