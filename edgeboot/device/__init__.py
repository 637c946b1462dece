"""Edge appliance session and commissioning."""

from edgeboot.device.api import DeviceApi, HttpDeviceApi
from edgeboot.device.commission import (
    CommissionOutput,
    Commissioner,
    merge_device_configuration,
    validate_configuration_results,
)

__all__ = [
    "CommissionOutput",
    "Commissioner",
    "DeviceApi",
    "HttpDeviceApi",
    "merge_device_configuration",
    "validate_configuration_results",
]
