"""Parameter loading, validation and document building."""

from edgeboot.params.builder import (
    build_commissioning_parameters,
    build_mobile_network_parameters,
    build_network_descriptors,
    write_parameter_file,
)
from edgeboot.params.formats import DeviceFormat, format_for_version
from edgeboot.params.loader import load_parameter_sheet
from edgeboot.params.models import (
    DataNetwork,
    NetworkDescriptor,
    ProvisioningParameters,
)
from edgeboot.params.validators import validate_parameters

__all__ = [
    "DataNetwork",
    "DeviceFormat",
    "NetworkDescriptor",
    "ProvisioningParameters",
    "build_commissioning_parameters",
    "build_mobile_network_parameters",
    "build_network_descriptors",
    "format_for_version",
    "load_parameter_sheet",
    "validate_parameters",
    "write_parameter_file",
]
