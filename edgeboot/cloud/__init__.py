"""Cloud control-plane provisioning."""

from edgeboot.cloud.azure.api import AzureApi, AzureSession
from edgeboot.cloud.provision import CloudProvisioner, ProvisionOutput

__all__ = [
    "AzureApi",
    "AzureSession",
    "CloudProvisioner",
    "ProvisionOutput",
]
