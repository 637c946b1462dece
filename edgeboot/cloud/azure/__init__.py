"""
Azure CLI utilities.

This package contains the az CLI wrapper and the scoped login session.
"""

from edgeboot.cloud.azure.api import AzureApi, AzureSession

__all__ = [
    "AzureApi",
    "AzureSession",
]
