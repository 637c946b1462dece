#!/usr/bin/env python3
"""
Edge appliance management API.

``DeviceApi`` defines the remote calls the commissioning run makes;
``HttpDeviceApi`` implements them over the appliance's HTTPS management
endpoint. A device API is a scoped session: use it as a context manager so
it is released on every exit path.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests
import urllib3

from edgeboot.config.defaults import (
    DEVICE_API_PORT,
    DEVICE_API_PREFIX,
    DEVICE_REQUEST_TIMEOUT,
)
from edgeboot.errors import RemoteOperationError

logger = logging.getLogger(__name__)

Json = dict[str, Any]

# Response fields
SOFTWARE_VERSION = "softwareVersion"
CONFIGURATION_STATUS = "deviceConfigurationStatus"
CONFIGURATION_RESULTS = "results"
DECLARATION_NAME = "declarationName"
RESULT_CODE = "resultCode"

STATUS_COMPLETE = "Complete"
RESULT_SUCCESS = "Success"
RESULT_FAILED = "Failed"


class DeviceApi(ABC):
    """Remote calls against the edge appliance."""

    @abstractmethod
    def get_appliance_info(self) -> Json:
        """Return appliance details, including ``softwareVersion``."""
        raise NotImplementedError

    @abstractmethod
    def get_device_configuration(self) -> Json:
        """Return the current network-layer configuration."""
        raise NotImplementedError

    @abstractmethod
    def set_device_configuration(self, desired: Json) -> None:
        """Push a desired configuration. Applied asynchronously."""
        raise NotImplementedError

    @abstractmethod
    def get_device_configuration_status(self) -> Json:
        """Return the apply status and per-declaration results."""
        raise NotImplementedError

    @abstractmethod
    def set_workload_profile(self, profile: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_kubernetes_role(self, role_name: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_arc_cluster_info(self, info: Json) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_arc_cluster_info(self) -> Json:
        raise NotImplementedError

    def close(self) -> None:
        """Release the session."""

    def __enter__(self) -> "DeviceApi":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class HttpDeviceApi(DeviceApi):
    """DeviceApi over the appliance's HTTPS management endpoint."""

    def __init__(
        self,
        device_ip: str,
        username: str,
        password: str,
        verify_tls: bool = True,
        port: int = DEVICE_API_PORT,
        timeout: float = DEVICE_REQUEST_TIMEOUT,
    ):
        self.url = f"https://{device_ip}:{port}/{DEVICE_API_PREFIX}"
        self.timeout = timeout
        self.session: requests.Session | None = requests.Session()
        self.session.auth = (username, password)
        self.session.verify = verify_tls
        if not verify_tls:
            # Appliances ship with self-signed certificates
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        logger.info(f"Opened device session to {self.url}")

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        body: Json | None = None,
    ) -> Json:
        if self.session is None:
            raise RemoteOperationError(operation, "device session is closed")
        try:
            response = self.session.request(
                method,
                f"{self.url}/{path}",
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.debug(f"{method} {path} failed: {e}")
            raise RemoteOperationError(operation, str(e)) from e

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteOperationError(
                operation, f"response is not JSON: {response.text[:200]}"
            ) from e

    def get_appliance_info(self) -> Json:
        return self._request("GET", "appliance", "Get appliance info")

    def get_device_configuration(self) -> Json:
        return self._request(
            "GET", "deviceConfiguration", "Get device configuration"
        )

    def set_device_configuration(self, desired: Json) -> None:
        self._request(
            "PUT", "deviceConfiguration", "Set device configuration", desired
        )

    def get_device_configuration_status(self) -> Json:
        return self._request(
            "GET",
            "deviceConfiguration/status",
            "Get device configuration status",
        )

    def set_workload_profile(self, profile: str) -> None:
        self._request(
            "PUT",
            "kubernetes/workloadProfile",
            "Set workload profile",
            {"workloadProfile": profile},
        )

    def add_kubernetes_role(self, role_name: str) -> None:
        self._request(
            "POST",
            "kubernetes/roles",
            "Add Kubernetes role",
            {"name": role_name},
        )

    def set_arc_cluster_info(self, info: Json) -> None:
        self._request("PUT", "kubernetes/arc", "Set Arc cluster info", info)

    def get_arc_cluster_info(self) -> Json:
        return self._request("GET", "kubernetes/arc", "Get Arc cluster info")

    def close(self) -> None:
        if self.session:
            self.session.close()
            logger.info("Device session closed")
            self.session = None
