import json
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from edgeboot.config.defaults import (
    DEFAULT_KUBERNETES_ROLE,
    DEFAULT_WORKLOAD_PROFILE,
)
from edgeboot.device.api import (
    CONFIGURATION_RESULTS,
    CONFIGURATION_STATUS,
    DECLARATION_NAME,
    RESULT_CODE,
    RESULT_FAILED,
    RESULT_SUCCESS,
    SOFTWARE_VERSION,
    STATUS_COMPLETE,
    DeviceApi,
    Json,
)
from edgeboot.errors import RemoteOperationError, ValidationError
from edgeboot.params.builder import (
    build_network_descriptors,
    render_compute_switch,
    render_virtual_networks,
)
from edgeboot.params.formats import DeviceFormat, format_for_version
from edgeboot.params.models import ProvisioningParameters
from edgeboot.utils.paths import OutputPaths
from edgeboot.utils.polling import RetryPolicy, poll_until, retry_call

logger = logging.getLogger(__name__)


def merge_device_configuration(
    current: Json,
    params: ProvisioningParameters,
    fmt: DeviceFormat,
) -> Json:
    """Build the desired configuration from the device's current one.

    DHCP policy and physical interfaces are carried over unchanged. Switches
    are carried over with Kubernetes compute enabled on the compute switch.
    Virtual networks are replaced entirely by the new set.
    """
    switches = current.get("virtualSwitches") or []
    switch_names = {s.get("name") for s in switches}

    if params.compute_switch_name not in switch_names:
        raise ValidationError(
            "ComputeSwitchName",
            params.compute_switch_name,
            "switch does not exist on the device",
        )
    descriptors = build_network_descriptors(params)
    for d in descriptors:
        if d.switch_name not in switch_names:
            raise ValidationError(
                f"{d.parameter_prefix}SwitchName",
                d.switch_name,
                "switch does not exist on the device",
            )

    return {
        "dhcpPolicy": current.get("dhcpPolicy"),
        "physicalInterfaces": current.get("physicalInterfaces") or [],
        "virtualSwitches": [
            (
                render_compute_switch(s, params, fmt)
                if s.get("name") == params.compute_switch_name
                else s
            )
            for s in switches
        ],
        "virtualNetworks": render_virtual_networks(descriptors, fmt),
    }


def validate_configuration_results(
    status: Json, allowed_failures: Iterable[str] = ()
) -> list[str]:
    """Check every declared element reported success.

    Elements in ``allowed_failures`` may report ``Failed``; any other
    non-success code is fatal.

    Returns:
        Names of allowed elements that failed
    """
    allowed = set(allowed_failures)
    tolerated = []
    for result in status.get(CONFIGURATION_RESULTS) or []:
        name = result.get(DECLARATION_NAME, "<unnamed>")
        code = result.get(RESULT_CODE)
        if code == RESULT_SUCCESS:
            continue
        if code == RESULT_FAILED and name in allowed:
            logger.warning(
                f"Configuration of {name} failed; allowed, continuing"
            )
            tolerated.append(name)
            continue
        errors = result.get("errors")
        detail = f": {errors}" if errors else ""
        raise RemoteOperationError(
            "Device configuration",
            f"element {name} reported {code}{detail}",
        )
    return tolerated


@dataclass
class CommissionOutput:
    software_version: str
    device_format: DeviceFormat
    desired_configuration: Json
    final_status: Json
    tolerated_failures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "softwareVersion": self.software_version,
            "deviceFormat": self.device_format.value,
            "toleratedFailures": self.tolerated_failures,
        }


class Commissioner:
    """Drives the appliance through its commissioning steps."""

    def __init__(
        self,
        device: DeviceApi,
        params: ProvisioningParameters,
        config_poll: RetryPolicy,
        status_fetch: RetryPolicy,
        allowed_failures: Iterable[str] = (),
        paths: OutputPaths | None = None,
        workload_profile: str = DEFAULT_WORKLOAD_PROFILE,
        kubernetes_role: str = DEFAULT_KUBERNETES_ROLE,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.device = device
        self.params = params
        self.config_poll = config_poll
        self.status_fetch = status_fetch
        self.allowed_failures = list(allowed_failures)
        self.paths = paths
        self.workload_profile = workload_profile
        self.kubernetes_role = kubernetes_role
        self.sleep = sleep

    def check_software_version(self) -> tuple[str, DeviceFormat]:
        info = self.device.get_appliance_info()
        version = str(info.get(SOFTWARE_VERSION, "")).strip()
        try:
            fmt = format_for_version(version)
        except ValidationError as e:
            raise RemoteOperationError(
                "Software version check",
                f"unsupported device software version {version!r}: {e.reason}",
            ) from e
        logger.info(
            f"Device software version {version} is supported "
            f"({fmt.value} format)"
        )
        return version, fmt

    def fetch_status(self) -> Json:
        return retry_call(
            "Get device configuration status",
            self.device.get_device_configuration_status,
            self.status_fetch,
            sleep=self.sleep,
        )

    def wait_for_configuration(self) -> Json:
        return poll_until(
            "Device configuration",
            self.fetch_status,
            lambda s: s.get(CONFIGURATION_STATUS) == STATUS_COMPLETE,
            self.config_poll,
            describe=lambda s: str(s.get(CONFIGURATION_STATUS)),
            sleep=self.sleep,
        )

    @staticmethod
    def _save(document: Json, path: Path) -> None:
        with open(path, "w+") as f:
            json.dump(document, f, indent=2)

    def configure_network(
        self, fmt: DeviceFormat
    ) -> tuple[Json, Json, list[str]]:
        logger.info("Fetching current device configuration")
        current = self.device.get_device_configuration()
        desired = merge_device_configuration(current, self.params, fmt)
        if self.paths is not None:
            self._save(current, self.paths.current_device_configuration)
            self._save(desired, self.paths.desired_device_configuration)

        logger.info(
            f"Pushing {len(desired['virtualNetworks'])} virtual networks "
            "to the device"
        )
        self.device.set_device_configuration(desired)

        status = self.wait_for_configuration()
        tolerated = validate_configuration_results(
            status, self.allowed_failures
        )
        return desired, status, tolerated

    def enable_kubernetes(self) -> None:
        logger.info(f"Setting workload profile {self.workload_profile}")
        self.device.set_workload_profile(self.workload_profile)
        logger.info(f"Adding Kubernetes role {self.kubernetes_role}")
        self.device.add_kubernetes_role(self.kubernetes_role)

    def configure_arc(self) -> None:
        expected = {
            "subscriptionId": self.params.subscription_id,
            "resourceGroupName": self.params.resource_group,
            "resourceName": self.params.arc_cluster_name,
            "location": self.params.location,
        }
        logger.info(
            f"Setting Arc cluster info for {self.params.arc_cluster_name}"
        )
        self.device.set_arc_cluster_info(expected)

        actual = self.device.get_arc_cluster_info()
        mismatched = [
            key for key, value in expected.items() if actual.get(key) != value
        ]
        if mismatched:
            raise RemoteOperationError(
                "Set Arc cluster info",
                "device reports different values for: "
                f"{', '.join(mismatched)}",
            )

    def run(self) -> CommissionOutput:
        version, fmt = self.check_software_version()
        desired, status, tolerated = self.configure_network(fmt)
        self.enable_kubernetes()
        self.configure_arc()
        logger.info(f"Commissioning of {self.params.ase_name} complete")
        return CommissionOutput(
            software_version=version,
            device_format=fmt,
            desired_configuration=desired,
            final_status=status,
            tolerated_failures=tolerated,
        )
