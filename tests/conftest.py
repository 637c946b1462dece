import copy
import json
import subprocess
from typing import Any

import pytest

from edgeboot.cloud.azure.api import AzureApi
from edgeboot.device.api import DeviceApi
from edgeboot.errors import RemoteOperationError
from edgeboot.params.validators import validate_parameters

SUBSCRIPTION_ID = "5f2b4e8a-1c3d-4e5f-8a9b-0c1d2e3f4a5b"

CURRENT_CONFIGURATION = {
    "dhcpPolicy": "AttemptRecovery",
    "physicalInterfaces": [
        {"name": "Port2", "ipv4": "10.126.75.5"},
        {"name": "Port5"},
        {"name": "Port6"},
    ],
    "virtualSwitches": [
        {"name": "vswitch-port2", "interfaceName": "Port2"},
        {"name": "vswitch-port5", "interfaceName": "Port5"},
        {"name": "vswitch-port6", "interfaceName": "Port6"},
    ],
    "virtualNetworks": [
        {"name": "stale-network", "vSwitchName": "vswitch-port5"},
    ],
}


def make_raw_parameters(number_of_dnns: int = 2) -> dict[str, str]:
    raw = {
        "SubscriptionId": SUBSCRIPTION_ID,
        "ResourceGroupName": "edge-rg",
        "Location": "eastus",
        "AseName": "ase-site1",
        "AseDeviceIp": "10.126.75.5",
        "AseUsername": "EdgeUser",
        "AsePassword": "secret",
        "ArcClusterName": "ase-site1-cluster",
        "CustomLocationName": "site1-location",
        "PacketCoreResourceGroupName": "site1-packet-core",
        "MobileNetworkName": "contoso-mn",
        "SiteName": "site1",
        "MobileCountryCode": "001",
        "MobileNetworkCode": "01",
        "DnsAddresses": "8.8.8.8, 1.1.1.1",
        "ComputeSwitchName": "vswitch-port2",
        "KubernetesNodeIpRange": "10.126.75.10-10.126.75.15",
        "KubernetesServiceIpRange": "10.126.75.16-10.126.75.17",
        "NumberOfDNNs": str(number_of_dnns),
        "N2SwitchName": "vswitch-port5",
        "N2VlanId": "10",
        "N2Network": "192.168.10.0",
        "N2Subnet": "255.255.255.0",
        "N2Gateway": "192.168.10.1",
        "N2Ip": "192.168.10.10",
        "N3SwitchName": "vswitch-port5",
        "N3VlanId": "20",
        "N3Network": "192.168.20.0",
        "N3Subnet": "255.255.255.0",
        "N3Gateway": "192.168.20.1",
        "N3Ip": "192.168.20.10",
    }
    for k in range(1, number_of_dnns + 1):
        raw.update(
            {
                f"Dnn{k}Name": f"dnn{k}",
                f"Dnn{k}SwitchName": "vswitch-port6",
                f"Dnn{k}VlanId": str(100 + k),
                f"Dnn{k}Network": f"10.0.{k}.0",
                f"Dnn{k}Subnet": "255.255.255.0",
                f"Dnn{k}Gateway": f"10.0.{k}.1",
                f"Dnn{k}Ip": f"10.0.{k}.10",
                f"Dnn{k}UePoolPrefix": f"172.16.{k}.0/24",
            }
        )
    return raw


@pytest.fixture
def raw_parameters() -> dict[str, str]:
    return make_raw_parameters()


@pytest.fixture
def params(raw_parameters):
    return validate_parameters(raw_parameters)


class FakeDevice(DeviceApi):
    """In-memory DeviceApi recording every call."""

    def __init__(
        self,
        software_version: str = "3.2.2380.1632",
        statuses: list[dict[str, Any]] | None = None,
        status_errors: int = 0,
    ):
        self.software_version = software_version
        self.configuration = copy.deepcopy(CURRENT_CONFIGURATION)
        self.statuses = statuses or [
            {"deviceConfigurationStatus": "Complete", "results": []}
        ]
        self.status_errors = status_errors
        self.status_calls = 0
        self.pushed: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.arc_info: dict[str, Any] = {}
        self.closed = False

    def get_appliance_info(self):
        self.calls.append("get_appliance_info")
        return {"softwareVersion": self.software_version}

    def get_device_configuration(self):
        self.calls.append("get_device_configuration")
        return copy.deepcopy(self.configuration)

    def set_device_configuration(self, desired):
        self.calls.append("set_device_configuration")
        self.pushed.append(desired)

    def get_device_configuration_status(self):
        self.status_calls += 1
        if self.status_errors:
            self.status_errors -= 1
            raise RemoteOperationError(
                "Get device configuration status", "connection reset"
            )
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    def set_workload_profile(self, profile):
        self.calls.append(f"set_workload_profile:{profile}")

    def add_kubernetes_role(self, role_name):
        self.calls.append(f"add_kubernetes_role:{role_name}")

    def set_arc_cluster_info(self, info):
        self.calls.append("set_arc_cluster_info")
        self.arc_info = dict(info)

    def get_arc_cluster_info(self):
        return dict(self.arc_info)

    def close(self):
        self.closed = True


@pytest.fixture
def sleeps() -> list[float]:
    """Collects requested sleep intervals instead of sleeping."""
    return []


PRINCIPAL_ID = "9c4f3a2b-7d6e-4b1a-8c2d-3e4f5a6b7c8d"


def make_fake_api(
    role_assigned=False, group_exists=False, arc_states=("Created",), fail=None
):
    """Build an AzureApi whose az invocations are answered in memory."""

    class FakeAzureApi(AzureApi):
        commands: list[list[str]] = []
        states = list(arc_states)

        @staticmethod
        def check_dependencies():
            pass

        @classmethod
        def run_command(cls, cmd, show_logs=False):
            cls.commands.append(cmd)
            if fail and cmd[1] == fail:
                raise subprocess.CalledProcessError(
                    1, cmd, output="", stderr=f"{fail} denied"
                )
            if cmd[1:3] == ["group", "show"] and not group_exists:
                raise subprocess.CalledProcessError(
                    3, cmd, output="", stderr="ResourceGroupNotFound"
                )
            return subprocess.CompletedProcess(cmd, 0, cls._answer(cmd), "")

        @classmethod
        def _answer(cls, cmd):
            if cmd[1:3] == ["resource", "show"]:
                return PRINCIPAL_ID
            if cmd[1:4] == ["role", "assignment", "list"]:
                return json.dumps([{"id": "a"}] if role_assigned else [])
            if cmd[1:4] == ["rest", "--method", "get"]:
                state = cls.states[0]
                if len(cls.states) > 1:
                    cls.states.pop(0)
                return json.dumps({"properties": {"provisioningState": state}})
            if cmd[1:3] == ["k8s-extension", "create"]:
                name = cmd[cmd.index("--name") + 1]
                return json.dumps({"id": f"/extensions/{name}"})
            return ""

        @classmethod
        def ran(cls, *prefix):
            n = len(prefix)
            return [c for c in cls.commands if c[1 : 1 + n] == list(prefix)]

    return FakeAzureApi

