import json

import pytest
import responses

from edgeboot.device.api import HttpDeviceApi
from edgeboot.errors import RemoteOperationError

BASE_URL = "https://10.126.75.5:443/api/v1"


@pytest.fixture
def device():
    api = HttpDeviceApi("10.126.75.5", "EdgeUser", "secret")
    yield api
    api.close()


@responses.activate
def test_get_appliance_info(device):
    responses.add(
        responses.GET,
        f"{BASE_URL}/appliance",
        json={"softwareVersion": "3.2.2510.2000"},
    )
    assert device.get_appliance_info() == {"softwareVersion": "3.2.2510.2000"}
    assert responses.calls[0].request.headers["Authorization"].startswith(
        "Basic "
    )


@responses.activate
def test_set_device_configuration_sends_body(device):
    responses.add(responses.PUT, f"{BASE_URL}/deviceConfiguration", body="")
    device.set_device_configuration({"virtualNetworks": []})
    assert json.loads(responses.calls[0].request.body) == {
        "virtualNetworks": []
    }


@responses.activate
def test_workload_profile_and_role(device):
    responses.add(responses.PUT, f"{BASE_URL}/kubernetes/workloadProfile")
    responses.add(responses.POST, f"{BASE_URL}/kubernetes/roles")
    device.set_workload_profile("AP5GC")
    device.add_kubernetes_role("kubernetesRole")
    assert json.loads(responses.calls[0].request.body) == {
        "workloadProfile": "AP5GC"
    }
    assert json.loads(responses.calls[1].request.body) == {
        "name": "kubernetesRole"
    }


@responses.activate
def test_http_error_becomes_remote_operation_error(device):
    responses.add(
        responses.GET,
        f"{BASE_URL}/deviceConfiguration/status",
        status=503,
    )
    with pytest.raises(RemoteOperationError) as exc_info:
        device.get_device_configuration_status()
    assert exc_info.value.operation == "Get device configuration status"


@responses.activate
def test_non_json_response(device):
    responses.add(
        responses.GET,
        f"{BASE_URL}/deviceConfiguration",
        body="<html>maintenance</html>",
    )
    with pytest.raises(RemoteOperationError, match="not JSON"):
        device.get_device_configuration()


def test_closed_session_rejects_calls():
    api = HttpDeviceApi("10.126.75.5", "EdgeUser", "secret")
    with api:
        pass
    assert api.session is None
    with pytest.raises(RemoteOperationError, match="closed"):
        api.get_arc_cluster_info()
