import csv
import functools
import json

import responses

from edgeboot import cli
from edgeboot.cloud.azure.api import AzureSession
from edgeboot.errors import RemoteOperationError
from tests.conftest import (
    CURRENT_CONFIGURATION,
    SUBSCRIPTION_ID,
    make_fake_api,
    make_raw_parameters,
)

DEVICE_URL = "https://10.126.75.5:443/api/v1"


def write_sheet(path, raw):
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["Parameter", "Value"])
        for name, value in raw.items():
            writer.writerow([name, value])
    return str(path)


def test_validate_only_writes_parameter_files(tmp_path):
    sheet = write_sheet(tmp_path / "sheet.csv", make_raw_parameters(3))
    output_dir = tmp_path / "out"

    code = cli.main([sheet, "-o", str(output_dir), "--validate-only"])

    assert code == cli.EXIT_OK
    with open(output_dir / "mobile-network.parameters.json") as f:
        mobile = json.load(f)
    assert len(mobile["parameters"]["dataNetworks"]["value"]) == 3
    assert (output_dir / "commissioning.parameters.json").exists()


def test_invalid_sheet_exits_with_validation_code(tmp_path):
    raw = make_raw_parameters()
    raw["N3Gateway"] = "192.168.99.1"
    sheet = write_sheet(tmp_path / "sheet.csv", raw)

    code = cli.main([sheet, "-o", str(tmp_path / "out"), "--validate-only"])

    assert code == cli.EXIT_VALIDATION_FAILURE
    assert not (tmp_path / "out" / "commissioning.parameters.json").exists()


def test_invalid_poll_budget():
    code = cli.main(["sheet.csv", "--config-poll-attempts", "0"])
    assert code == cli.EXIT_VALIDATION_FAILURE


def test_remote_failure_skips_cloud_provisioning(tmp_path, monkeypatch):
    sheet = write_sheet(tmp_path / "sheet.csv", make_raw_parameters())
    provisioned = []

    def fail_commission(config, params):
        raise RemoteOperationError("Software version check", "unsupported")

    monkeypatch.setattr(cli, "commission", fail_commission)
    monkeypatch.setattr(
        cli, "provision", lambda config, params: provisioned.append(params)
    )

    code = cli.main([sheet, "-o", str(tmp_path / "out")])

    assert code == cli.EXIT_REMOTE_FAILURE
    assert provisioned == []


def test_full_run_passes_skip_login(tmp_path, monkeypatch):
    sheet = write_sheet(tmp_path / "sheet.csv", make_raw_parameters())
    seen = []
    monkeypatch.setattr(cli, "commission", lambda config, params: None)
    monkeypatch.setattr(
        cli, "provision", lambda config, params: seen.append(config.skip_login)
    )

    code = cli.main([sheet, "-o", str(tmp_path / "out"), "--skip-login"])

    assert code == cli.EXIT_OK
    assert seen == [True]


def add_device_endpoints(software_version="3.2.2510.2000"):
    responses.add(
        responses.GET,
        f"{DEVICE_URL}/appliance",
        json={"softwareVersion": software_version},
    )
    responses.add(
        responses.GET,
        f"{DEVICE_URL}/deviceConfiguration",
        json=CURRENT_CONFIGURATION,
    )
    responses.add(responses.PUT, f"{DEVICE_URL}/deviceConfiguration")
    responses.add(
        responses.GET,
        f"{DEVICE_URL}/deviceConfiguration/status",
        json={
            "deviceConfigurationStatus": "Complete",
            "results": [{"declarationName": "N2", "resultCode": "Success"}],
        },
    )
    responses.add(responses.PUT, f"{DEVICE_URL}/kubernetes/workloadProfile")
    responses.add(responses.POST, f"{DEVICE_URL}/kubernetes/roles")
    responses.add(responses.PUT, f"{DEVICE_URL}/kubernetes/arc")
    responses.add(
        responses.GET,
        f"{DEVICE_URL}/kubernetes/arc",
        json={
            "subscriptionId": SUBSCRIPTION_ID,
            "resourceGroupName": "edge-rg",
            "resourceName": "ase-site1-cluster",
            "location": "eastus",
        },
    )


def run_args(sheet, output_dir):
    return [
        sheet,
        "-o",
        str(output_dir),
        "--config-poll-interval",
        "0",
        "--arc-poll-interval",
        "0",
    ]


@responses.activate
def test_end_to_end_run(tmp_path, monkeypatch):
    sheet = write_sheet(tmp_path / "sheet.csv", make_raw_parameters())
    output_dir = tmp_path / "out"
    add_device_endpoints()
    api = make_fake_api()
    monkeypatch.setattr(
        cli, "AzureSession", functools.partial(AzureSession, api=api)
    )

    code = cli.main(run_args(sheet, output_dir))

    assert code == cli.EXIT_OK
    pushed = json.loads(responses.calls[2].request.body)
    assert responses.calls[2].request.method == "PUT"
    assert [n["network"] for n in pushed["virtualNetworks"]] == [
        "192.168.10.0/24",
        "192.168.20.0/24",
        "10.0.1.0/24",
        "10.0.2.0/24",
    ]
    assert (output_dir / "device-configuration.desired.json").exists()

    assert api.commands[0][1] == "login"
    assert api.commands[-1][1] == "logout"
    assert len(api.ran("customlocation", "create")) == 1


@responses.activate
def test_end_to_end_device_failure_skips_cloud(tmp_path, monkeypatch):
    sheet = write_sheet(tmp_path / "sheet.csv", make_raw_parameters())
    add_device_endpoints(software_version="1.0.0.0")
    api = make_fake_api()
    monkeypatch.setattr(
        cli, "AzureSession", functools.partial(AzureSession, api=api)
    )

    code = cli.main(run_args(sheet, tmp_path / "out"))

    assert code == cli.EXIT_REMOTE_FAILURE
    assert len(responses.calls) == 1
    assert api.commands == []
