import pytest
from openpyxl import Workbook

from edgeboot.errors import ValidationError
from edgeboot.params.loader import load_parameter_sheet, parse_rows


def test_parse_rows_skips_rows_above_header():
    rows = [
        ("Deployment parameters", None),
        (None, None),
        ("Parameter", "Value"),
        ("AseName", "ase-site1"),
        ("NumberOfDNNs", 2.0),
        (None, "orphan value"),
        ("DnsAddresses", None),
    ]
    assert parse_rows(rows, "sheet") == {
        "AseName": "ase-site1",
        "NumberOfDNNs": "2",
        "DnsAddresses": "",
    }


def test_parse_rows_requires_header():
    with pytest.raises(ValidationError, match="no header row"):
        parse_rows([("AseName", "ase-site1")], "sheet")


def test_load_xlsx(tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.append(["Description", "Parameter", "Value"])
    ws.append(["Appliance", "AseName", "ase-site1"])
    ws.append(["DNN count", "NumberOfDNNs", 3])
    path = tmp_path / "parameters.xlsx"
    wb.save(path)

    assert load_parameter_sheet(str(path)) == {
        "AseName": "ase-site1",
        "NumberOfDNNs": "3",
    }


def test_load_csv(tmp_path):
    path = tmp_path / "parameters.csv"
    path.write_text("Parameter,Value\nAseName,ase-site1\nN2VlanId,10\n")
    assert load_parameter_sheet(str(path)) == {
        "AseName": "ase-site1",
        "N2VlanId": "10",
    }


def test_missing_file(tmp_path):
    with pytest.raises(ValidationError, match="file not found"):
        load_parameter_sheet(str(tmp_path / "missing.xlsx"))
