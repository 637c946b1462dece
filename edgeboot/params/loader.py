"""Load the deployment parameter sheet into a flat name -> value mapping."""

import csv
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from edgeboot.errors import ValidationError

logger = logging.getLogger(__name__)

NAME_COLUMN = "Parameter"
VALUE_COLUMN = "Value"

RawParameters = dict[str, str]


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_rows(rows: Iterable[Iterable[Any]], source: str) -> RawParameters:
    """Turn sheet rows into parameters.

    The header row is the first row holding both the ``Parameter`` and
    ``Value`` column names; rows above it are ignored, as are rows with an
    empty parameter name.
    """
    name_idx = value_idx = None
    params: RawParameters = {}
    for row in rows:
        cells = [_cell_text(c) for c in row]
        if name_idx is None:
            if NAME_COLUMN in cells and VALUE_COLUMN in cells:
                name_idx = cells.index(NAME_COLUMN)
                value_idx = cells.index(VALUE_COLUMN)
            continue

        name = cells[name_idx] if name_idx < len(cells) else ""
        if not name:
            continue
        value = cells[value_idx] if value_idx < len(cells) else ""
        if name in params:
            logger.warning(
                f"Parameter {name} appears more than once in {source}, "
                "using the last value"
            )
        params[name] = value

    if name_idx is None:
        raise ValidationError(
            "parameterSheet",
            source,
            f"no header row with {NAME_COLUMN} and {VALUE_COLUMN} columns",
        )
    return params


def load_parameter_sheet(path: str, sheet: str | None = None) -> RawParameters:
    """Load parameters from an ``.xlsx`` workbook or a ``.csv`` file.

    Args:
        path: Path to the parameter sheet
        sheet: Worksheet name; defaults to the active sheet

    Returns:
        Parameter name to raw string value
    """
    sheet_path = Path(path)
    if not sheet_path.exists():
        raise ValidationError("parameterSheet", path, "file not found")

    if sheet_path.suffix.lower() == ".csv":
        with open(sheet_path, newline="", encoding="utf-8-sig") as f:
            params = parse_rows(csv.reader(f), path)
    else:
        try:
            wb = load_workbook(sheet_path, read_only=True, data_only=True)
        except Exception as e:
            raise ValidationError(
                "parameterSheet", path, f"cannot read workbook: {e}"
            ) from e
        try:
            if sheet is not None and sheet not in wb.sheetnames:
                raise ValidationError(
                    "parameterSheet", path, f"no worksheet named {sheet}"
                )
            ws = wb[sheet] if sheet is not None else wb.active
            params = parse_rows(ws.iter_rows(values_only=True), path)
        finally:
            wb.close()

    logger.info(f"Loaded {len(params)} parameters from {path}")
    return params
