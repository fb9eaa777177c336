# QCBridge - Mapping Loader
# Copyright (C) 2025 maigre - Hemisphere Project
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Load the mapping table from a CSV file.

Every column has a declared type and is parsed once here. A malformed row
fails the whole load with ConfigLoadError, so a bad edit never replaces a
working table with a half-parsed one.
"""

import csv
import logging
from pathlib import Path

from qcbridge.errors import ConfigLoadError
from qcbridge.mapping.rule import MappingRule, MidiType
from qcbridge.mapping.table import MappingTable
from qcbridge.osc.address import normalize_address

logger = logging.getLogger(__name__)

MAPPING_COLUMNS = [
    "osc_in_address",
    "osc_in_args",
    "osc_out_address",
    "osc_out_args",
    "midi_channel",
    "midi_type",
    "midi_note",
    "midi_velocity",
    "midi_controller",
    "midi_value",
    "setlist",
    "qc_preset_id",
    "comment",
]

STRING_COLUMNS = ("osc_in_args", "osc_out_address", "osc_out_args", "qc_preset_id")
INTEGER_COLUMNS = (
    "midi_channel",
    "midi_note",
    "midi_velocity",
    "midi_controller",
    "midi_value",
    "setlist",
)


def _cell(row, column):
    value = row.get(column)
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_int(text):
    """Parse an integer cell; whole-number floats like '5.0' are accepted"""
    try:
        return int(text)
    except ValueError:
        number = float(text)
        if not number.is_integer():
            raise ValueError(f"not a whole number: {text!r}")
        return int(number)


def parse_row(row, line):
    """Build a MappingRule from one CSV row (a dict keyed by column name)"""
    address = _cell(row, "osc_in_address")
    if address is not None:
        address = normalize_address(address)
    if not address:
        raise ConfigLoadError(f"line {line}: osc_in_address is required")

    fields = {"osc_in_address": address, "line": line}

    for column in STRING_COLUMNS:
        fields[column] = _cell(row, column)

    for column in INTEGER_COLUMNS:
        text = _cell(row, column)
        if text is None:
            continue
        try:
            fields[column] = parse_int(text)
        except ValueError:
            raise ConfigLoadError(
                f"line {line}: column '{column}' expects an integer, got {text!r}"
            ) from None

    midi_type = _cell(row, "midi_type")
    if midi_type is not None:
        try:
            fields["midi_type"] = MidiType.parse(midi_type)
        except ValueError:
            allowed = ", ".join(t.value for t in MidiType)
            raise ConfigLoadError(
                f"line {line}: unknown midi_type {midi_type!r} (expected one of: {allowed})"
            ) from None

    return MappingRule(**fields)


def load_mapping_table(path):
    """Read and parse a mappings CSV into a MappingTable.

    Raises:
        ConfigLoadError: if the file cannot be read, has no osc_in_address
            column, or contains a malformed row
    """
    path = Path(path)
    try:
        with open(path, "r", newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None or "osc_in_address" not in [
                name.strip() for name in reader.fieldnames
            ]:
                raise ConfigLoadError(f"{path}: missing 'osc_in_address' header column")
            # Tolerate stray spaces around header names
            reader.fieldnames = [name.strip() for name in reader.fieldnames]

            rules = []
            for row in reader:
                if all(v is None or not str(v).strip() for k, v in row.items() if k is not None):
                    continue
                rules.append(parse_row(row, reader.line_num))
    except OSError as e:
        raise ConfigLoadError(f"Could not read mappings file {path}: {e}") from e
    except csv.Error as e:
        raise ConfigLoadError(f"{path}: malformed CSV: {e}") from e

    logger.info(f"Loaded {len(rules)} mapping(s) from {path}")
    return MappingTable(rules, source=path)


def create_default_mappings(path):
    """Write a header-only mappings file if none exists. Returns True if created."""
    path = Path(path)
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        csv.writer(f).writerow(MAPPING_COLUMNS)
    logger.warning(f"mappings.csv not found, created an empty one at {path}")
    return True


def format_table(table):
    """Render a table as aligned text lines (for --print-mappings and the GUI)"""
    columns = [c for c in MAPPING_COLUMNS if c != "comment"]
    rows = []
    for rule in table:
        row = []
        for column in columns:
            value = getattr(rule, column)
            if value is None:
                row.append("")
            elif column == "midi_type":
                row.append(value.value)
            else:
                row.append(str(value))
        rows.append(row)

    widths = [len(c) for c in columns]
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))

    lines = ["  ".join(c.ljust(w) for c, w in zip(columns, widths)).rstrip()]
    for row in rows:
        lines.append("  ".join(v.ljust(w) for v, w in zip(row, widths)).rstrip())
    return lines
