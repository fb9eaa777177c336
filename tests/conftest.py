"""Shared fixtures for the QCBridge test suite."""

import sys
from pathlib import Path
from unittest.mock import Mock

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import pytest

from qcbridge.mapping.rule import MappingRule, MidiType
from qcbridge.mapping.table import MappingTable
from qcbridge.osc.arguments import from_transport


HEADER = ("osc_in_address,osc_in_args,osc_out_address,osc_out_args,midi_channel,"
          "midi_type,midi_note,midi_velocity,midi_controller,midi_value,setlist,"
          "qc_preset_id,comment\n")


@pytest.fixture
def write_mappings(tmp_path):
    """Write CSV rows (without header) to a mappings file and return its path."""
    def _write(*rows, header=HEADER, name="mappings.csv"):
        path = tmp_path / name
        path.write_text(header + "".join(row + "\n" for row in rows), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def args():
    """Build OSC arguments the way the server does."""
    def _args(*values):
        return from_transport(values)
    return _args


@pytest.fixture
def midi_out():
    out = Mock()
    out.is_open = True
    return out


@pytest.fixture
def osc_sender():
    return Mock()


@pytest.fixture
def sample_table():
    return MappingTable([
        MappingRule("/scene", osc_in_args="1", osc_out_address="/lights/one", line=2),
        MappingRule("/scene", osc_in_args="2", osc_out_address="/lights/two", line=3),
        MappingRule("/scene", osc_out_address="/lights/any", line=4),
        MappingRule("/preset", midi_channel=0, midi_type=MidiType.QC_PRESET,
                    qc_preset_id="2A", line=5),
    ])
