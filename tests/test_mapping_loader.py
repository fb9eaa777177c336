"""Tests for loading the mapping table from CSV."""

import pytest

from qcbridge.errors import ConfigLoadError
from qcbridge.mapping.loader import (
    MAPPING_COLUMNS,
    create_default_mappings,
    format_table,
    load_mapping_table,
    parse_int,
)
from qcbridge.mapping.rule import MidiType


class TestLoadMappingTable:

    def test_parses_typed_columns(self, write_mappings):
        path = write_mappings(
            "/cue/go/,start,/ableton/play,1 fast,2,cc,,,7,100,3,,main fader",
        )
        table = load_mapping_table(path)

        assert len(table) == 1
        rule = table[0]
        assert rule.osc_in_address == "/cue/go"  # normalized at load time
        assert rule.osc_in_args == "start"
        assert rule.osc_out_address == "/ableton/play"
        assert rule.osc_out_args == "1 fast"
        assert rule.midi_channel == 2
        assert rule.midi_type is MidiType.CC
        assert rule.midi_note is None
        assert rule.midi_controller == 7
        assert rule.midi_value == 100
        assert rule.setlist == 3
        assert rule.qc_preset_id is None
        assert rule.line == 2

    def test_preserves_row_order(self, write_mappings):
        path = write_mappings(
            "/a,,/out/1,,,,,,,,,,",
            "/b,,/out/2,,,,,,,,,,",
            "/a,,/out/3,,,,,,,,,,",
        )
        table = load_mapping_table(path)
        assert [r.osc_out_address for r in table] == ["/out/1", "/out/2", "/out/3"]

    def test_blank_cells_are_absent(self, write_mappings):
        path = write_mappings("/a,  ,,   ,,,,,,,,,")
        rule = load_mapping_table(path)[0]
        assert rule.osc_in_args is None
        assert rule.osc_out_args is None
        assert rule.midi_type is None

    def test_midi_type_is_case_insensitive(self, write_mappings):
        path = write_mappings("/a,,,,0,QC_Preset,,,,,,1a,")
        rule = load_mapping_table(path)[0]
        assert rule.midi_type is MidiType.QC_PRESET
        assert rule.qc_preset_id == "1a"

    def test_whole_number_floats_accepted_for_integers(self, write_mappings):
        path = write_mappings("/a,,,,1.0,note_on,60.0,100,,,,,")
        rule = load_mapping_table(path)[0]
        assert rule.midi_channel == 1
        assert rule.midi_note == 60

    def test_missing_optional_columns(self, write_mappings):
        path = write_mappings("/a,/b", header="osc_in_address,osc_out_address\n")
        rule = load_mapping_table(path)[0]
        assert rule.osc_out_address == "/b"
        assert rule.midi_channel is None

    def test_skips_empty_rows(self, write_mappings):
        path = write_mappings(",,,,,,,,,,,,", "/a,,,,,,,,,,,,")
        assert len(load_mapping_table(path)) == 1

    def test_header_only_file_gives_empty_table(self, write_mappings):
        assert len(load_mapping_table(write_mappings())) == 0

    def test_missing_address_is_error(self, write_mappings):
        path = write_mappings(",x,/out,,,,,,,,,,")
        with pytest.raises(ConfigLoadError, match="line 2"):
            load_mapping_table(path)

    def test_root_address_is_error(self, write_mappings):
        path = write_mappings("/,,/out,,,,,,,,,,")
        with pytest.raises(ConfigLoadError, match="line 2: osc_in_address"):
            load_mapping_table(path)

    def test_non_integer_is_error(self, write_mappings):
        path = write_mappings("/a,,,,one,cc,,,1,,,,")
        with pytest.raises(ConfigLoadError, match="midi_channel"):
            load_mapping_table(path)

    def test_fractional_integer_is_error(self, write_mappings):
        path = write_mappings("/a,,,,,cc,,,1,2.5,,,")
        with pytest.raises(ConfigLoadError, match="midi_value"):
            load_mapping_table(path)

    def test_unknown_midi_type_is_error(self, write_mappings):
        path = write_mappings("/a,,,,0,sysex,,,,,,,")
        with pytest.raises(ConfigLoadError, match="sysex"):
            load_mapping_table(path)

    def test_missing_header_column_is_error(self, write_mappings):
        path = write_mappings("/a,/b", header="address,out\n")
        with pytest.raises(ConfigLoadError):
            load_mapping_table(path)

    def test_missing_file_is_error(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="Could not read"):
            load_mapping_table(tmp_path / "nope.csv")


class TestParseInt:

    def test_plain(self):
        assert parse_int("42") == 42

    def test_whole_float(self):
        assert parse_int("5.0") == 5

    def test_rejects_fraction(self):
        with pytest.raises(ValueError):
            parse_int("5.5")


class TestDefaultMappings:

    def test_creates_header_only_file(self, tmp_path):
        path = tmp_path / "sub" / "mappings.csv"
        assert create_default_mappings(path) is True
        assert path.read_text().strip() == ",".join(MAPPING_COLUMNS)
        assert len(load_mapping_table(path)) == 0

    def test_does_not_overwrite(self, tmp_path):
        path = tmp_path / "mappings.csv"
        path.write_text("osc_in_address\n/keep\n")
        assert create_default_mappings(path) is False
        assert "/keep" in path.read_text()


def test_format_table(write_mappings):
    table = load_mapping_table(write_mappings("/a,,,,0,pc,,,,5,,,"))
    lines = format_table(table)
    assert lines[0].startswith("osc_in_address")
    assert "pc" in lines[1]
    assert len(lines) == 2
