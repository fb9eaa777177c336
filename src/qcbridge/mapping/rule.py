# QCBridge - Mapping Rule
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

"""One row of the mapping table."""

import enum
from dataclasses import dataclass
from typing import Optional, Tuple


class MidiType(enum.Enum):
    NOTE_ON = "note_on"
    NOTE_OFF = "note_off"
    CC = "cc"
    PC = "pc"
    QC_PRESET = "qc_preset"

    @classmethod
    def parse(cls, text):
        """Case-insensitive lookup by table value; raises ValueError if unknown"""
        return cls(text.strip().lower())


@dataclass(frozen=True)
class MappingRule:
    osc_in_address: str
    osc_in_args: Optional[str] = None
    osc_out_address: Optional[str] = None
    osc_out_args: Optional[str] = None
    midi_channel: Optional[int] = None
    midi_type: Optional[MidiType] = None
    midi_note: Optional[int] = None
    midi_velocity: Optional[int] = None
    midi_controller: Optional[int] = None
    midi_value: Optional[int] = None
    qc_preset_id: Optional[str] = None
    setlist: Optional[int] = None
    line: Optional[int] = None  # source line, for log messages

    def __post_init__(self):
        if not self.osc_in_address:
            raise ValueError("osc_in_address must not be empty")

    @property
    def in_tokens(self) -> Optional[Tuple[str, ...]]:
        """Expected argument tokens, or None when the rule takes any arguments"""
        if self.osc_in_args is None or not self.osc_in_args.strip():
            return None
        return tuple(self.osc_in_args.split(" "))

    @property
    def has_osc_output(self) -> bool:
        return bool(self.osc_out_address)

    @property
    def has_midi_output(self) -> bool:
        return self.midi_type is not None and self.midi_channel is not None

    def describe(self):
        """Short human-readable form for logs"""
        text = self.osc_in_address
        if self.osc_in_args:
            text += f" [{self.osc_in_args}]"
        if self.line is not None:
            text += f" (line {self.line})"
        return text
