# QCBridge - MIDI Messages
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

"""Channel voice messages emitted by the bridge.

Channels are 0-based (0-15) and go into the low nibble of the status byte.
Data values are passed through unclamped; they only have to fit in a byte.
"""

from typing import NamedTuple, Tuple

from qcbridge.errors import ValidationError

NOTE_OFF = 0x80
NOTE_ON = 0x90
CONTROL_CHANGE = 0xB0
PROGRAM_CHANGE = 0xC0

BANK_SELECT_MSB = 0
BANK_SELECT_LSB = 32

_STATUS = {
    "note_on": NOTE_ON,
    "note_off": NOTE_OFF,
    "cc": CONTROL_CHANGE,
    "pc": PROGRAM_CHANGE,
}


class MidiMessage(NamedTuple):
    kind: str
    channel: int
    data: Tuple[int, ...]

    def to_bytes(self):
        """Encode as a list of ints suitable for rtmidi's send_message"""
        if self.kind not in _STATUS:
            raise ValidationError(f"Unknown MIDI message kind: {self.kind}")
        if not 0 <= self.channel <= 15:
            raise ValidationError(f"MIDI channel {self.channel} out of range (0-15)")
        for value in self.data:
            if not 0 <= value <= 0xFF:
                raise ValidationError(f"MIDI {self.kind} value {value} does not fit in a byte")
        return [_STATUS[self.kind] | self.channel, *self.data]

    def describe(self):
        if self.kind in ("note_on", "note_off"):
            return f"{self.kind}: ch={self.channel}, note={self.data[0]}, vel={self.data[1]}"
        if self.kind == "cc":
            return f"CC: ch={self.channel}, controller={self.data[0]}, value={self.data[1]}"
        return f"Program Change: ch={self.channel}, program={self.data[0]}"


def note_on(channel, note, velocity):
    return MidiMessage("note_on", channel, (note, velocity))


def note_off(channel, note, velocity):
    return MidiMessage("note_off", channel, (note, velocity))


def control_change(channel, controller, value):
    return MidiMessage("cc", channel, (controller, value))


def program_change(channel, program):
    return MidiMessage("pc", channel, (program,))
