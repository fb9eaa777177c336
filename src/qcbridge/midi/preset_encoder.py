# QCBridge - Quad Cortex Preset Encoder
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

"""Bank/letter preset selection for the Neural DSP Quad Cortex.

A preset id such as "12D" names bank 12, slot D. It is sent as
CC#0 = 0 (bank select MSB), CC#32 = setlist (bank select LSB) and a
program change of (bank - 1) * 8 + slot.
"""

import re

from qcbridge.errors import ValidationError
from qcbridge.midi.messages import (
    BANK_SELECT_LSB,
    BANK_SELECT_MSB,
    control_change,
    program_change,
)

PRESET_ID_PATTERN = re.compile(r"^(\d+)([A-H])$", re.IGNORECASE)
PRESET_LETTERS = "ABCDEFGH"
MIN_BANK = 1
MAX_BANK = 32


def parse_preset_id(preset_id):
    """Split a preset id into (bank, letter).

    Raises:
        ValidationError: if the id is not digits followed by a letter A-H
    """
    match = PRESET_ID_PATTERN.fullmatch(preset_id or "")
    if not match:
        raise ValidationError(
            f"Invalid Quad Cortex preset format: {preset_id!r}. Expected format like '1A', '12D', etc."
        )
    return int(match.group(1)), match.group(2).upper()


def preset_program_number(preset_id):
    """Program change number (0-255) for a preset id"""
    bank, letter = parse_preset_id(preset_id)
    if bank < MIN_BANK or bank > MAX_BANK:
        raise ValidationError(
            f"Invalid bank number: {bank}. Must be between {MIN_BANK} and {MAX_BANK}."
        )
    return (bank - 1) * 8 + PRESET_LETTERS.index(letter)


def encode_qc_preset(preset_id, channel, setlist):
    """Return the three messages selecting ``preset_id`` in ``setlist``.

    Nothing is returned on failure: the id is fully validated before any
    message is built.
    """
    program = preset_program_number(preset_id)
    return [
        control_change(channel, BANK_SELECT_MSB, 0),
        control_change(channel, BANK_SELECT_LSB, setlist),
        program_change(channel, program),
    ]
