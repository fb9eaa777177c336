# QCBridge - Output Synthesizer
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

"""Turn a resolved mapping rule into outbound OSC and MIDI messages.

Each output leg fails on its own: a validation or transport error is
logged and only that leg is skipped.
"""

import logging
import math

from qcbridge.errors import TransportError, ValidationError
from qcbridge.mapping.rule import MidiType
from qcbridge.midi import messages
from qcbridge.midi.preset_encoder import encode_qc_preset
from qcbridge.osc.arguments import ArgKind, OscArgument

logger = logging.getLogger(__name__)


def build_osc_args(rule, args):
    """Arguments for the outbound OSC message.

    Tokens from ``osc_out_args`` replace the received arguments when the
    cell is not blank; otherwise received arguments are forwarded with
    numbers tagged as floats.
    """
    if rule.osc_out_args is not None and rule.osc_out_args.strip():
        return [OscArgument.from_token(token) for token in rule.osc_out_args.strip().split(" ")]
    return [
        OscArgument(ArgKind.FLOAT, float(arg.value)) if arg.is_numeric else arg
        for arg in args
    ]


def _value_or_first_arg(rule, args):
    if rule.midi_value is not None:
        return rule.midi_value
    if args and args[0].is_numeric:
        if not math.isfinite(args[0].value):
            raise ValidationError(f"cannot use {args[0].value} as a MIDI value")
        return int(args[0].value)
    return 0


def build_midi_messages(rule, args, setlist):
    """MIDI messages for a rule's MIDI leg.

    Raises:
        ValidationError: if the rule lacks a field its midi_type needs, or
            its preset id is invalid
    """
    channel = rule.midi_channel
    midi_type = rule.midi_type

    if midi_type in (MidiType.NOTE_ON, MidiType.NOTE_OFF):
        if rule.midi_note is None or rule.midi_velocity is None:
            raise ValidationError(f"{midi_type.value} needs midi_note and midi_velocity")
        build = messages.note_on if midi_type is MidiType.NOTE_ON else messages.note_off
        return [build(channel, rule.midi_note, rule.midi_velocity)]

    if midi_type is MidiType.CC:
        if rule.midi_controller is None:
            raise ValidationError("cc needs midi_controller")
        return [messages.control_change(channel, rule.midi_controller, _value_or_first_arg(rule, args))]

    if midi_type is MidiType.PC:
        return [messages.program_change(channel, _value_or_first_arg(rule, args))]

    if midi_type is MidiType.QC_PRESET:
        if not rule.qc_preset_id:
            raise ValidationError("qc_preset needs qc_preset_id")
        resolved_setlist = rule.setlist if rule.setlist is not None else setlist
        logger.info(f"Sending QC preset: setlist {resolved_setlist}, preset {rule.qc_preset_id}")
        return encode_qc_preset(rule.qc_preset_id, channel, resolved_setlist)

    raise ValidationError(f"Unsupported midi_type: {midi_type}")


class OutputSynthesizer:
    def __init__(self, osc_sender=None, midi_out=None):
        self.osc_sender = osc_sender
        self.midi_out = midi_out

    def synthesize(self, rule, args, setlist):
        """Run both output legs for a rule; neither leg's failure stops the other"""
        self.send_osc(rule, args)
        self.send_midi(rule, args, setlist)

    def send_osc(self, rule, args):
        """Returns the sent arguments, or None if the leg was skipped or failed"""
        if not rule.has_osc_output:
            return None
        if self.osc_sender is None:
            logger.debug(f"No OSC sender, skipping OSC output for {rule.describe()}")
            return None
        out_args = build_osc_args(rule, args)
        try:
            self.osc_sender.send(rule.osc_out_address, out_args)
        except TransportError as e:
            logger.error(str(e))
            return None
        return out_args

    def send_midi(self, rule, args, setlist):
        """Returns the sent messages, or None if the leg was skipped or failed"""
        if not rule.has_midi_output:
            return None
        if self.midi_out is None or not self.midi_out.is_open:
            logger.debug(f"MIDI output disabled, skipping MIDI output for {rule.describe()}")
            return None
        try:
            midi_messages = build_midi_messages(rule, args, setlist)
            # Encode everything first so an invalid sequence sends nothing
            for message in midi_messages:
                message.to_bytes()
        except ValidationError as e:
            logger.warning(f"Skipping MIDI output for {rule.describe()}: {e}")
            return None

        try:
            for message in midi_messages:
                self.midi_out.send(message)
        except (TransportError, ValidationError) as e:
            logger.error(f"Error sending MIDI message: {e}")
            return None
        return midi_messages
