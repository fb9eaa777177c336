# QCBridge - MIDI Output Manager
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

import logging

import rtmidi

from qcbridge.errors import TransportError

logger = logging.getLogger(__name__)


class OutputManager:
    def __init__(self, client_name="QCBridge"):
        self.midi_out = rtmidi.MidiOut(name=client_name)
        self.current_port = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close_port()
        return False

    @property
    def is_open(self):
        return self.current_port is not None

    def get_ports(self):
        """Get list of available MIDI output ports"""
        try:
            return self.midi_out.get_ports()
        except rtmidi.RtMidiError as e:
            # Port list changed during enumeration (device unplugged)
            logger.warning(f"Error enumerating MIDI output ports: {e}")
            return []

    def open_port(self, port_name):
        """Open a MIDI output port by name"""
        self.close_port()
        ports = self.get_ports()
        if port_name not in ports:
            logger.error(f"No MIDI output port found with name '{port_name}'")
            return False
        try:
            self.midi_out.open_port(ports.index(port_name))
        except rtmidi.RtMidiError as e:
            logger.error(f"Could not open MIDI port '{port_name}': {e}")
            return False
        self.current_port = port_name
        logger.info(f"Opened MIDI port: {port_name}")
        return True

    def close_port(self):
        """Close the currently open MIDI port"""
        if self.current_port:
            self.midi_out.close_port()
            logger.info(f"Closed MIDI port: {self.current_port}")
            self.current_port = None

    def send(self, message):
        """Send one MidiMessage. Fire-and-forget: rtmidi does not acknowledge.

        Raises:
            ValidationError: if the message cannot be encoded
            TransportError: if no port is open or the driver rejects it
        """
        data = message.to_bytes()
        if not self.current_port:
            raise TransportError("No MIDI output port open")
        try:
            self.midi_out.send_message(data)
        except (rtmidi.RtMidiError, ValueError, TypeError) as e:
            raise TransportError(f"Error sending MIDI message {data}: {e}") from e
        logger.info(f"Sent MIDI {message.describe()}")
