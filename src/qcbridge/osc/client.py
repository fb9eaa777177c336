# QCBridge - OSC Client
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

from pythonosc import udp_client
from pythonosc.osc_message_builder import BuildError, OscMessageBuilder

from qcbridge.errors import TransportError
from qcbridge.osc.arguments import ArgKind

logger = logging.getLogger(__name__)


def build_message(address, args):
    """Build an OSC message with explicit type tags from OscArguments"""
    builder = OscMessageBuilder(address=address)
    for arg in args:
        if arg.kind is ArgKind.FLOAT:
            builder.add_arg(float(arg.value), OscMessageBuilder.ARG_TYPE_FLOAT)
        else:
            builder.add_arg(str(arg.value), OscMessageBuilder.ARG_TYPE_STRING)
    return builder.build()


class OSCSender:
    """UDP client for the single configured OSC destination"""

    def __init__(self, host="127.0.0.1", port=7001):
        self.host = host
        self.port = port
        self.client = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def open(self):
        if self.client is None:
            self.client = udp_client.UDPClient(self.host, self.port)
            logger.info(f"OSC client will send to {self.host}:{self.port}")

    def close(self):
        if self.client is not None:
            sock = getattr(self.client, "_sock", None)
            if sock is not None:
                sock.close()
            self.client = None

    def send(self, address, args):
        """Send one message. Fire-and-forget: UDP gives no delivery report.

        Raises:
            TransportError: if the message cannot be built or sent
        """
        if self.client is None:
            raise TransportError("OSC client is not open")
        try:
            message = build_message(address, args)
            self.client.send(message)
        except (BuildError, OSError, OverflowError, ValueError) as e:
            raise TransportError(f"Error sending OSC message to {address}: {e}") from e
        logger.info(f"Sent OSC message: {address} {[arg.value for arg in args]}")
