# QCBridge - OSC Server
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
import threading

from pythonosc import dispatcher
from pythonosc import osc_server

from qcbridge.osc.arguments import from_transport

logger = logging.getLogger(__name__)


class OSCServer:
    """Receives OSC on a background thread and hands each message to a callback.

    ``BlockingOSCUDPServer`` handles one datagram at a time, so messages
    reach the callback strictly in arrival order.
    """

    def __init__(self, callback, address="0.0.0.0", port=8000):
        self.address = address
        self.port = port
        self.server = None
        self.callback = callback
        self.thread = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    def start(self):
        disp = dispatcher.Dispatcher()
        disp.set_default_handler(self.handle_message)

        self.server = osc_server.BlockingOSCUDPServer((self.address, self.port), disp)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        logger.info(f"OSC server listening on {self.address}:{self.port}")

    def handle_message(self, address, *args):
        try:
            self.callback(address, from_transport(args))
        except Exception as e:
            # The listener must survive any single bad message
            logger.error(f"Error handling OSC message {address}: {e}", exc_info=True)

    def stop(self):
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.server = None
            logger.info("OSC server stopped")
        if self.thread:
            self.thread.join(timeout=1.0)
            self.thread = None
