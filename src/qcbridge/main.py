# QCBridge - Bridge Application
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

"""Process bootstrap: config, transports, dispatcher and (optionally) the window."""

import argparse
import contextlib
import errno
import logging
import signal
import sys
import threading

from qcbridge import __version__
from qcbridge.config import (
    get_config_path,
    get_mappings_path,
    load_config,
    select_midi_output,
)
from qcbridge.dispatcher import Dispatcher
from qcbridge.errors import ConfigLoadError
from qcbridge.logging_setup import BufferedLogHandler, setup_logging
from qcbridge.mapping.loader import create_default_mappings
from qcbridge.midi.output_manager import OutputManager
from qcbridge.osc.client import OSCSender
from qcbridge.osc.server import OSCServer
from qcbridge.session import BridgeSession
from qcbridge.synthesizer import OutputSynthesizer

logger = logging.getLogger(__name__)


class QCBridge:
    """Owns the session, the dispatcher and the transports for one process"""

    def __init__(self, config, config_path, mappings_path=None, print_mappings=False):
        self.config = config
        self.config_path = config_path
        self.mappings_path = mappings_path or get_mappings_path(config, config_path)

        osc_config = config['osc']
        self.session = BridgeSession()
        self.osc_sender = OSCSender(osc_config['send_host'], osc_config['send_port'])
        self.output_manager = None
        self.midi_port_name = None
        self.synthesizer = OutputSynthesizer(osc_sender=self.osc_sender)
        self.dispatcher = Dispatcher(
            self.session,
            self.synthesizer,
            mappings_path=self.mappings_path,
            print_mappings=print_mappings,
        )
        self.osc_server = OSCServer(
            self.dispatcher.on_message,
            address=osc_config['listen_address'],
            port=osc_config['listen_port'],
        )
        self.shutdown_event = threading.Event()

    def open_midi(self, stack):
        """Open the configured (or first available) MIDI output, if any"""
        self.output_manager = stack.enter_context(OutputManager())
        ports = self.output_manager.get_ports()
        logger.info(f"Available MIDI outputs: {ports}")

        port_name = select_midi_output(self.config, ports, self.config_path)
        if port_name and self.output_manager.open_port(port_name):
            self.midi_port_name = port_name
            logger.info(f"MIDI device connected: {port_name}")
        self.synthesizer.midi_out = self.output_manager

    def start(self, stack):
        """Load mappings and open all transports inside ``stack``.

        Raises:
            ConfigLoadError: if the mappings file cannot be loaded
            OSError: if the OSC listen port cannot be bound
        """
        create_default_mappings(self.mappings_path)
        self.dispatcher.load_mapping_table()

        stack.enter_context(self.osc_sender)
        self.open_midi(stack)
        stack.enter_context(self.osc_server)
        logger.info("Bridge started")

    def request_shutdown(self, signum=None, frame=None):
        if signum is not None:
            logger.info(f"Received signal {signum}, shutting down")
        self.shutdown_event.set()

    def install_signal_handlers(self, on_signal):
        signal.signal(signal.SIGINT, on_signal)
        signal.signal(signal.SIGTERM, on_signal)

    def run_headless(self):
        with contextlib.ExitStack() as stack:
            self.start(stack)
            self.install_signal_handlers(self.request_shutdown)
            logger.info("Application started. Press Ctrl+C to exit.")
            # wait() in short slices so signals are serviced on every platform
            while not self.shutdown_event.wait(0.5):
                pass
            logger.info("Closing OSC server and MIDI output.")

    def run_gui(self, log_handler):
        from qcbridge.gui.main_window import MainWindow

        window = MainWindow(self, log_handler)
        with contextlib.ExitStack() as stack:
            self.start(stack)

            def on_signal(signum, frame):
                self.request_shutdown(signum, frame)
                window.stop()

            self.install_signal_handlers(on_signal)
            window.run()
            logger.info("Closing OSC server and MIDI output.")


def list_midi_ports():
    with OutputManager() as output_manager:
        ports = output_manager.get_ports()
    if not ports:
        print("No MIDI output ports available")
    for i, name in enumerate(ports):
        print(f"{i}: {name}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="qcbridge",
        description="Translate OSC messages into OSC and MIDI using a CSV mapping table.",
    )
    parser.add_argument("--config", help="path to config.json (default: platform config dir)")
    parser.add_argument("--mappings", help="path to mappings.csv (overrides config)")
    parser.add_argument("--headless", action="store_true", help="run without the window")
    parser.add_argument("--print-mappings", action="store_true",
                        help="log the mapping table every time it is loaded")
    parser.add_argument("--list-midi-ports", action="store_true",
                        help="print available MIDI outputs and exit")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv=None):
    """Console entry point. Returns the process exit code."""
    args = parse_args(argv)

    if args.list_midi_ports:
        list_midi_ports()
        return 0

    config_path = args.config or get_config_path()
    try:
        config = load_config(config_path)
    except ConfigLoadError as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 1

    if args.debug:
        config['logging']['debug'] = True

    log_handler = None
    extra_handlers = []
    if not args.headless:
        log_handler = BufferedLogHandler()
        extra_handlers.append(log_handler)
    setup_logging(config, extra_handlers)

    logger.info(f"QCBridge {__version__} starting")
    bridge = QCBridge(config, config_path, mappings_path=args.mappings,
                      print_mappings=args.print_mappings)

    try:
        if args.headless:
            bridge.run_headless()
        else:
            bridge.run_gui(log_handler)
    except ConfigLoadError as e:
        logger.error(f"Error loading mappings: {e}")
        return 1
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error(f"Port {config['osc']['listen_port']} already in use. Is the bridge already running?")
            return 1
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    except KeyboardInterrupt:
        logger.info("Shutdown requested (Ctrl+C)")

    logger.info("Bridge shutdown complete")
    return 0


if __name__ == '__main__':
    sys.exit(main())
