# QCBridge - Dispatcher
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

"""Entry point for every inbound OSC message, and for mapping reloads."""

import logging
import math
import threading

from qcbridge.errors import ConfigLoadError
from qcbridge.mapping.loader import format_table, load_mapping_table
from qcbridge.osc.address import normalize_address

logger = logging.getLogger(__name__)

SETLIST_ADDRESS = "/setlist"


class Dispatcher:
    """Normalizes, intercepts /setlist, resolves and synthesizes.

    Args:
        session: BridgeSession holding the table and setlist
        synthesizer: OutputSynthesizer used for resolved rules
        mappings_path: CSV file read by refresh_mapping_table()
        loader: callable(path) -> MappingTable, raising ConfigLoadError
        print_mappings: log the whole table after each successful load
    """

    def __init__(self, session, synthesizer, mappings_path=None,
                 loader=load_mapping_table, print_mappings=False):
        self.session = session
        self.synthesizer = synthesizer
        self.mappings_path = mappings_path
        self.loader = loader
        self.print_mappings = print_mappings
        self._refresh_lock = threading.Lock()
        self.listeners = []  # callables(event, data) notified of state changes

    def on_message(self, address, args):
        """Handle one inbound message. Returns the resolved rule, if any."""
        normalized = normalize_address(address)
        logger.debug(f"Received OSC message: {address} (normalized to {normalized}) "
                     f"{[arg.value for arg in args]}")

        if normalized == SETLIST_ADDRESS:
            self._handle_setlist(args)
            return None

        table, setlist = self.session.snapshot()
        rule = table.resolve(normalized, args)
        if rule is None:
            logger.debug(f"No mapping found for {normalized} with args "
                         f"{[arg.as_token() for arg in args]}")
            return None

        logger.debug(f"Found mapping: {rule.describe()}")
        self.synthesizer.synthesize(rule, args, setlist)
        return rule

    def _handle_setlist(self, args):
        if not args or not args[0].is_numeric or not math.isfinite(args[0].value):
            logger.warning("Invalid argument for /setlist. Expected a number.")
            return
        setlist = int(args[0].value)
        self.session.set_setlist(setlist)
        self._notify("setlist", setlist)

    def load_mapping_table(self):
        """Load the mappings file and swap it in as a whole.

        Raises:
            ConfigLoadError: if the file is missing or malformed; the
                previous table stays active
        """
        if self.mappings_path is None:
            raise ConfigLoadError("No mappings file configured")

        with self._refresh_lock:
            table = self.loader(self.mappings_path)
            self.session.replace_table(table)

        logger.info("Mappings loaded!")
        if self.print_mappings:
            for line in format_table(table):
                logger.info(line)
        self._notify("mappings", table)
        return table

    def refresh_mapping_table(self):
        """Operator-triggered reload. Returns True on success.

        A failed reload is logged and the previous table stays in effect.
        """
        try:
            self.load_mapping_table()
        except ConfigLoadError as e:
            logger.error(f"Error loading mappings, keeping previous table: {e}")
            return False
        return True

    def _notify(self, event, data):
        for listener in list(self.listeners):
            try:
                listener(event, data)
            except Exception as e:
                logger.error(f"Error in {event} listener: {e}", exc_info=True)
