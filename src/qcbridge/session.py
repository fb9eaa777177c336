# QCBridge - Session State
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

"""Per-process bridge state: the active mapping table and current setlist."""

import logging
import threading

from qcbridge.mapping.table import MappingTable

logger = logging.getLogger(__name__)


class BridgeSession:
    """Holds the mapping table and setlist shared by the dispatch path.

    The table is only ever replaced as a whole, and ``snapshot`` returns
    both values together so one message is processed against a single
    consistent view.
    """

    def __init__(self, table=None, setlist=0):
        self._lock = threading.Lock()
        self._table = table if table is not None else MappingTable()
        self._setlist = setlist

    @property
    def table(self):
        return self._table

    @property
    def setlist(self):
        return self._setlist

    def snapshot(self):
        with self._lock:
            return self._table, self._setlist

    def replace_table(self, table):
        with self._lock:
            previous, self._table = self._table, table
        return previous

    def set_setlist(self, setlist):
        with self._lock:
            self._setlist = setlist
        logger.info(f"Current setlist updated to: {setlist}")
