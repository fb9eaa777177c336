# QCBridge - Mapping Table
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

"""Ordered, immutable collection of mapping rules and first-match resolution."""

import logging
from typing import Iterable, Optional, Sequence

from qcbridge.mapping.rule import MappingRule
from qcbridge.osc.arguments import OscArgument

logger = logging.getLogger(__name__)


class MappingTable:
    """Rules in file order. Never mutated; a reload builds a new table."""

    __slots__ = ("_rules", "source")

    def __init__(self, rules: Iterable[MappingRule] = (), source=None):
        self._rules = tuple(rules)
        self.source = source

    def __len__(self):
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)

    def __getitem__(self, index):
        return self._rules[index]

    @property
    def rules(self):
        return self._rules

    def resolve(self, address: str, args: Sequence[OscArgument]) -> Optional[MappingRule]:
        """Return the first rule matching a normalized address and its arguments.

        A rule matches when its input address equals ``address`` and either
        it has no input arguments, or its space separated tokens equal the
        received arguments' string forms one by one (same count required).
        Earlier rules win; there is no specificity ranking.
        """
        received = None
        for rule in self._rules:
            if rule.osc_in_address != address:
                continue
            expected = rule.in_tokens
            if expected is None:
                return rule
            if received is None:
                received = tuple(arg.as_token() for arg in args)
            if expected == received:
                return rule
        return None
