# QCBridge - OSC Arguments
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

"""Typed OSC arguments.

Arguments are converted once, at the transport boundary, into
``OscArgument`` values tagged FLOAT or STRING. Matching and output
synthesis only ever see this form.
"""

import enum
import math
from typing import NamedTuple, Union


class ArgKind(enum.Enum):
    FLOAT = "f"
    STRING = "s"


class OscArgument(NamedTuple):
    kind: ArgKind
    value: Union[float, str]

    @classmethod
    def from_value(cls, value):
        """Build an argument from a decoded python-osc value.

        int and float (but not bool) are numeric; anything else is carried
        as its string form. Booleans become "true" and "false".
        """
        if isinstance(value, bool):
            return cls(ArgKind.STRING, "true" if value else "false")
        if isinstance(value, (int, float)):
            return cls(ArgKind.FLOAT, float(value))
        if isinstance(value, bytes):
            return cls(ArgKind.STRING, value.decode("utf-8", errors="replace"))
        return cls(ArgKind.STRING, str(value))

    @classmethod
    def from_token(cls, token):
        """Parse a rule-file token: numeric if it parses as a finite number."""
        try:
            number = float(token)
        except ValueError:
            return cls(ArgKind.STRING, token)
        if not math.isfinite(number):
            return cls(ArgKind.STRING, token)
        return cls(ArgKind.FLOAT, number)

    @property
    def is_numeric(self):
        return self.kind is ArgKind.FLOAT

    def as_token(self):
        """String form used when comparing against a rule's input tokens.

        Whole numbers print without a fractional part, so a received 1 or
        1.0 both compare equal to the token "1".
        """
        if self.kind is ArgKind.STRING:
            return self.value
        return format_number(self.value)


def format_number(value):
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def from_transport(values):
    """Convert a sequence of decoded OSC values into a tuple of arguments"""
    return tuple(OscArgument.from_value(v) for v in values)
