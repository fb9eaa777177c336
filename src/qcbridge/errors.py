# QCBridge - Errors
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

"""Error taxonomy shared by the loader, encoders and transports."""


class BridgeError(Exception):
    """Base class for all bridge errors"""


class ConfigLoadError(BridgeError):
    """Config or mappings file unreadable or malformed"""


class ValidationError(BridgeError):
    """A resolved rule cannot produce the requested output"""


class TransportError(BridgeError):
    """An OSC or MIDI send failed"""
