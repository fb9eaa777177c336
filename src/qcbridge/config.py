# QCBridge - Configuration
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

import copy
import json
import logging
import os
from pathlib import Path

from qcbridge.errors import ConfigLoadError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "osc": {
        "listen_address": "0.0.0.0",
        "listen_port": 8000,
        "send_host": "127.0.0.1",
        "send_port": 7001,
    },
    "midi": {
        "output_name": "",
    },
    "mappings": {
        "path": "",
    },
    "logging": {
        "debug": False,
        "file": "",
        "max_bytes": 1048576,
        "backup_count": 3,
    },
}


def get_config_dir():
    """Get platform-appropriate config directory

    - macOS: ~/Library/Application Support/QCBridge
    - Linux: ~/.config/qcbridge
    - Windows: %APPDATA%/QCBridge
    - Fallback: current directory
    """
    if os.name == 'posix':
        if os.uname().sysname == 'Darwin':
            return Path.home() / "Library" / "Application Support" / "QCBridge"
        return Path.home() / ".config" / "qcbridge"
    if os.name == 'nt':
        appdata = os.getenv('APPDATA')
        return Path(appdata) / "QCBridge" if appdata else Path(".")
    return Path(".")


def get_config_path():
    return get_config_dir() / "config.json"


def get_default_config():
    """Return default configuration"""
    return copy.deepcopy(DEFAULT_CONFIG)


def apply_defaults(config):
    """Fill in missing sections and keys in place"""
    for section, values in DEFAULT_CONFIG.items():
        if not isinstance(config.get(section), dict):
            config[section] = {}
        for key, value in values.items():
            config[section].setdefault(key, value)
    return config


def validate_config(config):
    """Check types and ranges of the settings the bridge relies on.

    Raises:
        ConfigLoadError: on the first invalid value
    """
    for key in ("listen_port", "send_port"):
        port = config["osc"][key]
        if isinstance(port, bool) or not isinstance(port, int) or not (1 <= port <= 65535):
            raise ConfigLoadError(f"Invalid osc.{key}: {port!r} (must be an integer 1-65535)")

    for key in ("listen_address", "send_host"):
        value = config["osc"][key]
        if not isinstance(value, str) or not value.strip():
            raise ConfigLoadError(f"Invalid osc.{key}: {value!r} (must be a non-empty string)")

    if not isinstance(config["midi"]["output_name"], str):
        raise ConfigLoadError("Invalid midi.output_name (must be a string)")

    if not isinstance(config["mappings"]["path"], str):
        raise ConfigLoadError("Invalid mappings.path (must be a string)")


def load_config(config_path):
    """Load config.json, creating it with defaults on first run.

    Raises:
        ConfigLoadError: if the file exists but is unreadable, not JSON,
            or fails validation
    """
    config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"No config file found, creating {config_path} with defaults")
        config = get_default_config()
        save_config(config, config_path)
        return config

    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigLoadError(f"Error reading config {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigLoadError(f"Config {config_path} must contain a JSON object")

    apply_defaults(config)
    validate_config(config)
    logger.info(f"Config loaded from {config_path}")
    return config


def save_config(config, config_path):
    """Save configuration to config.json. Returns True on success."""
    config_path = Path(config_path)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)
    except OSError as e:
        logger.error(f"Could not save config to {config_path}: {e}")
        return False
    logger.info(f"Config saved to {config_path}")
    return True


def get_mappings_path(config, config_path):
    """Configured mappings file, or mappings.csv next to config.json"""
    path = config["mappings"]["path"]
    if path:
        return Path(path).expanduser()
    return Path(config_path).parent / "mappings.csv"


def select_midi_output(config, available_ports, config_path=None):
    """Pick the MIDI output to open.

    Keeps the configured name when that port exists; otherwise falls back
    to the first available port and writes the choice back to config.json.
    Returns the port name, or None when no port is available.
    """
    name = config["midi"]["output_name"]
    if name and name in available_ports:
        return name

    if available_ports:
        chosen = available_ports[0]
        logger.warning(f"Configured MIDI device '{name}' not found. "
                       f"Setting to first available: '{chosen}'")
    else:
        chosen = ""
        logger.warning("No MIDI output devices available. MIDI output will be disabled.")

    if chosen != name:
        config["midi"]["output_name"] = chosen
        if config_path is not None:
            save_config(config, config_path)
    return chosen or None
