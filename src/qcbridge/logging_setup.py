# QCBridge - Logging Setup
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

import collections
import logging
import logging.handlers
import threading
from pathlib import Path

LOG_FORMAT = '%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
MAX_LOG_LINES = 1000


def setup_logging(config, extra_handlers=()):
    """Configure the root logger from the config's logging section.

    Console output is INFO, or DEBUG when logging.debug is set. A rotating
    log file is added when logging.file is set. ``extra_handlers`` (e.g. the
    GUI log panel) get the same level and formatter.
    """
    logging_config = config.get('logging', {})
    level = logging.DEBUG if logging_config.get('debug') else logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler()]

    log_file = logging_config.get('file')
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=logging_config.get('max_bytes', 1048576),
            backupCount=logging_config.get('backup_count', 3),
        ))

    handlers.extend(extra_handlers)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)


class BufferedLogHandler(logging.Handler):
    """Keeps the most recent formatted records for the GUI log panel.

    Records can arrive from any thread; they are buffered here and drained
    by the render loop.
    """

    def __init__(self, capacity=MAX_LOG_LINES):
        super().__init__()
        self.pending = collections.deque(maxlen=capacity)
        self._buffer_lock = threading.Lock()

    def emit(self, record):
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        if record.levelno >= logging.ERROR:
            line = f"❌ {line}"
        with self._buffer_lock:
            self.pending.append(line)

    def drain(self):
        with self._buffer_lock:
            lines = list(self.pending)
            self.pending.clear()
        return lines
