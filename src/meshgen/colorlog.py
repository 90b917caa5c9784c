"""
meshgen Color Log Formatter - ANSI Color-Coded Log Message Formatting

PURPOSE:
    Provides color-coded log output for the meshgen CLI. Colors are only
    emitted when the handler writes to a terminal, so redirected stderr
    stays plain text.

WHO READS ME:
    - main.py: setup_logging() installs CustomFormatter on the root handlers

WHO I READ:
    - None (leaf module, no internal dependencies)

COLOR SCHEME:
    - DEBUG: Grey
    - INFO: Cyan
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Bold Red

LOG FORMAT:
    %(levelname)s: %(message)s (%(filename)s:%(lineno)d)
    Example: "WARNING: Multiple nodes with the same tag: 'a' (render.py:104)"
"""

import logging


class CustomFormatter(logging.Formatter):
    """return a formatter that prints log messages with color"""

    grey = "\x1b[38;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    cyan = "\x1b[36;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    template = "%(levelname)s: %(message)s (%(filename)s:%(lineno)d)"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: cyan,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def __init__(self, use_color: bool = True):
        super().__init__(self.template)
        self.use_color = use_color
        self._formatters = {
            level: logging.Formatter(color + self.template + self.reset)
            for level, color in self.COLORS.items()
        }

    def format(self, record):
        if not self.use_color:
            return super().format(record)
        formatter = self._formatters.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)
