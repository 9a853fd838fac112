"""Custom logging levels for the application.

This module defines additional logging levels like TRACE for very verbose debugging.
"""

import logging

# Define TRACE level (below DEBUG)
TRACE = 5


def setup_trace_logging():
    """Register the TRACE level and a ``Logger.trace`` helper."""
    logging.addLevelName(TRACE, "TRACE")

    def trace(self, message, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, message, args, **kwargs)

    logging.Logger.trace = trace
    logging.TRACE = TRACE

    return TRACE


def level_from_name(name: str) -> int:
    """Translate a level name (including TRACE) into a logging constant."""
    name = (name or 'INFO').upper()
    if name == 'TRACE':
        return TRACE
    return getattr(logging, name, logging.INFO)


TRACE_LEVEL = setup_trace_logging()
