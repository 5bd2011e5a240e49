"""Runtime options and logging policy for the bridge."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class LoggingMode(enum.Enum):
    """Bridge runtime logging policy."""

    AUTO_FROM_BUILD = "auto_from_build"
    ENABLED = "enabled"
    DISABLED = "disabled"


@dataclass
class BridgeOptions:
    """Dependencies and policy switches for one bridge runtime.

    ``serial`` is the controller link; None selects the default one.
    """

    serial: Any = None
    disable_led_feedback: bool = True
    disable_reset_trigger: bool = False
    disable_wifi_sleep: bool = True
    logging_mode: LoggingMode = LoggingMode.AUTO_FROM_BUILD


def should_disable_logging(mode: LoggingMode, debug_build: bool = False) -> bool:
    """Return True when runtime logging should be turned off.

    In automatic mode debug builds keep logging and release builds silence it.
    """
    if mode is LoggingMode.ENABLED:
        return False
    if mode is LoggingMode.DISABLED:
        return True
    return not debug_build