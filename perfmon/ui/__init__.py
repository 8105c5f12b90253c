"""perfmon UI - Terminal output components."""

from .console import MonitorConsole, console
from .theme import COLORS, PERFMON_THEME, SYMBOLS

__all__ = ["console", "MonitorConsole", "COLORS", "SYMBOLS", "PERFMON_THEME"]
