"""
perfmon UI Theme - Color constants and styling definitions.
"""

from rich.style import Style
from rich.theme import Theme

COLORS = {
    "success": "#22c55e",
    "error": "#ef4444",
    "warning": "#eab308",
    "info": "#3b82f6",
    "secondary": "#6b7280",
    "primary": "#ffffff",
    "accent": "#8b5cf6",
    "panel_border": "#4b5563",
    "highlight": "#fbbf24",
    "sample": "green",
}

SYMBOLS = {
    "success": "✓",
    "error": "✗",
    "warning": "⚠",
    "info": "●",
    "stop": "■",
}

PERFMON_THEME = Theme({
    "success": Style(color=COLORS["success"], bold=True),
    "error": Style(color=COLORS["error"], bold=True),
    "warning": Style(color=COLORS["warning"], bold=True),
    "info": Style(color=COLORS["info"]),
    "secondary": Style(color=COLORS["secondary"], dim=True),
    "primary": Style(color=COLORS["primary"]),
    "accent": Style(color=COLORS["accent"], bold=True),
    "highlight": Style(color=COLORS["highlight"], bold=True),
    "panel_border": Style(color=COLORS["panel_border"]),
    "sample": Style(color=COLORS["sample"]),
    "success_symbol": Style(color=COLORS["success"]),
    "error_symbol": Style(color=COLORS["error"]),
    "warning_symbol": Style(color=COLORS["warning"]),
    "info_symbol": Style(color=COLORS["info"]),
})
