"""perfmon Console - Themed console singleton with semantic message methods."""

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.text import Text

from .theme import PERFMON_THEME, SYMBOLS


class MonitorConsole:
    """Themed console with semantic message methods. Errors go to stderr."""

    _instance: "MonitorConsole | None" = None

    def __new__(cls) -> "MonitorConsole":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._console = RichConsole(theme=PERFMON_THEME)
            cls._instance._err_console = RichConsole(theme=PERFMON_THEME, stderr=True)
        return cls._instance

    @property
    def rich(self) -> RichConsole:
        return self._console

    def print(self, *args, **kwargs) -> None:
        self._console.print(*args, **kwargs)

    def sample(self, line: str) -> None:
        # Text keeps "[2025-01-01 ...]" from being read as markup
        self._console.print(Text(line, style="sample"), highlight=False, soft_wrap=True)

    def success(self, message: str) -> None:
        self._console.print(f"[success_symbol]{SYMBOLS['success']}[/] [success]{escape(message)}[/]", soft_wrap=True)

    def error(self, message: str, details: str | None = None) -> None:
        self._err_console.print(f"[error_symbol]{SYMBOLS['error']}[/] [error]{escape(message)}[/]", soft_wrap=True)
        if details:
            self._err_console.print(f"  [secondary]{escape(details)}[/]", soft_wrap=True)

    def warning(self, message: str) -> None:
        self._console.print(f"[warning_symbol]{SYMBOLS['warning']}[/]  [warning]{escape(message)}[/]", soft_wrap=True)

    def info(self, message: str) -> None:
        self._console.print(f"[info_symbol]{SYMBOLS['info']}[/] [info]{escape(message)}[/]", soft_wrap=True)

    def secondary(self, message: str) -> None:
        self._console.print(f"  [secondary]{escape(message)}[/]", soft_wrap=True)

    def blank(self) -> None:
        self._console.print()

    def rule(self, title: str = "") -> None:
        self._console.rule(title, style="panel_border")


console = MonitorConsole()
