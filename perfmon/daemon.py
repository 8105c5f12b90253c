"""Background execution for perfmon.

The foreground process relaunches itself as a detached child in its own
session and exits; the child runs the normal sampling loop with its output
going to a log file.
"""

import logging
import subprocess
import sys
import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from perfmon.config import SampleConfig
from perfmon.errors import DaemonStartError
from perfmon.ui import MonitorConsole
from perfmon.ui import console as default_console

logger = logging.getLogger(__name__)

LOG_NAME_FORMAT = "perf_monitor_%Y%m%d_%H%M%S.log"
# Seconds the child must survive before the handoff counts as started
STARTUP_GRACE = 1.0


def default_log_path(now: datetime | None = None) -> str:
    """Timestamped log file in the system temp directory."""
    stamp = (now or datetime.now()).strftime(LOG_NAME_FORMAT)
    return str(Path(tempfile.gettempdir()) / stamp)


def build_relaunch_args(config: SampleConfig, log_path: str) -> list[str]:
    """Command line for the detached child. Never includes --daemon."""
    argv = [
        sys.executable,
        "-m",
        "perfmon",
        "--duration",
        str(config.duration),
        "--interval",
        str(config.interval),
        "--disk",
        config.disk,
        "--output",
        log_path,
    ]
    if config.interface:
        argv += ["--interface", config.interface]
    if config.verbose:
        argv.append("--verbose")
    return argv


class DaemonSupervisor:
    """
    Relaunches the monitor detached from the controlling terminal.

    Args:
        console: Console used to report the child PID
        popen: Process spawner (injectable for tests)
        now: Wall clock used to name the default log file
        startup_grace: Seconds to watch the child for an early exit
    """

    def __init__(
        self,
        console: MonitorConsole | None = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        now: Callable[[], datetime] = datetime.now,
        startup_grace: float = STARTUP_GRACE,
    ):
        self.console = console or default_console
        self._popen = popen
        self._now = now
        self.startup_grace = startup_grace

    def maybe_detach(self, config: SampleConfig) -> bool:
        """
        Spawn the background child if daemon mode was requested.

        Returns:
            True if a child was started and the caller should exit

        Raises:
            OSError: If the log file cannot be opened or the child cannot be spawned
            DaemonStartError: If the child exits during the startup grace period
        """
        if not config.daemon:
            return False

        log_path = config.output or default_log_path(self._now())
        argv = build_relaunch_args(config, log_path)
        logger.debug(f"Relaunching in background: {' '.join(argv)}")

        # Child warnings and startup errors land in the sample log
        with open(log_path, "a", encoding="utf-8") as log_file:
            process = self._popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=log_file,
                start_new_session=True,
                close_fds=True,
            )

        try:
            code = process.wait(timeout=self.startup_grace)
        except subprocess.TimeoutExpired:
            code = None
        # 0 means a short run already finished
        if code:
            raise DaemonStartError(
                f"Background monitor exited with status {code} during startup; see {log_path}"
            )

        self.console.success(f"Monitoring started in background (PID {process.pid})")
        self.console.secondary(f"Log file: {log_path}")
        self.console.secondary(f"Stop with: kill {process.pid}")
        return True
