"""
Output Sinks for perfmon

Formats samples into the fixed one-line record and writes them to the
console and/or an append-only log file.

Author: Perfmon Team
SPDX-License-Identifier: BUSL-1.1
"""

import logging
from pathlib import Path

from perfmon.errors import SinkWriteError
from perfmon.monitor.sampler import MetricSample
from perfmon.ui import MonitorConsole
from perfmon.ui import console as default_console

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_sample(sample: MetricSample) -> str:
    """
    Render a sample as the fixed log line.

    Example:
        [2025-01-01 12:00:00] CPU:   7% | MEM:  41.3% | DISK(/):  55% | NET(eth0) RX:   1.2KB/s | TX:   0.4KB/s
    """
    return (
        f"[{sample.timestamp.strftime(TIMESTAMP_FORMAT)}] "
        f"CPU: {sample.cpu_percent:3d}% | "
        f"MEM: {sample.memory_percent:5.1f}% | "
        f"DISK({sample.disk_path}): {sample.disk_percent:3d}% | "
        f"NET({sample.interface}) RX: {sample.rx_kbps:5.1f}KB/s | "
        f"TX: {sample.tx_kbps:5.1f}KB/s"
    )


class Sink:
    """Destination for formatted samples."""

    name = "sink"

    def write(self, sample: MetricSample) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ConsoleSink(Sink):
    """Prints samples in green through the themed console."""

    name = "console"

    def __init__(self, console: MonitorConsole | None = None):
        self.console = console or default_console

    def write(self, sample: MetricSample) -> None:
        try:
            self.console.sample(format_sample(sample))
        except OSError as e:
            raise SinkWriteError(f"Cannot write to console: {e}") from e


class LogFileSink(Sink):
    """
    Appends plain-text samples to a log file.

    The file is opened once; every sample is one complete write followed by
    a flush, so a reader tailing the file never sees a partial line.
    """

    name = "file"

    def __init__(self, path: str | Path):
        self.path = Path(path)
        try:
            self._handle = open(self.path, "a", encoding="utf-8")
        except OSError as e:
            raise SinkWriteError(f"Cannot open log file {self.path}: {e}") from e
        logger.debug(f"Logging samples to {self.path}")

    def write(self, sample: MetricSample) -> None:
        if self._handle is None:
            raise SinkWriteError(f"Log file {self.path} is closed")
        try:
            self._handle.write(format_sample(sample) + "\n")
            self._handle.flush()
        except OSError as e:
            raise SinkWriteError(f"Cannot write to {self.path}: {e}") from e

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        except OSError as e:
            logger.warning(f"Failed to close {self.path}: {e}")
        finally:
            self._handle = None
