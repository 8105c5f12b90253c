"""
Platform Metric Providers for perfmon

One provider per backend family, all exposing the same capabilities:
CPU busy %, memory used %, disk used %, and per-interface byte counters.
The concrete class is picked once at startup by detect_provider().

Important Notes:
    - Raw data comes from external tools (top, free, vmstat, df, netstat,
      vm_stat, sysctl) and the kernel's /proc/net/dev table
    - A metric that cannot be read is reported as its zero value; it never
      aborts sampling

Author: Perfmon Team
SPDX-License-Identifier: BUSL-1.1
"""

import logging
import os
import platform
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import psutil

from perfmon.errors import ConfigurationError, InterfaceUnavailable, MetricReadError
from perfmon.monitor import parsers

logger = logging.getLogger(__name__)

COMMAND_TIMEOUT = 10

CommandRunner = Callable[[list[str]], str]


@dataclass(frozen=True)
class InterfaceCounters:
    """Cumulative byte counters of one interface at one instant."""

    name: str
    rx_bytes: int
    tx_bytes: int
    # time.monotonic() reading
    observed_at: float


@dataclass(frozen=True)
class PlatformReading:
    """Everything a provider reads in one tick."""

    cpu_percent: int
    memory_percent: float
    disk_percent: int
    counters: InterfaceCounters | None = None


def run_command(argv: list[str]) -> str:
    """
    Run an external tool and return its stdout.

    Raises:
        MetricReadError: If the tool is missing, times out, or exits non-zero
    """
    try:
        result = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT,
            # Parsers expect "96.7", not "96,7"
            env={**os.environ, "LC_ALL": "C"},
            # Terminal SIGINT reaches perfmon only
            start_new_session=True,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, PermissionError) as e:
        raise MetricReadError(argv[0], str(e)) from e

    if result.returncode != 0:
        raise MetricReadError(argv[0], f"exit status {result.returncode}: {result.stderr.strip()}")
    return result.stdout


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class MetricProvider(ABC):
    """
    Uniform capability interface over one platform backend.

    Subclasses implement the capability methods and raise MetricReadError
    on failure. sample() turns failures into zero values, clamps ranges,
    and logs the first failure of each metric as a warning.
    """

    name = "generic"
    description = "Generic host"
    required_tools: tuple[str, ...] = ("df",)
    # Fallback interfaces in order of preference
    default_interfaces: tuple[str, ...] = ("eth0",)

    def __init__(self, disk_path: str = "/", runner: CommandRunner | None = None):
        self.disk_path = disk_path
        self._run = runner or run_command
        self._degraded: set[str] = set()

    # -- capabilities ---------------------------------------------------

    @abstractmethod
    def cpu_usage(self) -> float:
        """Return CPU busy percentage."""

    @abstractmethod
    def memory_usage(self) -> float:
        """Return used memory as a percentage of total."""

    @abstractmethod
    def interface_table(self) -> dict[str, tuple[int, int]]:
        """Return ``{interface: (rx_bytes, tx_bytes)}`` for every interface."""

    def disk_usage(self) -> int:
        """Return used capacity percentage of the filesystem holding disk_path."""
        return parsers.parse_df_percent(self._run(["df", "-P", self.disk_path]))

    def interface_counters(self, interface: str) -> InterfaceCounters:
        """Read the cumulative counters of one interface."""
        table = self.interface_table()
        if interface not in table:
            raise InterfaceUnavailable(interface)
        rx, tx = table[interface]
        return InterfaceCounters(
            name=interface,
            rx_bytes=rx,
            tx_bytes=tx,
            observed_at=time.monotonic(),
        )

    def interface_exists(self, interface: str) -> bool:
        """Check whether an interface is currently present on the host."""
        if not interface:
            return False
        try:
            if interface in psutil.net_if_stats():
                return True
        except OSError as e:
            logger.debug(f"psutil interface lookup failed: {e}")
        try:
            return interface in self.interface_table()
        except MetricReadError:
            return False

    def missing_tools(self) -> list[str]:
        """Return the external tools this backend needs but cannot find."""
        return [tool for tool in self.required_tools if shutil.which(tool) is None]

    # -- sampling -------------------------------------------------------

    def _read(self, metric: str, reader: Callable[[], float], default: float) -> float:
        try:
            value = reader()
        except MetricReadError as e:
            if metric in self._degraded:
                logger.debug(f"{metric} still unavailable: {e}")
            else:
                self._degraded.add(metric)
                logger.warning(f"{metric} unavailable, reporting {default}: {e}")
            return default

        if metric in self._degraded:
            self._degraded.discard(metric)
            logger.info(f"{metric} readings recovered")
        return value

    def sample(self, interface: str | None = None) -> PlatformReading:
        """
        Read all metrics once.

        Args:
            interface: Interface whose counters to include (None = skip network)

        Returns:
            PlatformReading with clamped values; counters is None when the
            interface could not be read
        """
        cpu = self._read("cpu", self.cpu_usage, 0)
        memory = self._read("memory", self.memory_usage, 0.0)
        disk = self._read("disk", self.disk_usage, 0)

        counters = None
        if interface:
            try:
                counters = self.interface_counters(interface)
            except MetricReadError as e:
                logger.warning(f"Network counters unavailable for {interface}: {e}")

        return PlatformReading(
            cpu_percent=int(_clamp(cpu)),
            memory_percent=round(_clamp(memory), 1),
            disk_percent=int(_clamp(disk)),
            counters=counters,
        )


class ProcfsProvider(MetricProvider):
    """Generic Linux: procps top/free plus /proc/net/dev."""

    name = "procfs"
    description = "Linux server"
    required_tools = ("top", "free", "df")
    default_interfaces = ("eth0",)

    def __init__(
        self,
        disk_path: str = "/",
        runner: CommandRunner | None = None,
        net_dev_path: str = "/proc/net/dev",
    ):
        super().__init__(disk_path, runner)
        self.net_dev_path = Path(net_dev_path)

    def cpu_usage(self) -> float:
        idle = parsers.parse_top_idle(self._run(["top", "-bn1"]))
        # fraction truncated: 97.6 idle -> 2
        return int(100 - idle)

    def memory_usage(self) -> float:
        used, total = parsers.parse_free(self._run(["free", "-b"]))
        return used / total * 100

    def interface_table(self) -> dict[str, tuple[int, int]]:
        try:
            text = self.net_dev_path.read_text(encoding="utf-8")
        except OSError as e:
            raise MetricReadError("network", f"cannot read {self.net_dev_path}: {e}") from e
        return parsers.parse_proc_net_dev(text)


class ConstrainedDeviceProvider(ProcfsProvider):
    """
    Single-board computers (Raspberry Pi class ARM boards).

    vmstat gives steadier idle figures than top on ARM kernels, so it is
    tried first; free -m avoids byte-level rounding on small boards.
    """

    name = "constrained"
    description = "Raspberry Pi (ARM)"
    required_tools = ("top", "free", "df", "vmstat")
    default_interfaces = ("wlan0", "eth0")

    def cpu_usage(self) -> float:
        try:
            idle = parsers.parse_vmstat_idle(self._run(["vmstat", "1", "2"]))
        except MetricReadError as e:
            logger.debug(f"vmstat CPU read failed, trying top: {e}")
            idle = parsers.parse_top_idle(self._run(["top", "-bn2", "-d", "0.1"]), last=True)
        return int(100 - idle)

    def memory_usage(self) -> float:
        try:
            used, total = parsers.parse_free(self._run(["free", "-m"]))
        except MetricReadError as e:
            logger.debug(f"free memory read failed, trying vmstat -s: {e}")
            used, total = parsers.parse_vmstat_summary(self._run(["vmstat", "-s"]))
        return used / total * 100


class DarwinProvider(MetricProvider):
    """macOS: top -l, vm_stat/sysctl, and netstat -ibn."""

    name = "darwin"
    description = "macOS (Darwin)"
    required_tools = ("top", "vm_stat", "sysctl", "netstat", "df")
    default_interfaces = ("en0",)

    def cpu_usage(self) -> float:
        return round(parsers.parse_darwin_top_cpu(self._run(["top", "-l", "1", "-n", "0"])))

    def memory_usage(self) -> float:
        mem_total, page_size = parsers.parse_sysctl_values(
            self._run(["sysctl", "-n", "hw.memsize", "hw.pagesize"]), 2
        )
        if mem_total <= 0:
            raise MetricReadError("memory", "hw.memsize is zero")
        _, pages = parsers.parse_vm_stat(self._run(["vm_stat"]))
        used = (pages.get("Pages active", 0) + pages.get("Pages inactive", 0)) * page_size
        return used / mem_total * 100

    def interface_table(self) -> dict[str, tuple[int, int]]:
        return parsers.parse_netstat_ibn(self._run(["netstat", "-ibn"]))


def is_constrained_device(
    cpuinfo_path: str = "/proc/cpuinfo",
    model_path: str = "/sys/firmware/devicetree/base/model",
) -> bool:
    """Detect Raspberry Pi class boards from cpuinfo or the device tree model."""
    markers = ((cpuinfo_path, "raspberrypi"), (model_path, "Raspberry Pi"))
    for path, marker in markers:
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        if marker in text:
            return True
    return False


def detect_provider(disk_path: str = "/", runner: CommandRunner | None = None) -> MetricProvider:
    """
    Pick the provider for the running host.

    Raises:
        ConfigurationError: On operating systems without a backend
    """
    system = platform.system()
    if system == "Darwin":
        provider: MetricProvider = DarwinProvider(disk_path, runner)
    elif system == "Linux":
        if is_constrained_device():
            provider = ConstrainedDeviceProvider(disk_path, runner)
        else:
            provider = ProcfsProvider(disk_path, runner)
    else:
        raise ConfigurationError(f"Unsupported platform: {system}")

    logger.debug(f"Using {provider.name} metric provider")
    return provider
