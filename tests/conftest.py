"""Shared fixtures for perfmon tests."""

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from perfmon.monitor.providers import InterfaceCounters, MetricProvider, PlatformReading  # noqa: E402

PROC_NET_DEV = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:  123456     100    0    0    0     0          0         0   123456     100    0    0    0     0       0          0
  eth0: 5000000    4000    0    0    0     0          0         0  2000000    3000    0    0    0     0       0          0
 wlan0:       0       0    0    0    0     0          0         0        0       0    0    0    0     0       0          0
docker0:  900000     800    0    0    0     0          0         0   900000     800    0    0    0     0       0          0
"""


class FakeRunner:
    """Command runner that returns canned output keyed by argv."""

    def __init__(self, outputs: dict[tuple[str, ...], str] | None = None):
        self.outputs = dict(outputs or {})
        self.calls: list[list[str]] = []

    def __call__(self, argv: list[str]) -> str:
        from perfmon.errors import MetricReadError

        self.calls.append(list(argv))
        key = tuple(argv)
        if key not in self.outputs:
            raise MetricReadError(argv[0], "command not found")
        value = self.outputs[key]
        if isinstance(value, Exception):
            raise value
        return value


class FakeProvider(MetricProvider):
    """Provider serving scripted readings and counter tables."""

    name = "fake"
    description = "Test host"
    required_tools = ()
    default_interfaces = ("eth0",)

    def __init__(self, tables=None, existing=None, readings=None):
        super().__init__("/")
        self.tables = list(tables or [])
        self.existing = set(existing or [])
        self.readings = list(readings or [])
        self.sample_calls = 0

    def cpu_usage(self) -> float:
        return 10

    def memory_usage(self) -> float:
        return 50.0

    def disk_usage(self) -> int:
        return 40

    def interface_table(self) -> dict[str, tuple[int, int]]:
        if len(self.tables) > 1:
            return self.tables.pop(0)
        return self.tables[0] if self.tables else {}

    def interface_exists(self, interface: str) -> bool:
        return interface in self.existing

    def sample(self, interface=None) -> PlatformReading:
        self.sample_calls += 1
        if self.readings:
            reading = self.readings.pop(0)
            if isinstance(reading, Exception):
                raise reading
            return reading
        return PlatformReading(cpu_percent=10, memory_percent=50.0, disk_percent=40)


class FakeClock:
    """Monotonic clock advanced only by its own sleep()."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def counters(name: str, rx: int, tx: int, at: float) -> InterfaceCounters:
    return InterfaceCounters(name=name, rx_bytes=rx, tx_bytes=tx, observed_at=at)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def net_dev_file(tmp_path) -> str:
    path = tmp_path / "net_dev"
    path.write_text(PROC_NET_DEV)
    return str(path)


@pytest.fixture
def clean_env(monkeypatch) -> Iterator[None]:
    """Remove PERFMON_* variables so flag defaults are predictable."""
    for key in list(os.environ):
        if key.startswith("PERFMON_"):
            monkeypatch.delenv(key, raising=False)
    yield
    # load_dotenv writes os.environ directly
    for key in list(os.environ):
        if key.startswith("PERFMON_"):
            del os.environ[key]
