"""
Sampling Scheduler for perfmon

Drives the fixed-interval sampling loop for a bounded duration and fans
each sample out to the configured sinks.

Important Notes:
    - Ticks are aligned to absolute boundaries (start + k * interval), so a
      slow tick does not push every later tick back
    - The loop runs on the calling thread; stop() is safe to call from a
      signal handler
    - A failing tick is logged and skipped; it never ends the run

Author: Perfmon Team
SPDX-License-Identifier: BUSL-1.1
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from perfmon.errors import SinkWriteError
from perfmon.monitor.providers import MetricProvider
from perfmon.monitor.rates import NetworkRateCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricSample:
    """One normalized reading of every metric."""

    timestamp: datetime
    cpu_percent: int
    memory_percent: float
    disk_percent: int
    disk_path: str
    interface: str
    rx_kbps: float
    tx_kbps: float


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


class SamplingScheduler:
    """
    Fixed-cadence sampling loop.

    Args:
        config: Run configuration (duration, interval, disk)
        provider: Platform metric provider
        interface: Network interface resolved at startup
        sinks: Objects with write(sample) and close()
        calculator: Rate calculator (a fresh one by default)
        clock: Monotonic clock (injectable for tests)
        sleep: Sleep function (default: interruptible wait on the stop event)
        now: Wall clock used for sample timestamps

    Example:
        scheduler = SamplingScheduler(config, provider, "eth0", [ConsoleSink()])
        count = scheduler.run()
    """

    def __init__(
        self,
        config,
        provider: MetricProvider,
        interface: str,
        sinks: list,
        calculator: NetworkRateCalculator | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.provider = provider
        self.interface = interface
        self.calculator = calculator or NetworkRateCalculator()
        self._sinks = list(sinks)
        self._clock = clock
        self._now = now
        self._stop_event = threading.Event()
        self._sleep = sleep or self._stop_event.wait
        self._state = SchedulerState.IDLE
        self._sample_count = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def sample_count(self) -> int:
        return self._sample_count

    @property
    def sinks(self) -> list:
        """Sinks still receiving samples."""
        return list(self._sinks)

    def stop(self) -> None:
        """Request the loop to finish after the current tick."""
        self._stop_event.set()

    def run(self) -> int:
        """
        Sample until the duration elapses or stop() is called.

        Returns:
            Number of samples emitted
        """
        if self._state is not SchedulerState.IDLE:
            raise RuntimeError(f"Scheduler already {self._state.value}")

        self._state = SchedulerState.RUNNING
        duration = self.config.duration
        interval = self.config.interval
        start = self._clock()
        logger.debug(f"Sampling every {interval}s for {duration}s on {self.interface}")

        try:
            while not self._stop_event.is_set():
                if self._clock() - start >= duration:
                    break

                self._tick()

                # Next boundary strictly in the future, capped at the end of the run
                elapsed = self._clock() - start
                boundary = min((int(elapsed // interval) + 1) * interval, duration)
                delay = max(0.0, boundary - elapsed)
                if delay > 0:
                    self._sleep(delay)
        finally:
            self._state = SchedulerState.FINISHED

        logger.debug(f"Sampling finished after {self._sample_count} samples")
        return self._sample_count

    def _tick(self) -> None:
        try:
            sample = self.collect()
        except Exception as e:
            logger.warning(f"Sample failed, skipping tick: {e}")
            logger.debug("Tick failure details", exc_info=True)
            return

        if self._stop_event.is_set():
            # Tools may have been killed mid-read
            logger.debug("Stop requested during tick, discarding sample")
            return

        self._sample_count += 1
        self._fan_out(sample)

    def collect(self) -> MetricSample:
        """Read the provider once and turn the reading into a sample."""
        reading = self.provider.sample(self.interface)
        rx_kbps, tx_kbps = self.calculator.rate(reading.counters, self.config.interval)

        return MetricSample(
            timestamp=self._now(),
            cpu_percent=reading.cpu_percent,
            memory_percent=reading.memory_percent,
            disk_percent=reading.disk_percent,
            disk_path=self.config.disk,
            interface=self.interface,
            rx_kbps=rx_kbps,
            tx_kbps=tx_kbps,
        )

    def _fan_out(self, sample: MetricSample) -> None:
        for sink in list(self._sinks):
            try:
                sink.write(sample)
            except SinkWriteError as e:
                logger.warning(f"Disabling {getattr(sink, 'name', 'sink')} output: {e}")
                self._sinks.remove(sink)
                sink.close()
