"""
Network Rate Calculator for perfmon

Turns cumulative interface byte counters into KB/s throughput by diffing
consecutive readings.

Author: Perfmon Team
SPDX-License-Identifier: BUSL-1.1
"""

import logging
from dataclasses import dataclass

from perfmon.monitor.providers import InterfaceCounters

logger = logging.getLogger(__name__)

BYTES_PER_KB = 1024


@dataclass(frozen=True)
class RateBaseline:
    """The previous counter reading a rate is measured against."""

    counters: InterfaceCounters


class NetworkRateCalculator:
    """
    Computes receive/transmit throughput between consecutive readings.

    The calculator owns its baseline; it must be driven by a single loop.

    Example:
        calculator = NetworkRateCalculator()
        calculator.rate(first)          # (0.0, 0.0), baseline established
        rx, tx = calculator.rate(second)
    """

    def __init__(self):
        self._baseline: RateBaseline | None = None

    @property
    def baseline(self) -> RateBaseline | None:
        """The most recent reading, or None before the first one."""
        return self._baseline

    def reset(self) -> None:
        """Forget the baseline; the next reading starts a new window."""
        self._baseline = None

    def rate(
        self, current: InterfaceCounters | None, interval: float | None = None
    ) -> tuple[float, float]:
        """
        Compute throughput since the previous reading and advance the baseline.

        Args:
            current: Counters read this tick, or None if the interface was unavailable
            interval: Nominal interval, used only when the measured gap is not positive

        Returns:
            (rx_kbps, tx_kbps) rounded to one decimal; (0.0, 0.0) on the first call
        """
        previous = self._baseline
        if current is None:
            self.reset()
            return 0.0, 0.0

        self._baseline = RateBaseline(counters=current)
        if previous is None:
            return 0.0, 0.0

        if previous.counters.name != current.name:
            logger.debug(f"Interface changed {previous.counters.name} -> {current.name}")
            return 0.0, 0.0

        elapsed = current.observed_at - previous.counters.observed_at
        if elapsed <= 0:
            if not interval or interval <= 0:
                return 0.0, 0.0
            elapsed = interval

        # Counters going backwards means a reset, not negative traffic
        rx_delta = max(0, current.rx_bytes - previous.counters.rx_bytes)
        tx_delta = max(0, current.tx_bytes - previous.counters.tx_bytes)

        return (
            round(rx_delta / elapsed / BYTES_PER_KB, 1),
            round(tx_delta / elapsed / BYTES_PER_KB, 1),
        )
