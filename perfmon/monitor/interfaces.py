"""
Interface Selector for perfmon

Resolves which network interface to report throughput for, once at startup.

Author: Perfmon Team
SPDX-License-Identifier: BUSL-1.1
"""

import logging
import re
import time
from collections.abc import Callable

from perfmon.errors import ConfigurationError, MetricReadError
from perfmon.monitor.providers import MetricProvider

logger = logging.getLogger(__name__)

# Wired, wireless and bonded devices; excludes lo, docker*, veth*, br-*, tun*
INTERFACE_PATTERN = re.compile(r"^(eth|en\d|enp|ens|eno|enx|wlan|wlp|bond)")
LOOPBACK_NAMES = {"lo", "lo0"}
DETECTION_WINDOW = 1.0


class InterfaceSelector:
    """
    Picks the active interface, or validates an explicit one.

    Args:
        provider: Metric provider used to read counter tables
        sleep: Sleep function (injectable for tests)
        window: Seconds between the two counter reads of auto-detection
    """

    def __init__(
        self,
        provider: MetricProvider,
        sleep: Callable[[float], None] = time.sleep,
        window: float = DETECTION_WINDOW,
    ):
        self.provider = provider
        self._sleep = sleep
        self.window = window

    def resolve(self, explicit: str = "") -> str:
        """
        Return the interface to monitor.

        An explicit name is verified and replaced by the platform default if
        it does not exist. An empty name triggers auto-detection.

        Raises:
            ConfigurationError: If an explicit interface is missing and so is
                every platform default
        """
        if explicit:
            if self.provider.interface_exists(explicit):
                logger.info(f"Using requested interface {explicit}")
                return explicit

            fallback = self._existing_default()
            if fallback is None:
                raise ConfigurationError(
                    f"Network interface {explicit} does not exist and no default "
                    f"({', '.join(self.provider.default_interfaces)}) is available"
                )
            logger.warning(f"Network interface {explicit} does not exist, using {fallback}")
            return fallback

        active = self.detect_active()
        if active:
            logger.info(f"Detected active interface {active}")
            return active

        default = self.platform_default()
        logger.warning(f"No active interface detected, using default {default}")
        return default

    def candidates(self, table: dict[str, tuple[int, int]]) -> list[str]:
        """Filter a counter table down to physical/virtual NIC names."""
        return sorted(
            name
            for name in table
            if name not in LOOPBACK_NAMES and INTERFACE_PATTERN.match(name)
        )

    def _read_table(self) -> dict[str, tuple[int, int]]:
        try:
            return self.provider.interface_table()
        except MetricReadError as e:
            logger.warning(f"Cannot read interface counters: {e}")
            return {}

    def detect_active(self) -> str | None:
        """
        Pick the busiest candidate interface.

        Reads the counter table, waits one window, reads it again, and ranks
        candidates by traffic inside the window, then by cumulative total.
        Interfaces that never moved a byte are ignored.
        """
        before = self._read_table()
        self._sleep(self.window)
        after = self._read_table()

        best: str | None = None
        best_score = (0, 0)
        for name in self.candidates(after):
            rx, tx = after[name]
            total = rx + tx
            if total <= 0:
                continue
            prev_rx, prev_tx = before.get(name, (rx, tx))
            delta = max(0, total - (prev_rx + prev_tx))
            score = (delta, total)
            if best is None or score > best_score:
                best, best_score = name, score
        return best

    def _existing_default(self) -> str | None:
        for name in self.provider.default_interfaces:
            if self.provider.interface_exists(name):
                return name
        return None

    def platform_default(self) -> str:
        """First existing default interface, else the first default with a warning."""
        existing = self._existing_default()
        if existing:
            return existing

        default = self.provider.default_interfaces[0]
        logger.warning(f"Default interface {default} does not exist either")
        return default
