"""
Unit Tests for the network rate calculator.
"""

import pytest
from conftest import counters

from perfmon.monitor.rates import NetworkRateCalculator


class TestNetworkRateCalculator:
    """Tests for delta-based throughput."""

    def test_first_call_establishes_baseline(self):
        calculator = NetworkRateCalculator()
        first = counters("eth0", 1000, 500, at=10.0)

        assert calculator.rate(first) == (0.0, 0.0)
        assert calculator.baseline.counters == first

    def test_rate_in_kb_per_second(self):
        calculator = NetworkRateCalculator()
        calculator.rate(counters("eth0", 0, 0, at=10.0))

        rx, tx = calculator.rate(counters("eth0", 2048 * 2, 1024, at=12.0))

        assert rx == pytest.approx(2.0)
        assert tx == pytest.approx(0.5)

    def test_rounded_to_one_decimal(self):
        calculator = NetworkRateCalculator()
        calculator.rate(counters("eth0", 0, 0, at=0.0))

        rx, tx = calculator.rate(counters("eth0", 1000, 3000, at=3.0))

        assert rx == 0.3
        assert tx == 1.0

    def test_decreasing_counters_give_zero(self):
        calculator = NetworkRateCalculator()
        calculator.rate(counters("eth0", 10_000_000, 5_000_000, at=0.0))

        assert calculator.rate(counters("eth0", 100, 50, at=2.0)) == (0.0, 0.0)

    def test_baseline_replaced_each_call(self):
        calculator = NetworkRateCalculator()
        calculator.rate(counters("eth0", 10_000, 0, at=0.0))
        calculator.rate(counters("eth0", 0, 0, at=1.0))

        rx, _ = calculator.rate(counters("eth0", 1024, 0, at=2.0))

        assert rx == pytest.approx(1.0)

    def test_zero_elapsed_uses_interval(self):
        calculator = NetworkRateCalculator()
        calculator.rate(counters("eth0", 0, 0, at=5.0))

        rx, tx = calculator.rate(counters("eth0", 4096, 2048, at=5.0), interval=2)

        assert rx == pytest.approx(2.0)
        assert tx == pytest.approx(1.0)

    def test_zero_elapsed_without_interval(self):
        calculator = NetworkRateCalculator()
        calculator.rate(counters("eth0", 0, 0, at=5.0))

        assert calculator.rate(counters("eth0", 4096, 2048, at=5.0)) == (0.0, 0.0)

    def test_unavailable_interface_clears_baseline(self):
        calculator = NetworkRateCalculator()
        calculator.rate(counters("eth0", 0, 0, at=0.0))

        assert calculator.rate(None) == (0.0, 0.0)
        assert calculator.baseline is None
        # Next reading starts over
        assert calculator.rate(counters("eth0", 999_999, 0, at=4.0)) == (0.0, 0.0)

    def test_interface_change_restarts_window(self):
        calculator = NetworkRateCalculator()
        calculator.rate(counters("eth0", 0, 0, at=0.0))

        assert calculator.rate(counters("wlan0", 50_000, 0, at=2.0)) == (0.0, 0.0)
        assert calculator.baseline.counters.name == "wlan0"
