"""
perfmon Monitor Module

Platform metric collection, rate computation and the sampling loop.
"""

from perfmon.monitor.interfaces import InterfaceSelector
from perfmon.monitor.providers import (
    ConstrainedDeviceProvider,
    DarwinProvider,
    InterfaceCounters,
    MetricProvider,
    PlatformReading,
    ProcfsProvider,
    detect_provider,
)
from perfmon.monitor.rates import NetworkRateCalculator, RateBaseline
from perfmon.monitor.sampler import MetricSample, SamplingScheduler, SchedulerState
from perfmon.monitor.sinks import ConsoleSink, LogFileSink, format_sample

__all__ = [
    "ConsoleSink",
    "ConstrainedDeviceProvider",
    "DarwinProvider",
    "InterfaceCounters",
    "InterfaceSelector",
    "LogFileSink",
    "MetricProvider",
    "MetricSample",
    "NetworkRateCalculator",
    "PlatformReading",
    "ProcfsProvider",
    "RateBaseline",
    "SamplingScheduler",
    "SchedulerState",
    "detect_provider",
    "format_sample",
]
