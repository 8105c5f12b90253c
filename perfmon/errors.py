"""Error types shared across perfmon.

Only ConfigurationError is fatal; everything else is recovered inside the
sampling loop.
"""


class PerfmonError(Exception):
    """Base class for perfmon errors."""


class ConfigurationError(PerfmonError, ValueError):
    """Invalid flags, environment values, or host setup. Raised before sampling starts."""


class MetricReadError(PerfmonError):
    """A single backend call failed or returned unparsable output."""

    def __init__(self, metric: str, message: str):
        super().__init__(f"{metric}: {message}")
        self.metric = metric


class InterfaceUnavailable(MetricReadError):
    """The monitored network interface is missing from the counter table."""

    def __init__(self, interface: str):
        super().__init__("network", f"interface {interface} not found")
        self.interface = interface


class SinkWriteError(PerfmonError):
    """A sample could not be written to an output sink."""


class DaemonStartError(PerfmonError):
    """The background monitor exited before it started sampling."""
