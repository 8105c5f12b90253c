"""Run configuration for perfmon.

SampleConfig is built once from command-line flags, whose defaults may come
from PERFMON_* environment variables (optionally loaded from a .env file).
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

import psutil
from dotenv import load_dotenv

from perfmon.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 30
DEFAULT_INTERVAL = 2
DEFAULT_DISK = "/"

ENV_PREFIX = "PERFMON_"


@dataclass(frozen=True)
class SampleConfig:
    """Immutable settings for one monitoring run.

    Attributes:
        duration: Total run length in seconds
        interval: Seconds between samples
        disk: Filesystem path whose usage is reported
        interface: Network interface name, empty for auto-detection
        output: Log file path, empty for console only
        daemon: Relaunch detached in the background
        verbose: Enable debug logging
    """

    duration: int = DEFAULT_DURATION
    interval: int = DEFAULT_INTERVAL
    disk: str = DEFAULT_DISK
    interface: str = ""
    output: str = ""
    daemon: bool = False
    verbose: bool = False

    def __post_init__(self):
        if self.duration <= 0:
            raise ConfigurationError(f"Duration must be a positive integer, got {self.duration}")
        if self.interval <= 0:
            raise ConfigurationError(f"Interval must be a positive integer, got {self.interval}")
        if not self.disk:
            raise ConfigurationError("Disk path must not be empty")

    @property
    def expected_samples(self) -> int:
        """Samples a full run emits: ceil(duration / interval)."""
        return -(-self.duration // self.interval)

    @classmethod
    def from_args(cls, args) -> "SampleConfig":
        """Build a config from parsed CLI arguments."""
        return cls(
            duration=args.duration,
            interval=args.interval,
            disk=args.disk or DEFAULT_DISK,
            interface=(args.interface or "").strip(),
            output=args.output or "",
            daemon=bool(args.daemon),
            verbose=bool(args.verbose),
        )


def load_env(dotenv_path: str | None = None) -> None:
    """Load a .env file into os.environ without overriding existing values."""
    if load_dotenv(dotenv_path):
        logger.debug("Loaded environment from .env")


def env_default(name: str, fallback: str = "") -> str:
    """Return PERFMON_<name> from the environment, or fallback."""
    return os.environ.get(f"{ENV_PREFIX}{name}", fallback)


def prepare_output_path(path: str) -> str:
    """
    Resolve the log file path, creating its parent directory if missing.

    Raises:
        ConfigurationError: If the directory cannot be created
    """
    target = Path(path).expanduser()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create directory {target.parent}: {e}") from e
    if target.is_dir():
        raise ConfigurationError(f"Output path {target} is a directory")
    return str(target.resolve())


def check_disk_mounted(path: str) -> None:
    """
    Verify that a filesystem is reachable at path.

    Raises:
        ConfigurationError: If the path does not exist or cannot be queried
    """
    try:
        psutil.disk_usage(path)
    except OSError as e:
        raise ConfigurationError(f"Disk path {path} is not a mounted filesystem: {e}") from e


def build_config(args) -> SampleConfig:
    """Validate CLI arguments against the host and return the final config."""
    config = SampleConfig.from_args(args)
    check_disk_mounted(config.disk)
    if config.output:
        output = prepare_output_path(config.output)
        if output != config.output:
            config = replace(config, output=output)
    return config
