import argparse
import logging
import platform
import shutil
import signal
import sys
from pathlib import Path

from perfmon import __version__
from perfmon.config import (
    DEFAULT_DISK,
    DEFAULT_DURATION,
    DEFAULT_INTERVAL,
    SampleConfig,
    build_config,
    env_default,
    load_env,
)
from perfmon.daemon import DaemonSupervisor
from perfmon.errors import ConfigurationError, DaemonStartError, SinkWriteError
from perfmon.monitor.interfaces import InterfaceSelector
from perfmon.monitor.providers import MetricProvider, detect_provider
from perfmon.monitor.sampler import SamplingScheduler
from perfmon.monitor.sinks import ConsoleSink, LogFileSink
from perfmon.ui import console

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Distribution packages that ship each external tool
TOOL_PACKAGES = {
    "top": "procps",
    "free": "procps",
    "vmstat": "procps",
    "df": "coreutils",
}


class MonitorArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises ConfigurationError instead of exiting."""

    def error(self, message):
        raise ConfigurationError(message)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def build_parser() -> MonitorArgumentParser:
    """Build the argument parser. Defaults come from PERFMON_* variables."""
    parser = MonitorArgumentParser(
        prog="perfmon",
        description="Multi-platform system resource monitor",
        add_help=False,
        allow_abbrev=False,
    )
    # String defaults pass through the type converter, so env values are validated too
    parser.add_argument(
        "--duration",
        type=_positive_int,
        default=env_default("DURATION", str(DEFAULT_DURATION)),
        help="Total monitoring time in seconds",
    )
    parser.add_argument(
        "--interval",
        type=_positive_int,
        default=env_default("INTERVAL", str(DEFAULT_INTERVAL)),
        help="Seconds between samples",
    )
    parser.add_argument("--output", default=env_default("OUTPUT"), help="Log file path")
    parser.add_argument(
        "--interface", default=env_default("INTERFACE"), help="Network interface to monitor"
    )
    parser.add_argument(
        "--disk", default=env_default("DISK", DEFAULT_DISK), help="Filesystem path to monitor"
    )
    parser.add_argument("--daemon", action="store_true", help="Run in the background")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-V", "--version", action="store_true", help="Show version")
    parser.add_argument("-h", "--help", action="store_true", help="Show help")
    return parser


def show_rich_help():
    """Display the option table using Rich."""
    from rich.table import Table

    console.print(f"[accent]perfmon[/accent] [secondary]v{__version__}[/secondary]")
    console.print("[bold]Multi-platform system resource monitor[/bold]")
    console.print("[dim]Samples CPU, memory, disk and network usage at a fixed interval.[/dim]")
    console.print()

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Option", style="green")
    table.add_column("Description")
    table.add_column("Default", style="dim")

    table.add_row("--duration <seconds>", "Total monitoring time", str(DEFAULT_DURATION))
    table.add_row("--interval <seconds>", "Time between samples", str(DEFAULT_INTERVAL))
    table.add_row("--output <path>", "Also write samples to a log file", "console only")
    table.add_row("--interface <name>", "Network interface to monitor", "auto-detect")
    table.add_row("--disk <path>", "Filesystem to report usage for", DEFAULT_DISK)
    table.add_row("--daemon", "Run detached in the background", "")
    table.add_row("-v, --verbose", "Show debug logging", "")
    table.add_row("-V, --version", "Show version and exit", "")
    table.add_row("-h, --help", "Show this help and exit", "")

    console.print(table)
    console.print()

    console.print("[bold cyan]Examples:[/bold cyan]")
    console.print("  perfmon --duration 60 --interval 5")
    console.print("  perfmon --interface wlan0 --output /tmp/perf.log")
    console.print("  perfmon --daemon --duration 3600")
    console.print()
    console.print(
        "[dim]Defaults can also be set with PERFMON_DURATION, PERFMON_INTERVAL, "
        "PERFMON_DISK, PERFMON_INTERFACE and PERFMON_OUTPUT (or a .env file).[/dim]"
    )


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def install_hint(tools: list[str]) -> str | None:
    """Suggest a package-manager command for missing tools."""
    packages = sorted({TOOL_PACKAGES.get(tool, tool) for tool in tools})
    if shutil.which("apt-get"):
        return f"sudo apt-get install {' '.join(packages)}"
    if shutil.which("yum"):
        return f"sudo yum install {' '.join(packages)}"
    return None


def report_missing_tools(provider: MetricProvider) -> list[str]:
    """Warn about external tools the provider cannot find. Never fatal."""
    missing = provider.missing_tools()
    if missing:
        console.warning(f"Missing tools: {', '.join(missing)} (affected metrics will read 0)")
        hint = install_hint(missing)
        if hint:
            console.secondary(f"Install with: {hint}")
    return missing


def os_pretty_name(path: str = "/etc/os-release") -> str | None:
    """PRETTY_NAME from os-release, if the file exists."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError:
        return None
    for line in text.splitlines():
        if line.startswith("PRETTY_NAME="):
            return line.split("=", 1)[1].strip().strip('"')
    return None


def show_start_banner(config: SampleConfig, provider: MetricProvider, interface: str) -> None:
    uname = platform.uname()
    console.rule("System Performance Monitor")
    console.info(f"System: {uname.system} {uname.release} ({uname.machine})")
    pretty = os_pretty_name()
    if pretty:
        console.info(f"OS: {pretty}")
    console.info(f"Device: {provider.description}")
    console.info(
        f"Duration: {config.duration}s | Interval: {config.interval}s | "
        f"Disk: {config.disk} | Interface: {interface}"
    )
    if config.output:
        console.info(f"Log file: {config.output}")
    console.secondary("Press Ctrl+C to stop")
    console.blank()


def show_end_banner(config: SampleConfig, count: int, stopped: bool) -> None:
    console.blank()
    if stopped:
        console.warning(f"Monitoring stopped by user after {count} samples")
    else:
        console.success(f"Monitoring complete: {count} samples")
    if config.output:
        console.secondary(f"Results saved to {config.output}")
    console.rule()


def run_monitor(config: SampleConfig, provider: MetricProvider, interface: str) -> int:
    """Run the sampling loop in the foreground until done or interrupted."""
    sinks = [ConsoleSink(console)]
    if config.output:
        try:
            sinks.append(LogFileSink(config.output))
        except SinkWriteError as e:
            console.warning(f"{e}; continuing with console output only")

    show_start_banner(config, provider, interface)
    scheduler = SamplingScheduler(config, provider, interface, sinks)

    stopped = False

    def _handle_signal(signum, frame):
        nonlocal stopped
        stopped = True
        logger.debug(f"Received signal {signum}, stopping")
        scheduler.stop()

    previous = {
        sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        count = scheduler.run()
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        for sink in sinks:
            sink.close()

    show_end_banner(config, count, stopped)
    return 0


def main(argv: list[str] | None = None) -> int:
    load_env()
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
    except ConfigurationError as e:
        console.error(str(e), details="Run 'perfmon --help' for usage")
        return 1

    if args.help:
        show_rich_help()
        return 0
    if args.version:
        console.print(f"perfmon {__version__}")
        return 0

    configure_logging(args.verbose)

    try:
        config = build_config(args)
        if DaemonSupervisor(console).maybe_detach(config):
            return 0
        provider = detect_provider(config.disk)
        report_missing_tools(provider)
        interface = InterfaceSelector(provider).resolve(config.interface)
    except (ConfigurationError, DaemonStartError) as e:
        console.error(str(e))
        return 1
    except OSError as e:
        console.error(f"Failed to start monitor: {e}")
        return 1
    except KeyboardInterrupt:
        console.error("Cancelled during startup")
        return 130

    return run_monitor(config, provider, interface)


if __name__ == "__main__":
    sys.exit(main())
