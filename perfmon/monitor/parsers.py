"""
Parsers for the external tools perfmon samples from.

Each function takes the raw text a tool printed and returns plain numbers.
Unparsable input raises MetricReadError so the provider can substitute its
documented default and log the event.

Author: Perfmon Team
SPDX-License-Identifier: BUSL-1.1
"""

import re

from perfmon.errors import MetricReadError

# "98.1 id," (procps >= 3.3), "98.1%id" (older procps), "96% idle" (busybox)
_TOP_IDLE_RE = re.compile(r"([\d.]+)[\s%]*id(?:le)?\b")
_TOP_CPU_LINE_RE = re.compile(r"^\s*%?cpu", re.IGNORECASE)
# macOS: "CPU usage: 5.12% user, 10.25% sys, 84.62% idle"
_DARWIN_CPU_RE = re.compile(r"CPU usage:\s*([\d.]+)% user,\s*([\d.]+)% sys")
_VM_STAT_PAGE_RE = re.compile(r"page size of (\d+) bytes")
_VM_STAT_ROW_RE = re.compile(r"^(Pages [\w -]+):\s+(\d+)\.?$")


def _to_int(metric: str, value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MetricReadError(metric, f"not an integer: {value!r}") from None


def _to_float(metric: str, value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MetricReadError(metric, f"not a number: {value!r}") from None


def parse_top_idle(output: str, last: bool = False) -> float:
    """
    Extract the idle percentage from procps ``top -b`` output.

    Args:
        output: Raw ``top`` output
        last: Use the last ``%Cpu`` line instead of the first. ``top -bn2``
              prints two frames and only the second one reflects a real
              measurement window.

    Returns:
        Idle CPU percentage
    """
    lines = [line for line in output.splitlines() if _TOP_CPU_LINE_RE.match(line)]
    if not lines:
        raise MetricReadError("cpu", "no %Cpu line in top output")

    line = lines[-1] if last else lines[0]
    match = _TOP_IDLE_RE.search(line)
    if not match:
        raise MetricReadError("cpu", f"no idle field in {line.strip()!r}")
    return _to_float("cpu", match.group(1))


def parse_vmstat_idle(output: str) -> int:
    """Extract the idle column from the last row of ``vmstat <delay> <count>``."""
    rows = [line.split() for line in output.splitlines() if line.strip()]
    if len(rows) < 3:
        raise MetricReadError("cpu", "vmstat printed no data rows")

    header = next((row for row in rows if "id" in row and "us" in row), None)
    last = rows[-1]
    if header is not None and len(header) == len(last):
        return _to_int("cpu", last[header.index("id")])
    # procps vmstat puts idle in the 15th column
    if len(last) >= 15:
        return _to_int("cpu", last[14])
    raise MetricReadError("cpu", f"unexpected vmstat row: {' '.join(last)!r}")


def parse_free(output: str) -> tuple[int, int]:
    """Return ``(used, total)`` from the ``Mem:`` row of ``free``, in the unit free printed."""
    for line in output.splitlines():
        if line.startswith("Mem:"):
            fields = line.split()
            if len(fields) < 3:
                break
            total = _to_int("memory", fields[1])
            used = _to_int("memory", fields[2])
            if total <= 0:
                raise MetricReadError("memory", "free reported zero total memory")
            return used, total
    raise MetricReadError("memory", "no Mem: row in free output")


def parse_vmstat_summary(output: str) -> tuple[int, int]:
    """Return ``(used, total)`` in KiB from ``vmstat -s``."""
    values: dict[str, int] = {}
    for line in output.splitlines():
        fields = line.split(None, 2)
        if len(fields) == 3 and fields[1] == "K":
            values[fields[2].strip()] = _to_int("memory", fields[0])

    total = values.get("total memory")
    used = values.get("used memory")
    if total is None or used is None:
        raise MetricReadError("memory", "vmstat -s lacks total/used memory")
    if total <= 0:
        raise MetricReadError("memory", "vmstat -s reported zero total memory")
    return used, total


def parse_df_percent(output: str) -> int:
    """Return the capacity percentage from POSIX ``df -P <path>`` output."""
    rows = [line.split() for line in output.splitlines()[1:] if line.strip()]
    if not rows:
        raise MetricReadError("disk", "df printed no data row")

    for field in rows[-1]:
        if field.endswith("%") and field[:-1].isdigit():
            return int(field[:-1])
    raise MetricReadError("disk", f"no capacity column in {' '.join(rows[-1])!r}")


def parse_proc_net_dev(text: str) -> dict[str, tuple[int, int]]:
    """
    Parse ``/proc/net/dev`` into ``{interface: (rx_bytes, tx_bytes)}``.

    Layout after the colon: 8 receive fields (bytes first) followed by 8
    transmit fields (bytes first).
    """
    table: dict[str, tuple[int, int]] = {}
    for line in text.splitlines():
        if ":" not in line:
            continue
        name, _, stats = line.partition(":")
        fields = stats.split()
        if len(fields) < 9:
            continue
        table[name.strip()] = (
            _to_int("network", fields[0]),
            _to_int("network", fields[8]),
        )
    return table


def parse_netstat_ibn(output: str) -> dict[str, tuple[int, int]]:
    """
    Parse BSD ``netstat -ibn`` into ``{interface: (rx_bytes, tx_bytes)}``.

    Only the first (link level) row of each interface is used; the address
    rows repeat the same counters. Loopback link rows have no Address
    column, so byte columns are located from the right-hand end.
    """
    lines = output.splitlines()
    if not lines:
        raise MetricReadError("network", "netstat printed nothing")

    header = lines[0].split()
    try:
        ibytes_from_end = len(header) - header.index("Ibytes")
        obytes_from_end = len(header) - header.index("Obytes")
    except ValueError:
        raise MetricReadError("network", "netstat header lacks Ibytes/Obytes") from None

    table: dict[str, tuple[int, int]] = {}
    for line in lines[1:]:
        fields = line.split()
        if len(fields) < ibytes_from_end or not fields[1].isdigit():
            continue
        name = fields[0].rstrip("*")
        if name in table:
            continue
        table[name] = (
            _to_int("network", fields[-ibytes_from_end]),
            _to_int("network", fields[-obytes_from_end]),
        )
    return table


def parse_darwin_top_cpu(output: str) -> float:
    """Return user + sys percentage from ``top -l 1 -n 0``."""
    match = _DARWIN_CPU_RE.search(output)
    if not match:
        raise MetricReadError("cpu", "no 'CPU usage' line in top output")
    return _to_float("cpu", match.group(1)) + _to_float("cpu", match.group(2))


def parse_vm_stat(output: str) -> tuple[int, dict[str, int]]:
    """Return ``(page_size, {"Pages active": n, ...})`` from macOS ``vm_stat``."""
    page_match = _VM_STAT_PAGE_RE.search(output)
    if not page_match:
        raise MetricReadError("memory", "vm_stat header lacks page size")

    pages: dict[str, int] = {}
    for line in output.splitlines():
        match = _VM_STAT_ROW_RE.match(line.strip())
        if match:
            pages[match.group(1)] = int(match.group(2))
    return int(page_match.group(1)), pages


def parse_sysctl_values(output: str, count: int) -> list[int]:
    """Parse ``sysctl -n name...`` output, one integer per line."""
    values = [line.strip() for line in output.splitlines() if line.strip()]
    if len(values) < count:
        raise MetricReadError("memory", f"sysctl returned {len(values)} of {count} values")
    return [_to_int("memory", value) for value in values[:count]]
