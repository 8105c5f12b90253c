"""
Unit Tests for perfmon tool-output parsers.
"""

import pytest

from perfmon.errors import MetricReadError
from perfmon.monitor import parsers

TOP_PROCPS = """\
top - 12:00:01 up 3 days,  2:11,  1 user,  load average: 0.08, 0.03, 0.01
Tasks: 201 total,   1 running, 200 sleeping,   0 stopped,   0 zombie
%Cpu(s):  2.3 us,  0.8 sy,  0.0 ni, 96.7 id,  0.1 wa,  0.0 hi,  0.1 si,  0.0 st
MiB Mem :   7821.4 total,   1200.3 free,   2400.1 used,   4221.0 buff/cache
"""

TOP_OLD_PROCPS = "Cpu(s):  2.0%us,  1.0%sy,  0.0%ni, 97.0%id,  0.0%wa,  0.0%hi,  0.0%si\n"

TOP_TWO_FRAMES = """\
%Cpu(s): 12.0 us,  3.0 sy,  0.0 ni, 85.0 id,  0.0 wa,  0.0 hi,  0.0 si,  0.0 st
%Cpu(s):  1.5 us,  0.5 sy,  0.0 ni, 98.0 id,  0.0 wa,  0.0 hi,  0.0 si,  0.0 st
"""

VMSTAT = """\
procs -----------memory---------- ---swap-- -----io---- -system-- ------cpu-----
 r  b   swpd   free   buff  cache   si   so    bi    bo   in   cs us sy id wa st
 1  0      0 123456  12345 234567    0    0     5     3   50   80  3  1 95  1  0
 0  0      0 123450  12345 234567    0    0     0     0  120  200  2  1 97  0  0
"""

FREE_BYTES = """\
               total        used        free      shared  buff/cache   available
Mem:      8000000000  2000000000  1000000000    10000000  5000000000  5800000000
Swap:     2000000000           0  2000000000
"""

VMSTAT_SUMMARY = """\
      8000000 K total memory
      3000000 K used memory
      1000000 K active memory
"""

DF_OUTPUT = """\
Filesystem     1024-blocks     Used Available Capacity Mounted on
/dev/sda1        102400000 56320000  46080000      55% /
"""

NETSTAT_IBN = """\
Name       Mtu   Network       Address            Ipkts Ierrs     Ibytes    Opkts Oerrs     Obytes  Coll
lo0        16384 <Link#1>                        123456     0    9876543   123456     0    9876543     0
lo0        16384 127           127.0.0.1         123456     -    9876543   123456     -    9876543     -
en0        1500  <Link#4>    a4:83:e7:11:22:33  5000000     0 6000000000  3000000     0  700000000     0
en0        1500  192.168.1     192.168.1.10     5000000     - 6000000000  3000000     -  700000000     -
"""

VM_STAT = """\
Mach Virtual Memory Statistics: (page size of 16384 bytes)
Pages free:                               12345.
Pages active:                            200000.
Pages inactive:                          100000.
Pages wired down:                         80000.
"""


class TestTopIdle:
    """Tests for procps/busybox top idle parsing."""

    def test_procps_format(self):
        assert parsers.parse_top_idle(TOP_PROCPS) == pytest.approx(96.7)

    def test_old_procps_format(self):
        assert parsers.parse_top_idle(TOP_OLD_PROCPS) == pytest.approx(97.0)

    def test_busybox_format(self):
        output = "CPU:   3% usr   1% sys   0% nic  96% idle   0% io   0% irq   0% sirq\n"
        assert parsers.parse_top_idle(output) == pytest.approx(96.0)

    def test_last_frame(self):
        assert parsers.parse_top_idle(TOP_TWO_FRAMES) == pytest.approx(85.0)
        assert parsers.parse_top_idle(TOP_TWO_FRAMES, last=True) == pytest.approx(98.0)

    def test_missing_cpu_line(self):
        with pytest.raises(MetricReadError) as exc:
            parsers.parse_top_idle("Tasks: 1 total\n")
        assert exc.value.metric == "cpu"


class TestVmstat:
    """Tests for vmstat parsing."""

    def test_idle_from_last_row(self):
        assert parsers.parse_vmstat_idle(VMSTAT) == 97

    def test_idle_without_data_rows(self):
        with pytest.raises(MetricReadError):
            parsers.parse_vmstat_idle("procs ---\n r b swpd\n")

    def test_summary(self):
        assert parsers.parse_vmstat_summary(VMSTAT_SUMMARY) == (3000000, 8000000)

    def test_summary_missing_fields(self):
        with pytest.raises(MetricReadError):
            parsers.parse_vmstat_summary("      1000000 K active memory\n")


class TestFree:
    """Tests for free parsing."""

    def test_used_and_total(self):
        assert parsers.parse_free(FREE_BYTES) == (2000000000, 8000000000)

    def test_zero_total(self):
        with pytest.raises(MetricReadError):
            parsers.parse_free("Mem:  0  0  0\n")

    def test_no_mem_row(self):
        with pytest.raises(MetricReadError):
            parsers.parse_free("Swap: 100 0 100\n")


class TestDf:
    """Tests for df parsing."""

    def test_capacity(self):
        assert parsers.parse_df_percent(DF_OUTPUT) == 55

    def test_wrapped_device_name(self):
        output = (
            "Filesystem 1024-blocks Used Available Capacity Mounted on\n"
            "/dev/mapper/very-long-volume-name\n"
            "  1000 120 880 12% /data\n"
        )
        assert parsers.parse_df_percent(output) == 12

    def test_header_only(self):
        with pytest.raises(MetricReadError):
            parsers.parse_df_percent("Filesystem 1024-blocks Used\n")


class TestNetworkTables:
    """Tests for /proc/net/dev and netstat -ibn parsing."""

    def test_proc_net_dev(self):
        from conftest import PROC_NET_DEV

        table = parsers.parse_proc_net_dev(PROC_NET_DEV)

        assert table["eth0"] == (5000000, 2000000)
        assert table["lo"] == (123456, 123456)
        assert table["wlan0"] == (0, 0)
        assert "docker0" in table

    def test_proc_net_dev_no_space_after_colon(self):
        text = "eth0:1234 5 0 0 0 0 0 0 5678 6 0 0 0 0 0 0\n"
        assert parsers.parse_proc_net_dev(text) == {"eth0": (1234, 5678)}

    def test_netstat_first_row_per_interface(self):
        table = parsers.parse_netstat_ibn(NETSTAT_IBN)

        assert table["en0"] == (6000000000, 700000000)
        assert table["lo0"] == (9876543, 9876543)

    def test_netstat_bad_header(self):
        with pytest.raises(MetricReadError):
            parsers.parse_netstat_ibn("Name Mtu Network\n")


class TestDarwin:
    """Tests for macOS tool parsing."""

    def test_top_cpu_is_user_plus_sys(self):
        output = "Processes: 400 total\nCPU usage: 5.12% user, 10.25% sys, 84.62% idle\n"
        assert parsers.parse_darwin_top_cpu(output) == pytest.approx(15.37)

    def test_top_cpu_missing(self):
        with pytest.raises(MetricReadError):
            parsers.parse_darwin_top_cpu("Processes: 400 total\n")

    def test_vm_stat(self):
        page_size, pages = parsers.parse_vm_stat(VM_STAT)

        assert page_size == 16384
        assert pages["Pages active"] == 200000
        assert pages["Pages inactive"] == 100000
        assert pages["Pages wired down"] == 80000

    def test_sysctl_values(self):
        assert parsers.parse_sysctl_values("17179869184\n16384\n", 2) == [17179869184, 16384]

    def test_sysctl_too_few_values(self):
        with pytest.raises(MetricReadError):
            parsers.parse_sysctl_values("17179869184\n", 2)
