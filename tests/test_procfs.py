"""Tests for the /proc reader."""

import os

import pytest

from helpers import MEMINFO_LOW, write_process
from oomguard.errors import ProcessVanished, SourceUnavailable
from oomguard.procfs import ProcfsSource, parse_meminfo, status_value


class TestParseMeminfo:
    """Tests for parse_meminfo."""

    def test_all_labels_retained(self):
        """Test every well-formed line ends up in the mapping."""
        values = parse_meminfo(MEMINFO_LOW)

        assert values["MemTotal"] == 8000000
        assert values["MemAvailable"] == 400000
        assert values["SwapTotal"] == 2000000
        assert values["SwapFree"] == 1000000
        assert values["Buffers"] == 10000
        # lines without a unit are kept too
        assert values["HugePages_Total"] == 0

    def test_malformed_lines_skipped(self):
        """Test malformed lines are skipped rather than aborting the read."""
        text = "MemTotal: 100 kB\ngarbage line\nBroken: abc kB\nEmpty:\nMemAvailable: 50 kB\n"
        values = parse_meminfo(text)

        assert values == {"MemTotal": 100, "MemAvailable": 50}


def test_status_value():
    """Test status_value returns the first value of a labelled line."""
    status = "Name:\tbash\nUid:\t1000\t1001\t1002\t1003\nVmRSS:\t    5120 kB\n"

    assert status_value(status, "Uid") == "1000"
    assert status_value(status, "VmRSS") == "5120"
    with pytest.raises(KeyError):
        status_value(status, "VmSwap")


class TestProcfsSource:
    """Tests for ProcfsSource over a synthetic tree."""

    def test_read_memory_snapshot(self, proc_root):
        """Test the snapshot is built from the meminfo file."""
        snapshot = ProcfsSource(proc_root).read_memory_snapshot()

        assert snapshot.mem_total == 8000000
        assert snapshot.available_percent == pytest.approx(5.0)

    def test_missing_meminfo(self, tmp_path):
        """Test an unreadable meminfo raises SourceUnavailable."""
        with pytest.raises(SourceUnavailable):
            ProcfsSource(tmp_path).read_memory_snapshot()

    def test_list_process_ids(self, proc_root):
        """Test only numeric entries are listed, in ascending order."""
        write_process(proc_root, 30)
        write_process(proc_root, 4)
        write_process(proc_root, 200)

        assert ProcfsSource(proc_root).list_process_ids() == [4, 30, 200]

    def test_list_process_ids_skips_unicode_digits(self, proc_root):
        """Test names that are digits only outside ASCII are not pids."""
        write_process(proc_root, 12)
        (proc_root / "²").mkdir()
        (proc_root / "٣٤").mkdir()

        assert ProcfsSource(proc_root).list_process_ids() == [12]

    def test_list_process_ids_missing_root(self, tmp_path):
        """Test a missing proc root is a systemic failure."""
        with pytest.raises(SourceUnavailable):
            ProcfsSource(tmp_path / "nope").list_process_ids()

    def test_read_process_field(self, proc_root):
        """Test raw field text is returned, NUL bytes included."""
        write_process(proc_root, 7, cmdline="python\x00-m\x00http.server")
        source = ProcfsSource(proc_root)

        assert source.read_process_field(7, "cmdline") == "python\x00-m\x00http.server"
        assert source.read_process_field(7, "oom_score").strip() == "100"

    def test_read_process_field_vanished(self, proc_root):
        """Test reading a field of a missing process raises ProcessVanished."""
        with pytest.raises(ProcessVanished) as excinfo:
            ProcfsSource(proc_root).read_process_field(999, "status")
        assert excinfo.value.pid == 999

    def test_root_property(self, proc_root):
        """Test the configured root is exposed."""
        assert ProcfsSource(proc_root).root == proc_root


@pytest.mark.skipif(not os.path.exists("/proc/meminfo"), reason="requires a Linux /proc")
class TestRealProc:
    """Read the live /proc of the test host."""

    def test_memory_snapshot(self):
        """Test the live snapshot has the labels the watchdog needs."""
        snapshot = ProcfsSource().read_memory_snapshot()

        assert snapshot.mem_total > 0
        assert 0.0 <= snapshot.available_percent <= 100.0
        assert snapshot.swap_total >= 0

    def test_own_pid_listed(self):
        """Test the test runner itself shows up in the process list."""
        assert os.getpid() in ProcfsSource().list_process_ids()
