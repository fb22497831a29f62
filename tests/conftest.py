"""Shared fixtures: synthetic /proc trees."""

from pathlib import Path

import pytest

from helpers import MEMINFO_LOW, write_meminfo, write_process


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    """A /proc lookalike under memory pressure (5% available)."""
    root = tmp_path / "proc"
    root.mkdir()
    write_meminfo(root, MEMINFO_LOW)
    (root / "self").mkdir()
    (root / "sys").mkdir()
    return root


@pytest.fixture
def browsers(proc_root: Path) -> Path:
    """chrome (badness 500) and firefox (badness 900) owned by UID."""
    write_process(proc_root, 101, cmdline="chrome\x00--type=renderer", oom_score=500, rss=300000)
    write_process(proc_root, 202, cmdline="firefox\x00-P\x00default", oom_score=900, rss=900000)
    return proc_root
