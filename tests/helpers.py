"""Builders for synthetic /proc trees shared by the test modules."""

from datetime import datetime
from pathlib import Path

UID = 1000
OTHER_UID = 0

MEMINFO_LOW = """\
MemTotal:        8000000 kB
MemFree:          200000 kB
MemAvailable:     400000 kB
Buffers:           10000 kB
Cached:           300000 kB
SwapTotal:       2000000 kB
SwapFree:        1000000 kB
HugePages_Total:       0
"""

MEMINFO_HALF = MEMINFO_LOW.replace("MemAvailable:     400000 kB", "MemAvailable:    4000000 kB")

FIXED_NOW = datetime(2024, 1, 1, 12, 34, 56)


def write_meminfo(root: Path, text: str) -> None:
    (root / "meminfo").write_text(text)


def write_process(
    root: Path,
    pid: int,
    cmdline: str = "proc",
    oom_score: int = 100,
    oom_score_adj: int = 0,
    rss: int | None = 1024,
    uid: int = UID,
) -> Path:
    """Create /proc/<pid> with status, oom_score, oom_score_adj and cmdline."""
    pdir = root / str(pid)
    pdir.mkdir()
    status = [
        f"Name:\t{cmdline.split(chr(0))[0][-15:]}",
        "State:\tS (sleeping)",
        f"Pid:\t{pid}",
        f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}",
        f"Gid:\t{uid}\t{uid}\t{uid}\t{uid}",
    ]
    if rss is not None:
        status.append(f"VmRSS:\t{rss:>8} kB")
    (pdir / "status").write_text("\n".join(status) + "\n")
    (pdir / "oom_score").write_text(f"{oom_score}\n")
    (pdir / "oom_score_adj").write_text(f"{oom_score_adj}\n")
    (pdir / "cmdline").write_bytes(cmdline.encode())
    return pdir
