"""Data models for oomguard."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from oomguard.errors import SourceUnavailable


@dataclass(slots=True, frozen=True)
class MemorySnapshot:
    """Immutable snapshot of /proc/meminfo, values in kilobytes."""

    values: Mapping[str, int]

    def _get(self, label: str) -> int:
        """Get a meminfo value, failing when the label is missing."""
        try:
            return self.values[label]
        except KeyError:
            raise SourceUnavailable(f"meminfo has no {label} entry") from None

    @property
    def mem_total(self) -> int:
        """Get MemTotal in kB."""
        return self._get("MemTotal")

    @property
    def mem_available(self) -> int:
        """Get MemAvailable in kB."""
        return self._get("MemAvailable")

    @property
    def swap_total(self) -> int:
        """Get SwapTotal in kB."""
        return self._get("SwapTotal")

    @property
    def swap_free(self) -> int:
        """Get SwapFree in kB."""
        return self._get("SwapFree")

    @property
    def available_percent(self) -> float:
        """Percentage of memory still available, 0.0 - 100.0."""
        total = self.mem_total
        if total <= 0:
            raise SourceUnavailable(f"meminfo reports MemTotal={total}")
        return self.mem_available / total * 100

    @property
    def swap_free_percent(self) -> float:
        """Percentage of swap still free; 0.0 on hosts without swap."""
        total = self.swap_total
        if total <= 0:
            return 0.0
        return self.swap_free / total * 100


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of a kill candidate."""

    pid: int
    name: str  # cmdline with NUL separators removed
    memory_kb: int  # VmRSS
    badness: int  # oom_score, optionally reduced by oom_score_adj


@dataclass(slots=True, frozen=True)
class WatchConfig:
    """Startup configuration, read-only for the lifetime of the daemon."""

    threshold: int = 0  # percent of available memory
    ignore_adj: bool = False
    prefer: str = ""
    simulate: bool = False
    verbose: bool = False
    interval: float = 2.0  # seconds between ticks
    tui: bool = False
    notify: bool = True


@dataclass(slots=True, frozen=True)
class CycleReport:
    """What a single tick of the watchdog saw and did."""

    snapshot: MemorySnapshot | None
    triggered: bool = False
    candidates: tuple[ProcessRecord, ...] = ()
    target: ProcessRecord | None = None
    signalled: bool = False
    lines: tuple[str, ...] = field(default_factory=tuple)
