"""Access to the process and memory information exposed under /proc."""

from pathlib import Path
from typing import Protocol

from oomguard.errors import ProcessVanished, SourceUnavailable
from oomguard.models import MemorySnapshot


class SystemInfoSource(Protocol):
    """Narrow view of the operating system used by the watchdog."""

    def read_memory_snapshot(self) -> MemorySnapshot: ...

    def list_process_ids(self) -> list[int]: ...

    def read_process_field(self, pid: int, field: str) -> str: ...


def parse_meminfo(text: str) -> dict[str, int]:
    """
    Parse meminfo text into a label -> kilobytes mapping.

    Lines look like ``MemTotal:       16318480 kB``. Lines without a colon
    or without an integer value are skipped.
    """
    values: dict[str, int] = {}
    for line in text.splitlines():
        label, sep, rest = line.partition(":")
        if not sep:
            continue
        pieces = rest.split()
        if not pieces:
            continue
        try:
            values[label.strip()] = int(pieces[0])
        except ValueError:
            continue
    return values


def status_value(status_text: str, label: str) -> str:
    """Return the first whitespace-separated value of a ``Label:`` line."""
    prefix = f"{label}:"
    for line in status_text.splitlines():
        if line.startswith(prefix):
            pieces = line[len(prefix) :].split()
            if pieces:
                return pieces[0]
    raise KeyError(label)


class ProcfsSource:
    """
    SystemInfoSource reading the proc filesystem.

    Every read opens the file fresh; nothing is cached between calls.
    """

    def __init__(self, root: str | Path = "/proc") -> None:
        """
        Initialize the source.

        Args:
            root: Mount point of the proc filesystem. Tests point this at
                a synthetic directory tree.
        """
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Get the proc filesystem root."""
        return self._root

    def read_memory_snapshot(self) -> MemorySnapshot:
        """Read and parse the meminfo file."""
        path = self._root / "meminfo"
        try:
            text = path.read_text()
        except OSError as exc:
            raise SourceUnavailable(f"cannot read {path}: {exc}") from exc
        return MemorySnapshot(values=parse_meminfo(text))

    def list_process_ids(self) -> list[int]:
        """List the numeric entries of the root in ascending order."""
        try:
            entries = [entry.name for entry in self._root.iterdir()]
        except OSError as exc:
            raise SourceUnavailable(f"cannot list {self._root}: {exc}") from exc
        return sorted(int(name) for name in entries if name.isascii() and name.isdigit())

    def read_process_field(self, pid: int, field: str) -> str:
        """Read the raw text of /proc/<pid>/<field>."""
        path = self._root / str(pid) / field
        try:
            # cmdline may hold arbitrary bytes
            return path.read_bytes().decode("utf-8", "replace")
        except (FileNotFoundError, ProcessLookupError) as exc:
            raise ProcessVanished(pid) from exc
        except OSError as exc:
            raise ProcessVanished(pid, str(exc)) from exc
