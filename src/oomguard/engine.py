"""Candidate enumeration, scoring, ranking and selection."""

import logging
from collections.abc import Callable, Iterable, Sequence

from oomguard.errors import ProcessVanished
from oomguard.models import ProcessRecord
from oomguard.procfs import SystemInfoSource, status_value

logger = logging.getLogger(__name__)

Emit = Callable[[str], None]


def _read_int(source: SystemInfoSource, pid: int, field: str) -> int:
    """Read the leading integer of a per-process file."""
    text = source.read_process_field(pid, field)
    try:
        return int(text.split()[0])
    except (IndexError, ValueError):
        raise ProcessVanished(pid, f"unparsable {field}") from None


def _read_status_int(status: str, pid: int, label: str) -> int:
    """Read an integer field from status text."""
    try:
        return int(status_value(status, label))
    except (KeyError, ValueError):
        # kernel threads and zombies have no VmRSS
        raise ProcessVanished(pid, f"no {label} in status") from None


def is_owned_by(source: SystemInfoSource, pid: int, uid: int) -> bool:
    """Check the real uid of a process against ``uid``."""
    status = source.read_process_field(pid, "status")
    return _read_status_int(status, pid, "Uid") == uid


def score_process(source: SystemInfoSource, pid: int, ignore_adj: bool = False) -> ProcessRecord:
    """
    Build a ProcessRecord for a single pid.

    Args:
        source: Where to read the process fields from.
        pid: Process to inspect.
        ignore_adj: Subtract a positive oom_score_adj from the badness.

    Raises:
        ProcessVanished: Any field is missing, unreadable or malformed.
    """
    status = source.read_process_field(pid, "status")
    memory_kb = _read_status_int(status, pid, "VmRSS")

    badness = _read_int(source, pid, "oom_score")
    if ignore_adj:
        adj = _read_int(source, pid, "oom_score_adj")
        if adj > 0:
            badness -= adj

    name = source.read_process_field(pid, "cmdline").replace("\x00", "")
    return ProcessRecord(pid=pid, name=name, memory_kb=memory_kb, badness=badness)


def collect_candidates(
    source: SystemInfoSource,
    uid: int,
    ignore_adj: bool = False,
    exclude: Iterable[int] = (),
) -> list[ProcessRecord]:
    """
    Enumerate and score every process owned by ``uid``.

    Processes that exit mid-pass are skipped; the pass never fails because
    of a single process.
    """
    skip = set(exclude)
    records: list[ProcessRecord] = []
    for pid in source.list_process_ids():
        if pid in skip:
            continue
        try:
            if not is_owned_by(source, pid, uid):
                continue
            records.append(score_process(source, pid, ignore_adj))
        except ProcessVanished as exc:
            logger.debug("%s", exc)
            continue
    return records


def rank_candidates(records: Iterable[ProcessRecord]) -> list[ProcessRecord]:
    """Sort by descending badness. Equal scores keep their input order."""
    return sorted(records, key=lambda record: record.badness, reverse=True)


def select_target(
    ranked: Sequence[ProcessRecord],
    prefer: str = "",
    emit: Emit | None = None,
) -> ProcessRecord | None:
    """
    Pick the process to terminate.

    The first ranked record whose name contains ``prefer`` wins; without a
    preference or a match the top-ranked record is chosen. Returns None
    when there is nothing to choose from.
    """
    say = emit or (lambda line: None)

    if prefer:
        say("trying to kill preferred")
        for record in ranked:
            if prefer in record.name:
                say(f"found process {record.name} with pid {record.pid}")
                return record
        say("preferred not found")

    if not ranked:
        say("no candidates to kill")
        return None

    say("going for the first of list")
    target = ranked[0]
    say(f"process {target.name} with pid {target.pid}")
    return target


def format_hogs(ranked: Sequence[ProcessRecord], limit: int = 5) -> list[str]:
    """Format the top candidates as ``name  badness  memory`` lines."""
    return [f"{record.name}  {record.badness}  {record.memory_kb}" for record in ranked[:limit]]
