"""Decision loop for oomguard."""

import logging
import os
import sys
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Protocol, TextIO

from oomguard.engine import collect_candidates, format_hogs, rank_candidates, select_target
from oomguard.errors import SourceUnavailable
from oomguard.executor import DesktopNotifier, kill_message, send_kill
from oomguard.models import CycleReport, MemorySnapshot, ProcessRecord, WatchConfig
from oomguard.procfs import ProcfsSource, SystemInfoSource

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[2J\033[H"


class StatusSink(Protocol):
    """Receives the status lines of every tick."""

    def begin_tick(self) -> None: ...

    def show(self, line: str) -> None: ...


class ConsoleSink:
    """Prints status lines, clearing the terminal at the start of each tick."""

    def __init__(self, stream: TextIO | None = None, clear: bool = True) -> None:
        """Initialize ConsoleSink."""
        self._stream = stream or sys.stdout
        self._clear = clear

    def begin_tick(self) -> None:
        """Clear the terminal."""
        if self._clear:
            self._stream.write(CLEAR_SCREEN)

    def show(self, line: str) -> None:
        """Print one status line."""
        self._stream.write(line + "\n")
        self._stream.flush()


class NullSink:
    """Discards status lines; the caller reads them from the CycleReport."""

    def begin_tick(self) -> None:
        """Do nothing."""

    def show(self, line: str) -> None:
        """Drop the line."""


def should_trigger(available_percent: float, threshold: int) -> bool:
    """True when the whole-percent availability is below ``threshold``."""
    return int(available_percent) < threshold


def format_header(config: WatchConfig) -> str:
    """Format the first status line of a tick."""
    return (
        f"Memory threshold: {config.threshold}%  Ignoring adj: {str(config.ignore_adj).lower()}   "
        f"Simulating: {str(config.simulate).lower()}  Verbose: {str(config.verbose).lower()}"
    )


def format_memory(snapshot: MemorySnapshot, now: datetime) -> str:
    """Format the memory availability line with a wall-clock timestamp."""
    return (
        f"{now:%H:%M:%S} mem avail: {snapshot.mem_available // 1000} of "
        f"{snapshot.mem_total // 1000} Mib ({snapshot.available_percent:2.0f}%), "
        f"swap free: {snapshot.swap_free // 1000} of {snapshot.swap_total // 1000} Mib "
        f"({snapshot.swap_free_percent:2.0f}%)"
    )


class Watchdog:
    """
    Samples memory every tick and kills one process of the current user
    when available memory falls below the configured threshold.

    Ticks are strictly sequential: a cycle always finishes before the next
    memory read.
    """

    def __init__(
        self,
        config: WatchConfig,
        source: SystemInfoSource | None = None,
        sink: StatusSink | None = None,
        notifier: DesktopNotifier | None = None,
        uid: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
        own_pid: int | None = None,
    ) -> None:
        """
        Initialize the Watchdog.

        Args:
            config: Startup configuration.
            source: Where memory and process data is read from. Defaults to /proc.
            sink: Display for status lines. Defaults to the console.
            notifier: Desktop notifier. Defaults to notify-send when enabled in config.
            uid: Owner of the candidate processes. Defaults to the current user.
            clock: Time source for the memory line.
            own_pid: Pid never considered for killing. Defaults to this process.
        """
        self._config = config
        self._source = source if source is not None else ProcfsSource()
        self._sink = sink if sink is not None else ConsoleSink()
        self._notifier = notifier if notifier is not None else DesktopNotifier(enabled=config.notify)
        self._uid = os.getuid() if uid is None else uid
        self._clock = clock
        self._own_pid = os.getpid() if own_pid is None else own_pid
        self._stop_event = threading.Event()

    @property
    def config(self) -> WatchConfig:
        """Get the configuration."""
        return self._config

    def stop(self) -> None:
        """Ask run() to return after the current tick."""
        self._stop_event.set()

    def run(self, cycles: int | None = None) -> None:
        """
        Run ticks until stopped, interrupted or ``cycles`` ticks have run.

        Args:
            cycles: Number of ticks to run; None runs forever.
        """
        self._stop_event.clear()
        count = 0
        try:
            while not self._stop_event.is_set():
                self.run_cycle()
                count += 1
                if cycles is not None and count >= cycles:
                    break
                self._stop_event.wait(timeout=self._config.interval)
        except KeyboardInterrupt:
            logger.info("interrupted, exiting")

    def run_cycle(self) -> CycleReport:
        """Run one tick: sample memory and act when under pressure."""
        lines: list[str] = []

        def emit(line: str) -> None:
            lines.append(line)
            self._sink.show(line)

        self._sink.begin_tick()
        emit(format_header(self._config))

        try:
            snapshot = self._source.read_memory_snapshot()
            available = snapshot.available_percent
            emit(format_memory(snapshot, self._clock()))
        except SourceUnavailable as exc:
            logger.error("memory statistics unavailable: %s", exc)
            emit(f"memory statistics unavailable: {exc}")
            return CycleReport(snapshot=None, lines=tuple(lines))

        if not should_trigger(available, self._config.threshold):
            return CycleReport(snapshot=snapshot, lines=tuple(lines))

        emit("ready to kill!")
        try:
            candidates = collect_candidates(
                self._source,
                self._uid,
                ignore_adj=self._config.ignore_adj,
                exclude=(self._own_pid,),
            )
        except SourceUnavailable as exc:
            logger.error("process list unavailable: %s", exc)
            emit(f"process list unavailable: {exc}")
            return CycleReport(snapshot=snapshot, triggered=True, lines=tuple(lines))

        ranked = tuple(rank_candidates(candidates))
        if self._config.verbose:
            for line in format_hogs(ranked):
                emit(line)

        target = select_target(ranked, self._config.prefer, emit)
        if target is None:
            return CycleReport(snapshot=snapshot, triggered=True, candidates=ranked, lines=tuple(lines))

        signalled = self._execute(target, emit)
        return CycleReport(
            snapshot=snapshot,
            triggered=True,
            candidates=ranked,
            target=target,
            signalled=signalled,
            lines=tuple(lines),
        )

    def _execute(self, target: ProcessRecord, emit: Callable[[str], None]) -> bool:
        """Kill ``target`` and announce it."""
        signalled = send_kill(target, simulate=self._config.simulate)
        if not signalled and not self._config.simulate:
            emit(f"could not kill process {target.name} with pid {target.pid}")
            return False

        message = kill_message(target)
        emit(message)
        self._notifier.send(message)
        return signalled
