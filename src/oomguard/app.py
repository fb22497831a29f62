"""oomguard - Textual interface."""

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.markup import escape
from textual.widgets import DataTable, Footer, RichLog, Static

from oomguard.models import CycleReport, MemorySnapshot, ProcessRecord, WatchConfig
from oomguard.watchdog import NullSink, Watchdog, format_header


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def usage_bar(percent: float, color: str, width: int = 20) -> str:
    """Render a percentage as a fixed-width markup bar."""
    filled = min(max(int(percent / (100 / width)), 0), width)
    return f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (width - filled)


class HeaderStats(Static):
    """Header widget showing configuration and memory availability."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 4;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, config: WatchConfig, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._config = config
        self._snapshot: MemorySnapshot | None = None
        self._error: str = ""

    def update_stats(self, snapshot: MemorySnapshot | None, error: str = "") -> None:
        """Update the statistics from a memory snapshot."""
        self._snapshot = snapshot
        self._error = error
        self.update(self.render_stats())

    def render_stats(self) -> str:
        """Get the header text."""
        header = format_header(self._config)
        if self._snapshot is None:
            return f"{header}\n{escape(self._error) or 'Loading memory info...'}"

        snapshot = self._snapshot
        mem_color = "red" if int(snapshot.available_percent) < self._config.threshold else "cyan"
        mem_bar = usage_bar(snapshot.available_percent, mem_color)
        swap_bar = usage_bar(snapshot.swap_free_percent, "yellow")
        # Use escaped brackets for the bar containers
        return (
            f"{header}\n"
            f"Avl\\[{mem_bar}] {snapshot.mem_available // 1000}/{snapshot.mem_total // 1000} Mib "
            f"({snapshot.available_percent:.0f}%)\n"
            f"Swp\\[{swap_bar}] {snapshot.swap_free // 1000}/{snapshot.swap_total // 1000} Mib "
            f"({snapshot.swap_free_percent:.0f}%)"
        )


class CandidateTable(Container):
    """Container for the ranked kill candidates of the last triggered tick."""

    DEFAULT_CSS = """
    CandidateTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the candidate table."""
        yield DataTable(id="candidate-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#candidate-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("BADNESS", key="badness", width=8)
        table.add_column("RES", key="rss", width=8)
        table.add_column("Command", key="command")

    def update_candidates(self, candidates: tuple[ProcessRecord, ...]) -> None:
        """Replace the table contents with ``candidates`` in rank order."""
        table = self.query_one("#candidate-table", DataTable)
        table.clear()
        for record in candidates:
            table.add_row(
                str(record.pid),
                str(record.badness),
                format_bytes(record.memory_kb * 1024),
                record.name[:50],
                key=str(record.pid),
            )


class OomGuardApp(App):
    """Main oomguard application."""

    TITLE = "oomguard"
    SUB_TITLE = "User-space OOM killer"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 5;
    }

    #event-log {
        height: 10;
        border: solid $secondary;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, config: WatchConfig, watchdog: Watchdog | None = None) -> None:
        """
        Initialize the OomGuardApp.

        Args:
            config: Startup configuration.
            watchdog: Pre-built watchdog; by default one reading /proc is created.
        """
        super().__init__()
        self._config = config
        self._watchdog = watchdog or Watchdog(config, sink=NullSink())
        self._last_report: CycleReport | None = None

    @property
    def last_report(self) -> CycleReport | None:
        """Get the report of the most recent tick."""
        return self._last_report

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(self._config, id="header-stats")
        yield CandidateTable()
        yield RichLog(id="event-log", markup=False, wrap=True)
        yield Footer()

    def on_mount(self) -> None:
        """Run the first tick and schedule the following ones."""
        self._tick()
        # Timer callbacks run on the app's event loop, so ticks never overlap
        self.set_interval(self._config.interval, self._tick)

    def _tick(self) -> None:
        """Run one watchdog cycle and refresh the UI from its report."""
        report = self._watchdog.run_cycle()
        self._last_report = report
        self._update_ui(report)

    def _update_ui(self, report: CycleReport) -> None:
        """Update the UI with the cycle report."""
        header = self.query_one("#header-stats", HeaderStats)
        error = report.lines[-1] if report.snapshot is None and report.lines else ""
        header.update_stats(report.snapshot, error)

        if not report.triggered:
            return

        self.query_one(CandidateTable).update_candidates(report.candidates)
        log = self.query_one("#event-log", RichLog)
        # skip the header and memory lines, the header widget shows those
        for line in report.lines[2:]:
            log.write(line)
        if report.target is not None:
            self.notify(f"killed {report.target.name} ({report.target.pid})", severity="error", markup=False)

    def action_quit(self) -> None:
        """Handle quit action."""
        self._watchdog.stop()
        self.exit()
