"""Termination of the selected process and kill announcements."""

import logging
import shutil
import signal
import subprocess

import psutil

from oomguard.models import ProcessRecord

logger = logging.getLogger(__name__)

NOTIFY_COMMAND = "notify-send"


def kill_message(record: ProcessRecord) -> str:
    """Human-readable description of a kill."""
    return f"killed process {record.name} with pid {record.pid}"


def send_kill(record: ProcessRecord, simulate: bool = False) -> bool:
    """
    Send SIGKILL to the selected process.

    Returns True when a signal was delivered. A target that has already
    exited or cannot be signalled is logged and reported as False.
    """
    if simulate:
        logger.info("simulate mode: not sending SIGKILL to pid %d", record.pid)
        return False

    try:
        psutil.Process(record.pid).send_signal(signal.SIGKILL)
    except psutil.NoSuchProcess:
        logger.warning("pid %d exited before it could be killed", record.pid)
        return False
    except psutil.AccessDenied:
        logger.warning("not allowed to kill pid %d", record.pid)
        return False

    logger.info("sent SIGKILL to pid %d (%s)", record.pid, record.name)
    return True


class DesktopNotifier:
    """
    Fire-and-forget desktop notifications through notify-send.

    Failures never propagate to the caller.
    """

    def __init__(self, enabled: bool = True, command: str = NOTIFY_COMMAND) -> None:
        """
        Initialize the notifier.

        Args:
            enabled: Send notifications at all.
            command: Notification program to run.
        """
        self._enabled = enabled
        self._command = command

    @property
    def enabled(self) -> bool:
        """Check if notifications are enabled."""
        return self._enabled

    def send(self, message: str) -> bool:
        """Show ``message`` as a critical notification. Returns True on success."""
        if not self._enabled:
            return False
        if shutil.which(self._command) is None:
            logger.debug("%s not found, skipping desktop notification", self._command)
            return False
        try:
            subprocess.run(
                [self._command, "-u", "critical", "-i", "dialog-warning", "OOM", message],
                check=True,
                timeout=5,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("desktop notification failed: %s", exc)
            return False
        return True
