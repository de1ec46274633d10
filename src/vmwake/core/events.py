"""Append-only wake event log.

One event per line::

    2026-10-18T03:12:45+00:00 WOL_SENT MAC=AA:BB:CC:DD:EE:FF HOST=192.168.1.10

``HOST=`` is left empty when the target's IP address is unknown.  The line
shape is read by external tooling as well, so it must not change.
"""

import fcntl
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from vmwake.core.registry import MAC_RE

logger = logging.getLogger(__name__)

LOG_FILENAME = "wake-events.log"


class Outcome(str, Enum):
    WOL_SENT = "WOL_SENT"
    WOL_FAILED = "WOL_FAILED"
    ONLINE = "ONLINE"
    TIMEOUT = "TIMEOUT"


@dataclass(frozen=True)
class WakeEvent:
    """A single wake lifecycle transition."""

    timestamp: str
    outcome: Outcome
    link_address: str
    network_address: Optional[str] = None

    @property
    def date(self) -> str:
        """Calendar date part of the timestamp (``YYYY-MM-DD``)."""
        return self.timestamp[:10]

    @property
    def hour(self) -> int:
        return int(self.timestamp[11:13])

    @classmethod
    def now(
        cls, outcome: Outcome, link_address: str, network_address: Optional[str] = None
    ) -> "WakeEvent":
        ts = datetime.now().astimezone().isoformat(timespec="seconds")
        return cls(
            timestamp=ts,
            outcome=outcome,
            link_address=link_address,
            network_address=network_address or None,
        )


def format_event(event: WakeEvent) -> str:
    """Render an event as one log line (without the trailing newline)."""
    return (
        f"{event.timestamp} {event.outcome.value} "
        f"MAC={event.link_address} HOST={event.network_address or ''}"
    )


def parse_event(line: str) -> Optional[WakeEvent]:
    """
    Parse one log line; returns None for anything malformed.

    Older writers logged the MAC as typed, so it is uppercased here to keep
    one host under one key.
    """
    fields = line.split()
    if len(fields) < 3:
        return None
    ts, outcome_str = fields[0], fields[1]
    if len(ts) < 13 or ts[10] != "T":
        return None
    try:
        datetime.fromisoformat(ts)
        outcome = Outcome(outcome_str)
    except ValueError:
        return None

    mac: Optional[str] = None
    host: Optional[str] = None
    for token in fields[2:]:
        if token.startswith("MAC="):
            mac = token[len("MAC=") :]
        elif token.startswith("HOST="):
            host = token[len("HOST=") :] or None
    if not mac or not MAC_RE.match(mac):
        return None
    return WakeEvent(
        timestamp=ts, outcome=outcome, link_address=mac.upper(), network_address=host
    )


class EventLog:
    """
    The wake event log file.

    Usage::

        log = EventLog(Path("/var/log/vmstation/wake-events.log"))
        log.append(WakeEvent.now(Outcome.WOL_SENT, "AA:BB:CC:DD:EE:FF"))
        events = log.read_all()
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def in_dir(cls, log_dir: Path) -> "EventLog":
        return cls(log_dir / LOG_FILENAME)

    def exists(self) -> bool:
        return self.path.is_file()

    def append(self, event: WakeEvent) -> bool:
        """
        Append one event.  Best-effort: returns False instead of raising when
        the log directory is missing or not writable.

        Concurrent writers are serialised with an exclusive ``flock`` on an
        ``O_APPEND`` handle.
        """
        log_dir = self.path.parent
        if not log_dir.is_dir() or not os.access(log_dir, os.W_OK):
            logger.warning(
                "Wake log directory %s missing or not writable; dropping %s event",
                log_dir,
                event.outcome.value,
            )
            return False
        line = format_event(event) + "\n"
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    f.write(line)
                    f.flush()
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except OSError as exc:
            logger.warning("Could not write wake event to %s: %s", self.path, exc)
            return False
        logger.debug("Recorded wake event: %s", line.strip())
        return True

    def read_lines(self) -> list[str]:
        """Raw non-empty lines; empty list when the file does not exist."""
        if not self.exists():
            return []
        with open(self.path, encoding="utf-8", errors="replace") as f:
            return [line.rstrip("\n") for line in f if line.strip()]

    def read_all(self) -> list[WakeEvent]:
        """Every well-formed event in file order; malformed lines are skipped."""
        events: list[WakeEvent] = []
        skipped = 0
        for line in self.read_lines():
            event = parse_event(line)
            if event is None:
                skipped += 1
                continue
            events.append(event)
        if skipped:
            logger.debug("Skipped %d malformed line(s) in %s", skipped, self.path)
        return events
