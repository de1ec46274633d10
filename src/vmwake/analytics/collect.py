"""Collect the recent slice of the wake event log for troubleshooting."""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from vmwake.analytics.engine import NoData, analyze_log, window_start
from vmwake.analytics.render import render_no_data_text, render_text
from vmwake.core.events import LOG_FILENAME, EventLog, parse_event

logger = logging.getLogger(__name__)


def collect_wake_logs(
    log: EventLog,
    output: Path,
    days: int = 7,
    analyze: bool = False,
    today: Optional[date] = None,
) -> Path:
    """
    Copy the last *days* days of wake events into a timestamped directory.

    Creates ``<output>/wake-logs-<YYYYmmdd-HHMMSS>/`` containing
    ``wake-events.log``, ``collection-summary.txt`` and, when *analyze* is
    set, ``analysis.txt``.

    Returns:
        The directory that was created
    """
    dest = output / f"wake-logs-{datetime.now().strftime('%Y%m%d-%H%M%S')}"
    dest.mkdir(parents=True, exist_ok=True)
    logger.info("Logs will be saved to: %s", dest)

    today = today or date.today()
    cutoff = window_start(days, today).isoformat()
    end = today.isoformat()
    wake_copy = dest / LOG_FILENAME
    if log.exists():
        kept = []
        for line in log.read_lines():
            event = parse_event(line)
            if event is not None and cutoff <= event.date <= end:
                kept.append(line)
        wake_copy.write_text("".join(f"{line}\n" for line in kept), encoding="utf-8")
        logger.info("Collected %d wake log line(s) since %s", len(kept), cutoff)
    else:
        logger.debug("No wake log found at %s", log.path)
        wake_copy.write_text("# No wake events log found\n", encoding="utf-8")

    files = [LOG_FILENAME]
    if analyze:
        result = analyze_log(log, days, today)
        if isinstance(result, NoData):
            text = render_no_data_text(result, str(log.path))
        else:
            text = render_text(result, str(log.path))
        (dest / "analysis.txt").write_text(text + "\n", encoding="utf-8")
        files.append("analysis.txt")

    summary = [
        "Wake Log Collection Summary",
        "===========================",
        f"Timestamp: {datetime.now().astimezone().isoformat(timespec='seconds')}",
        f"Days: {days}",
        "",
        "Files collected:",
    ] + [f"  - {name}" for name in files]
    (dest / "collection-summary.txt").write_text("\n".join(summary) + "\n", encoding="utf-8")
    return dest
