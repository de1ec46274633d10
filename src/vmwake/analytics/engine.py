"""Sleep/wake cycle analytics over the wake event log.

The engine is a pure fold: it takes parsed events and returns either an
AggregateReport or a NoData notice.  Rendering lives in
:mod:`vmwake.analytics.render`.

Window filtering compares calendar-date strings, not elapsed seconds: with
``days=7`` every event dated today or on one of the six previous days is
included, whatever its time of day.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence, Union

from vmwake.core.events import EventLog, Outcome, WakeEvent

logger = logging.getLogger(__name__)

NO_LOG = "No wake log found"
EMPTY_LOG = "Wake log is empty"
NO_EVENTS = "No events in date range"


@dataclass(frozen=True)
class HostStats:
    link_address: str
    events: int
    wol_sent: int
    online: int
    timeout: int
    failed: int
    success_rate: Optional[int]


@dataclass(frozen=True)
class AggregateReport:
    """Aggregated statistics for one analysis window."""

    period_days: int
    window_start: str
    window_end: str
    total_events: int
    wol_sent: int
    online: int
    timeout: int
    failed: int
    success_rate: Optional[int]
    per_host: tuple[HostStats, ...]
    # index = hour 0..23
    hour_histogram: tuple[int, ...]
    # index = weekday, 0 = Sunday .. 6 = Saturday
    day_histogram: tuple[int, ...]
    active_days: int
    avg_events_per_day: float
    busiest_day: str
    busiest_day_events: int


@dataclass(frozen=True)
class NoData:
    """Nothing to analyse: missing log, empty log, or an empty window."""

    reason: str
    period_days: int


def success_rate(online: int, wol_sent: int) -> Optional[int]:
    """
    ``round(online / wol_sent * 100)`` with halves rounded up; None when nothing was sent.

    0 is reserved for "no host came online": any ONLINE event yields at least 1.
    """
    if wol_sent <= 0:
        return None
    rate = (200 * online + wol_sent) // (2 * wol_sent)
    if online > 0 and rate == 0:
        return 1
    return rate


def weekday_index(day: str) -> int:
    """Map ``YYYY-MM-DD`` to 0 = Sunday .. 6 = Saturday."""
    return (date.fromisoformat(day).weekday() + 1) % 7


def window_start(days: int, today: Optional[date] = None) -> date:
    """First calendar date inside a trailing window of *days* days ending today."""
    if days < 1:
        raise ValueError(f"Analysis window must be at least 1 day, got {days}")
    return (today or date.today()) - timedelta(days=days - 1)


def filter_window(
    events: Iterable[WakeEvent], days: int, today: Optional[date] = None
) -> list[WakeEvent]:
    """Keep events dated from the first day of the window up to and including *today*."""
    today = today or date.today()
    cutoff = window_start(days, today).isoformat()
    end = today.isoformat()
    return [e for e in events if cutoff <= e.date <= end]


def _count(events: Sequence[WakeEvent]) -> Counter:
    return Counter(e.outcome for e in events)


def _host_stats(events: Sequence[WakeEvent]) -> tuple[HostStats, ...]:
    by_host: dict[str, list[WakeEvent]] = {}
    for e in events:
        by_host.setdefault(e.link_address, []).append(e)

    stats = []
    for mac, host_events in by_host.items():
        counts = _count(host_events)
        stats.append(
            HostStats(
                link_address=mac,
                events=len(host_events),
                wol_sent=counts[Outcome.WOL_SENT],
                online=counts[Outcome.ONLINE],
                timeout=counts[Outcome.TIMEOUT],
                failed=counts[Outcome.WOL_FAILED],
                success_rate=success_rate(counts[Outcome.ONLINE], counts[Outcome.WOL_SENT]),
            )
        )
    stats.sort(key=lambda s: (-s.events, s.link_address))
    return tuple(stats)


def analyze(
    events: Sequence[WakeEvent], days: int, today: Optional[date] = None
) -> Union[AggregateReport, NoData]:
    """
    Build the aggregate report for the trailing *days* window.

    Args:
        events: Parsed wake events, in any order
        days: Window size in calendar days (>= 1)
        today: Reference date (default: today)

    Returns:
        AggregateReport, or NoData when the log or the window is empty
    """
    today = today or date.today()
    if not events:
        return NoData(reason=EMPTY_LOG, period_days=days)

    selected = filter_window(events, days, today)
    if not selected:
        return NoData(reason=NO_EVENTS, period_days=days)

    counts = _count(selected)
    hours = [0] * 24
    weekdays = [0] * 7
    per_day: Counter = Counter()
    for e in selected:
        hours[e.hour] += 1
        weekdays[weekday_index(e.date)] += 1
        per_day[e.date] += 1

    busiest, busiest_count = min(per_day.items(), key=lambda kv: (-kv[1], kv[0]))
    total = len(selected)

    report = AggregateReport(
        period_days=days,
        window_start=window_start(days, today).isoformat(),
        window_end=today.isoformat(),
        total_events=total,
        wol_sent=counts[Outcome.WOL_SENT],
        online=counts[Outcome.ONLINE],
        timeout=counts[Outcome.TIMEOUT],
        failed=counts[Outcome.WOL_FAILED],
        success_rate=success_rate(counts[Outcome.ONLINE], counts[Outcome.WOL_SENT]),
        per_host=_host_stats(selected),
        hour_histogram=tuple(hours),
        day_histogram=tuple(weekdays),
        active_days=len(per_day),
        avg_events_per_day=round(total / len(per_day), 2),
        busiest_day=busiest,
        busiest_day_events=busiest_count,
    )
    logger.debug(
        "Analyzed %d event(s) across %d host(s) since %s",
        total,
        len(report.per_host),
        report.window_start,
    )
    return report


def analyze_log(
    log: EventLog, days: int, today: Optional[date] = None
) -> Union[AggregateReport, NoData]:
    """Read *log* and analyse it; a missing or empty file yields NoData."""
    if not log.exists():
        logger.warning("Wake log not found at %s", log.path)
        return NoData(reason=NO_LOG, period_days=days)
    events = log.read_all()
    if not events:
        logger.warning("Wake log %s is empty", log.path)
        return NoData(reason=EMPTY_LOG, period_days=days)
    return analyze(events, days, today)
