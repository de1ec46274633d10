"""JSON and text renderings of an analytics report."""

import json
from typing import Any, Optional

from vmwake.analytics.engine import AggregateReport, NoData

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

_BAR_WIDTH = 40
_BAR_CHAR = "▓"


def report_to_dict(report: AggregateReport) -> dict[str, Any]:
    """Structured form of the report; ``success_rate`` is None when undefined."""
    return {
        "period_days": report.period_days,
        "window": {"start": report.window_start, "end": report.window_end},
        "summary": {
            "total_events": report.total_events,
            "wol_sent": report.wol_sent,
            "online": report.online,
            "timeout": report.timeout,
            "failed": report.failed,
            "success_rate": report.success_rate,
        },
        "hosts": {
            h.link_address: {
                "events": h.events,
                "wol_sent": h.wol_sent,
                "online": h.online,
                "timeout": h.timeout,
                "failed": h.failed,
                "success_rate": h.success_rate,
            }
            for h in report.per_host
        },
        "hour_histogram": {f"{hour:02d}": n for hour, n in enumerate(report.hour_histogram)},
        "day_histogram": {DAY_NAMES[i]: n for i, n in enumerate(report.day_histogram)},
        "trends": {
            "active_days": report.active_days,
            "avg_events_per_day": report.avg_events_per_day,
            "busiest_day": {"date": report.busiest_day, "events": report.busiest_day_events},
        },
    }


def no_data_to_dict(notice: NoData, log_path: Optional[str] = None) -> dict[str, Any]:
    d: dict[str, Any] = {"error": notice.reason, "period_days": notice.period_days}
    if log_path:
        d["log_path"] = log_path
    return d


def render_json(report: AggregateReport) -> str:
    return json.dumps(report_to_dict(report), indent=2)


def render_no_data_json(notice: NoData, log_path: Optional[str] = None) -> str:
    return json.dumps(no_data_to_dict(notice, log_path))


def _bar(count: int, peak: int) -> str:
    if count <= 0 or peak <= 0:
        return ""
    return _BAR_CHAR * max(1, round(count * _BAR_WIDTH / peak))


def _rate(rate: Optional[int]) -> str:
    return "undefined" if rate is None else f"{rate}%"


def render_text(report: AggregateReport, log_path: Optional[str] = None) -> str:
    """Human-readable report built from the same fields as :func:`report_to_dict`."""
    d = report_to_dict(report)
    summary = d["summary"]
    lines = [
        "Sleep/Wake Cycle Analysis",
        "=========================",
        f"  Period:      Last {report.period_days} day(s) "
        f"({report.window_start} .. {report.window_end})",
    ]
    if log_path:
        lines.append(f"  Log file:    {log_path}")

    lines += [
        "",
        "Event Summary:",
        "==============",
        f"  Total events:      {summary['total_events']}",
        f"  WoL packets sent:  {summary['wol_sent']}",
        f"  Successful wakes:  {summary['online']}",
        f"  Timeouts:          {summary['timeout']}",
        f"  Failures:          {summary['failed']}",
        f"  Success rate:      {_rate(summary['success_rate'])}",
        "",
        "Per-Host Statistics:",
        "====================",
    ]
    for mac, h in d["hosts"].items():
        lines.append(
            f"  {mac:<20} Events: {h['events']:<4d} Sent: {h['wol_sent']:<4d} "
            f"Online: {h['online']:<4d} Timeout: {h['timeout']:<4d} "
            f"Failed: {h['failed']:<4d} Success: {_rate(h['success_rate'])}"
        )

    lines += ["", "Time-of-Day Distribution:", "========================="]
    hour_peak = max(report.hour_histogram)
    for hour, count in d["hour_histogram"].items():
        if count:
            lines.append(f"  {hour}:00 - {hour}:59  [{count:3d}] {_bar(count, hour_peak)}")

    lines += ["", "Day-of-Week Distribution:", "========================="]
    day_peak = max(report.day_histogram)
    for name, count in d["day_histogram"].items():
        lines.append(f"  {name:<3}  [{count:3d}] {_bar(count, day_peak)}")

    trends = d["trends"]
    lines += [
        "",
        "Trend Analysis:",
        "===============",
        f"  Active days:             {trends['active_days']}",
        f"  Average events per day:  {trends['avg_events_per_day']}",
        f"  Most active day:         {trends['busiest_day']['date']} "
        f"({trends['busiest_day']['events']} events)",
        f"  Overall success rate:    {_rate(summary['success_rate'])}",
    ]
    return "\n".join(lines)


def render_no_data_text(notice: NoData, log_path: Optional[str] = None) -> str:
    where = f" ({log_path})" if log_path else ""
    return f"No data: {notice.reason}{where}. No wake events in the last {notice.period_days} day(s)."
