"""Wake request orchestration."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from vmwake.core.errors import NoTransportAvailable, TransmitError
from vmwake.core.events import EventLog, Outcome, WakeEvent
from vmwake.core.poller import wait_for_online
from vmwake.core.registry import WakeTarget, resolve
from vmwake.core.wol import PacketSender, normalize_mac, send_burst

logger = logging.getLogger(__name__)


@dataclass
class WakeRequest:
    """Parameters for a single wake attempt."""

    target: str
    broadcast: str = "255.255.255.255"
    port: int = 9
    wait: bool = False
    timeout: int = 300
    interval: int = 10
    probe_timeout: int = 5
    count: int = 1
    delay: float = 0.5


@dataclass
class WakeResult:
    """Result of a wake attempt."""

    target: WakeTarget
    success: bool
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcome: Optional[Outcome] = None
    transport: Optional[str] = None
    packets_sent: int = 0
    wait_skipped: bool = False
    error: Optional[str] = None
    exit_code: int = 0

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at and self.started_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None


def run_wake(
    request: WakeRequest,
    registry_path: Path,
    event_log: EventLog,
    senders: Optional[Sequence[PacketSender]] = None,
) -> WakeResult:
    """
    Execute a complete wake request.

    Workflow:
        1. Resolve the target (MAC or registry name)
        2. Send the magic packet(s) and record WOL_SENT / WOL_FAILED
        3. Optionally wait for the host to answer pings and record
           ONLINE / TIMEOUT

    Resolution and validation errors propagate before anything is sent or
    recorded.  Transmit failures and timeouts are reported in the result.

    Raises:
        ResolutionError: Target could not be resolved
        ValidationError: Resolved MAC address is malformed
    """
    started_at = datetime.now(timezone.utc)
    target = resolve(request.target, registry_path)
    mac = normalize_mac(target.link_address)
    target = WakeTarget(name=target.name, link_address=mac, network_address=target.network_address)

    def _record(outcome: Outcome) -> None:
        event_log.append(WakeEvent.now(outcome, mac, target.network_address))

    def _fail(error: str, exit_code: int, outcome: Outcome, transport: Optional[str] = None) -> WakeResult:
        return WakeResult(
            target=target,
            success=False,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            outcome=outcome,
            transport=transport,
            error=error,
            exit_code=exit_code,
        )

    # ── Step 1: Send magic packet(s) ──────────────────────────────────────────
    logger.info(
        "[%s] Sending WOL packet → MAC %s via %s:%d",
        target.name,
        mac,
        request.broadcast,
        request.port,
    )
    try:
        burst = send_burst(
            mac,
            broadcast=request.broadcast,
            port=request.port,
            count=request.count,
            delay=request.delay,
            senders=senders,
        )
    except NoTransportAvailable as exc:
        logger.error("[%s] %s", target.name, exc)
        _record(Outcome.WOL_FAILED)
        return _fail(str(exc), 2, Outcome.WOL_FAILED)
    except TransmitError as exc:
        logger.error("[%s] %s", target.name, exc)
        _record(Outcome.WOL_FAILED)
        return _fail(str(exc), 1, Outcome.WOL_FAILED)

    if not burst.success:
        err = burst.errors[-1] if burst.errors else "no packet sent"
        logger.error("[%s] Failed to send Wake-on-LAN packet: %s", target.name, err)
        _record(Outcome.WOL_FAILED)
        return _fail(err, 1, Outcome.WOL_FAILED, burst.transport)

    _record(Outcome.WOL_SENT)
    if burst.failed:
        logger.warning("[%s] %d of %d packet(s) failed", target.name, burst.failed, request.count)

    result = WakeResult(
        target=target,
        success=True,
        started_at=started_at,
        outcome=Outcome.WOL_SENT,
        transport=burst.transport,
        packets_sent=burst.sent,
    )

    # ── Step 2: Wait for the host ─────────────────────────────────────────────
    if request.wait:
        if not target.network_address:
            logger.warning(
                "[%s] No IP address known for host, cannot wait for online status", target.name
            )
            result.wait_skipped = True
        else:
            outcome = wait_for_online(
                target.network_address,
                timeout=request.timeout,
                interval=request.interval,
                probe_timeout=request.probe_timeout,
            )
            _record(outcome)
            result.outcome = outcome
            if outcome is Outcome.TIMEOUT:
                result.success = False
                result.exit_code = 1
                result.error = (
                    f"Host {target.network_address} did not come online within {request.timeout}s"
                )
                logger.error("[%s] %s", target.name, result.error)

    result.finished_at = datetime.now(timezone.utc)
    return result
