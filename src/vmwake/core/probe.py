"""Host reachability checks: ICMP echo and TCP connect."""

import logging
import re
import socket
import subprocess
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

_LATENCY_RE = re.compile(r"time[=<]([0-9.]+)\s*ms")


def _ping(address: str, timeout: int) -> Optional[subprocess.CompletedProcess]:
    try:
        return subprocess.run(
            ["ping", "-c", "1", "-W", str(timeout), address],
            capture_output=True,
            text=True,
            timeout=timeout + 1,
        )
    except subprocess.TimeoutExpired:
        logger.debug("Ping timeout for %s", address)
    except OSError as exc:
        logger.error("Error pinging %s: %s", address, exc)
    return None


def is_reachable(address: str, timeout: int = 5) -> bool:
    """
    Send a single ICMP echo and wait at most *timeout* seconds for the reply.

    Never raises: an unreachable host and a failure to run ``ping`` both
    yield False.
    """
    result = _ping(address, timeout)
    return result is not None and result.returncode == 0


def ping_latency(address: str, timeout: int = 2) -> Optional[float]:
    """Return the round-trip time in milliseconds, or None if the host is down."""
    result = _ping(address, timeout)
    if result is None or result.returncode != 0:
        return None
    match = _LATENCY_RE.search(result.stdout or "")
    return float(match.group(1)) if match else None


def check_port(address: str, port: int, timeout: int = 5) -> bool:
    """Return True if a TCP connection to *address*:*port* succeeds within *timeout*."""
    try:
        with socket.create_connection((address, port), timeout=timeout):
            return True
    except (OSError, socket.timeout) as exc:
        logger.debug("Port %s:%d closed: %s", address, port, exc)
        return False


@dataclass
class HostStatus:
    """Power state of one host as seen from here."""

    host: str
    online: bool
    latency_ms: Optional[float] = None
    ssh: str = "N/A"

    @property
    def status(self) -> str:
        return "online" if self.online else "offline"


def check_host(address: str, timeout: int = 2, ssh_port: int = 22) -> HostStatus:
    """Ping *address*; if it answers, record latency and whether SSH is open."""
    logger.debug("Checking host: %s", address)
    result = _ping(address, timeout)
    if result is None or result.returncode != 0:
        return HostStatus(host=address, online=False)
    match = _LATENCY_RE.search(result.stdout or "")
    latency = float(match.group(1)) if match else None
    ssh = "open" if check_port(address, ssh_port, timeout) else "closed"
    return HostStatus(host=address, online=True, latency_ms=latency, ssh=ssh)
