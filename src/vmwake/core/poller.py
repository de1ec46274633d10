"""Wait for a freshly woken host to answer pings."""

import logging
import time

from vmwake.core import probe
from vmwake.core.events import Outcome

logger = logging.getLogger(__name__)


def wait_for_online(
    address: str,
    timeout: int = 300,
    interval: int = 10,
    probe_timeout: int = 5,
) -> Outcome:
    """
    Poll *address* every *interval* seconds until it is reachable.

    Elapsed time is counted as ``iterations * interval``; the time spent
    inside each probe is not added.  The call blocks until the first
    successful probe or until that count reaches *timeout*.

    Args:
        address: IP address or hostname to probe
        timeout: Seconds to keep polling (default: 300)
        interval: Seconds between probes (default: 10)
        probe_timeout: Per-probe ICMP timeout (default: 5)

    Returns:
        Outcome.ONLINE or Outcome.TIMEOUT
    """
    if interval <= 0:
        raise ValueError(f"Poll interval must be positive, got {interval}")
    logger.info("Waiting for host %s to become reachable (timeout: %ds)", address, timeout)
    elapsed = 0
    attempt = 0
    while elapsed < timeout:
        attempt += 1
        if probe.is_reachable(address, probe_timeout):
            logger.info("Host %s is reachable (attempt %d)", address, attempt)
            return Outcome.ONLINE
        logger.debug(
            "Host %s not yet reachable, %ds remaining (attempt %d)",
            address,
            timeout - elapsed,
            attempt,
        )
        time.sleep(interval)
        elapsed += interval
    logger.warning("Host %s did not become reachable within %ds", address, timeout)
    return Outcome.TIMEOUT
