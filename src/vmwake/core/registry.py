"""Static host registry and wake target resolution.

The registry is a flat text file with one host per line::

    # name            mac                  ip
    vmstation-node1   AA:BB:CC:DD:EE:FF    192.168.1.10

Blank lines and lines starting with ``#`` are ignored.  The first line whose
name matches wins.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from vmwake.core.errors import NameNotFound, RegistryNotFound

logger = logging.getLogger(__name__)

MAC_RE = re.compile(r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$")


@dataclass(frozen=True)
class WakeTarget:
    """A host that can be woken: symbolic name, link address and last-known IP."""

    name: str
    link_address: str
    network_address: Optional[str] = None


def is_mac(token: str) -> bool:
    """Return True if *token* is a colon-separated MAC address (any case)."""
    return bool(MAC_RE.match(token))


def _parse_line(line: str) -> Optional[WakeTarget]:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    fields = stripped.split()
    if len(fields) < 2:
        logger.debug("Skipping short registry line: %r", stripped)
        return None
    name, mac = fields[0], fields[1]
    ip = fields[2] if len(fields) > 2 else None
    return WakeTarget(name=name, link_address=mac.upper(), network_address=ip)


def load_registry(path: Path) -> list[WakeTarget]:
    """
    Read every host entry from the registry file.

    Args:
        path: Path to the registry file

    Returns:
        Entries in file order (duplicates preserved)

    Raises:
        RegistryNotFound: If the file does not exist
    """
    if not path.is_file():
        raise RegistryNotFound(path)
    targets: list[WakeTarget] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            target = _parse_line(line)
            if target is not None:
                targets.append(target)
    logger.debug("Loaded %d host(s) from %s", len(targets), path)
    return targets


def resolve(token: str, registry_path: Path) -> WakeTarget:
    """
    Resolve a MAC address or registry host name to a WakeTarget.

    A token that already looks like a MAC address is returned as-is with no
    known network address; the registry is not consulted.

    Raises:
        RegistryNotFound: Name lookup was needed but the registry is missing
        NameNotFound: No registry line carries this name
    """
    if is_mac(token):
        logger.debug("Input %s is a valid MAC address", token)
        return WakeTarget(name=token.upper(), link_address=token.upper())

    logger.debug("Looking up hostname %s in %s", token, registry_path)
    for target in load_registry(registry_path):
        if target.name == token:
            logger.debug(
                "Found host %s: MAC=%s, IP=%s",
                token,
                target.link_address,
                target.network_address or "",
            )
            return target
    raise NameNotFound(token, registry_path)
