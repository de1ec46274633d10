"""Wake-on-LAN magic packet construction and transmission.

Packets go out through the first *available* transport in an ordered chain:
dedicated wake utilities first, then the in-process socket, then raw bytes
piped through netcat.  Availability decides which transport is used, not the
outcome of the send; a failing transport is never followed by the next one.
"""

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Sequence

from wakeonlan import send_magic_packet

from vmwake.core.errors import NoTransportAvailable, TransmitError, ValidationError
from vmwake.core.registry import MAC_RE

logger = logging.getLogger(__name__)

DEFAULT_TRANSPORTS = ("wakeonlan", "wol", "etherwake", "socket", "netcat")

_SUBPROCESS_TIMEOUT = 10


def normalize_mac(mac: str) -> str:
    """
    Validate a colon-separated MAC address and return it in uppercase.

    Raises:
        ValidationError: Wrong length, wrong delimiter or non-hex characters
    """
    if not MAC_RE.match(mac):
        raise ValidationError(mac)
    return mac.upper()


def build_magic_packet(mac: str) -> bytes:
    """Return the 102-byte payload: 6 x 0xFF followed by the MAC 16 times."""
    mac_bytes = bytes.fromhex(normalize_mac(mac).replace(":", ""))
    return b"\xff" * 6 + mac_bytes * 16


class PacketSender(Protocol):
    name: str

    def available(self) -> bool: ...

    def send(self, mac: str, broadcast: str, port: int) -> None: ...


def _run(cmd: list[str], input_bytes: Optional[bytes] = None) -> None:
    logger.debug("Running transport command: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            input=input_bytes,
            capture_output=True,
            timeout=_SUBPROCESS_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise TransmitError(f"{cmd[0]} failed: {exc}") from exc
    if result.returncode != 0:
        stderr = (result.stderr or b"").decode("utf-8", errors="replace")
        raise TransmitError(
            f"{cmd[0]} exited {result.returncode}: {stderr.strip()}",
            returncode=result.returncode,
            stderr=stderr,
        )


class CommandSender:
    """A wake utility taking ``-i <broadcast> -p <port> <mac>`` (wakeonlan, wol)."""

    def __init__(self, name: str, binary: Optional[str] = None) -> None:
        self.name = name
        self.binary = binary or name

    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    def send(self, mac: str, broadcast: str, port: int) -> None:
        _run([self.binary, "-i", broadcast, "-p", str(port), mac])


class EtherwakeSender:
    """Layer-2 wake through etherwake; needs an explicit interface."""

    name = "etherwake"

    def __init__(self, interface: Optional[str] = None) -> None:
        self.interface = interface

    def available(self) -> bool:
        return bool(self.interface) and shutil.which("etherwake") is not None

    def send(self, mac: str, broadcast: str, port: int) -> None:
        # etherwake broadcasts the raw frame itself; IP broadcast/port don't apply
        _run(["etherwake", "-i", str(self.interface), "-b", mac])


class SocketSender:
    """In-process UDP broadcast via the wakeonlan library."""

    name = "socket"

    def available(self) -> bool:
        return True

    def send(self, mac: str, broadcast: str, port: int) -> None:
        try:
            send_magic_packet(mac, ip_address=broadcast, port=port)
        except OSError as exc:
            raise TransmitError(f"socket send to {broadcast}:{port} failed: {exc}") from exc


class NetcatSender:
    """Hand-built packet bytes piped through ``nc -u``."""

    name = "netcat"

    def available(self) -> bool:
        return shutil.which("nc") is not None

    def send(self, mac: str, broadcast: str, port: int) -> None:
        _run(["nc", "-u", "-w1", broadcast, str(port)], input_bytes=build_magic_packet(mac))


def build_senders(
    names: Iterable[str] = DEFAULT_TRANSPORTS, interface: Optional[str] = None
) -> list[PacketSender]:
    """
    Build the ordered transport chain from transport names.

    Raises:
        ValueError: For an unknown transport name
    """
    senders: list[PacketSender] = []
    for name in names:
        if name in ("wakeonlan", "wol"):
            senders.append(CommandSender(name))
        elif name == "etherwake":
            senders.append(EtherwakeSender(interface))
        elif name == "socket":
            senders.append(SocketSender())
        elif name == "netcat":
            senders.append(NetcatSender())
        else:
            raise ValueError(f"Unknown transport: {name}")
    return senders


def select_sender(senders: Sequence[PacketSender]) -> PacketSender:
    """
    Return the first available transport.

    Raises:
        NoTransportAvailable: If none of them is usable on this host
    """
    for sender in senders:
        if sender.available():
            logger.debug("Using %s transport", sender.name)
            return sender
        logger.debug("Transport %s not available", sender.name)
    raise NoTransportAvailable([s.name for s in senders])


def send(
    mac: str,
    broadcast: str = "255.255.255.255",
    port: int = 9,
    senders: Optional[Sequence[PacketSender]] = None,
) -> str:
    """
    Send one Wake-on-LAN magic packet.

    Args:
        mac: MAC address of the target machine (e.g. "AA:BB:CC:DD:EE:FF")
        broadcast: Broadcast IP address (default: 255.255.255.255)
        port: UDP port (default: 9)
        senders: Transport chain; defaults to the full built-in chain

    Returns:
        Name of the transport that sent the packet

    Raises:
        ValidationError: Malformed MAC; nothing is sent
        NoTransportAvailable: No transport usable on this host
        TransmitError: The selected transport failed
    """
    mac = normalize_mac(mac)
    sender = select_sender(senders if senders is not None else build_senders())
    logger.info("Sending WOL magic packet to %s via %s:%d (%s)", mac, broadcast, port, sender.name)
    sender.send(mac, broadcast, port)
    logger.debug("WOL packet sent successfully")
    return sender.name


@dataclass
class BurstResult:
    """Outcome of a multi-packet burst."""

    mac: str
    transport: str
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.sent > 0


def send_burst(
    mac: str,
    broadcast: str = "255.255.255.255",
    port: int = 9,
    count: int = 3,
    delay: float = 0.5,
    senders: Optional[Sequence[PacketSender]] = None,
) -> BurstResult:
    """
    Send *count* packets with *delay* seconds between them.

    Individual send failures are counted, not raised; validation and
    transport-availability errors abort before the first packet.
    """
    if count < 1:
        raise ValidationError(str(count), f"Packet count must be at least 1, got {count}")
    mac = normalize_mac(mac)
    sender = select_sender(senders if senders is not None else build_senders())
    result = BurstResult(mac=mac, transport=sender.name)

    for i in range(1, count + 1):
        logger.info("Sending packet %d/%d to %s via %s:%d", i, count, mac, broadcast, port)
        try:
            sender.send(mac, broadcast, port)
            result.sent += 1
        except TransmitError as exc:
            logger.warning("Packet %d/%d failed: %s", i, count, exc)
            result.failed += 1
            result.errors.append(str(exc))
        if i < count:
            time.sleep(delay)
    return result
