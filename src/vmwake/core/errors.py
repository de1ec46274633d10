"""Exception hierarchy for wake requests."""

from pathlib import Path
from typing import Sequence


class WakeError(Exception):
    """Base class for every error that aborts a wake request."""


class ValidationError(WakeError):
    """Raised for a malformed link address or a missing required parameter."""

    def __init__(self, value: str, message: str = "") -> None:
        self.value = value
        super().__init__(message or f"Invalid MAC address format: {value!r}")


class ResolutionError(WakeError):
    """Raised when a wake target cannot be resolved."""


class RegistryNotFound(ResolutionError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Host registry not found: {path}")


class NameNotFound(ResolutionError):
    def __init__(self, name: str, path: Path) -> None:
        self.name = name
        self.path = path
        super().__init__(f"Host '{name}' not found in {path}")


class TransmitError(WakeError):
    """Raised when a magic packet could not be sent."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class NoTransportAvailable(TransmitError):
    def __init__(self, tried: Sequence[str]) -> None:
        self.tried = list(tried)
        super().__init__(
            "No Wake-on-LAN transport available (tried: "
            + (", ".join(self.tried) or "none")
            + ")",
            returncode=2,
        )
