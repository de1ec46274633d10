"""YAML settings loader and validator."""

import ipaddress
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from vmwake.core.events import LOG_FILENAME
from vmwake.core.wol import DEFAULT_TRANSPORTS

# Environment variables shared with the vmstation shell tooling
_ENV_OVERRIDES = {
    "VMSTATION_CONFIG": "registry",
    "VMSTATION_LOG_DIR": "log_dir",
    "BROADCAST_ADDR": "broadcast",
    "WOL_PORT": "port",
    "PACKET_COUNT": "packet_count",
}

_POSITIVE_INTS = ("packet_count", "wait_timeout", "wait_interval", "probe_timeout", "analysis_days")


class ConfigError(Exception):
    """Raised for invalid or missing configuration."""


@dataclass
class Settings:
    """Runtime settings for wake, status and analytics commands."""

    registry: Path = Path("/etc/vmstation/hosts.conf")
    log_dir: Path = Path("/var/log/vmstation")
    broadcast: str = "255.255.255.255"
    port: int = 9
    packet_count: int = 3
    packet_delay: float = 0.5
    interface: Optional[str] = None
    wait_timeout: int = 300
    wait_interval: int = 10
    probe_timeout: int = 5
    transports: list[str] = field(default_factory=lambda: list(DEFAULT_TRANSPORTS))
    analysis_days: int = 7

    @property
    def event_log_path(self) -> Path:
        return self.log_dir / LOG_FILENAME


def load_config(path: Path) -> Optional[dict[str, Any]]:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Parsed configuration dictionary, or None if file is empty

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    with open(path) as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def _merged(raw: Mapping[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = dict(raw.get("settings") or {})
    for env_name, key in _ENV_OVERRIDES.items():
        if environ.get(env_name):
            values[key] = environ[env_name]
    return values


def validate_config(config: Any, environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """
    Validate a loaded configuration dictionary (with environment overrides applied).

    Returns:
        List of validation error messages (empty list = valid)
    """
    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]
    settings = config.get("settings") or {}
    if not isinstance(settings, dict):
        return ["'settings' must be a mapping"]

    errors: list[str] = []
    values = _merged(config, os.environ if environ is None else environ)

    for key in _POSITIVE_INTS:
        if key in values:
            try:
                if int(values[key]) < 1:
                    errors.append(f"settings.{key}: must be a positive integer")
            except (TypeError, ValueError):
                errors.append(f"settings.{key}: expected an integer, got {values[key]!r}")

    if "port" in values:
        try:
            port = int(values["port"])
            if not 0 < port < 65536:
                errors.append(f"settings.port: {port} is out of range (1-65535)")
        except (TypeError, ValueError):
            errors.append(f"settings.port: expected an integer, got {values['port']!r}")

    if "packet_delay" in values:
        try:
            if float(values["packet_delay"]) < 0:
                errors.append("settings.packet_delay: must not be negative")
        except (TypeError, ValueError):
            errors.append(f"settings.packet_delay: expected a number, got {values['packet_delay']!r}")

    if "broadcast" in values:
        try:
            ipaddress.IPv4Address(str(values["broadcast"]))
        except ValueError:
            errors.append(f"settings.broadcast: invalid IPv4 address '{values['broadcast']}'")

    transports = values.get("transports")
    if transports is not None:
        if not isinstance(transports, list) or not transports:
            errors.append("settings.transports: must be a non-empty list")
        else:
            for name in transports:
                if name not in DEFAULT_TRANSPORTS:
                    errors.append(
                        f"settings.transports: unknown transport '{name}' "
                        f"(expected one of {', '.join(DEFAULT_TRANSPORTS)})"
                    )

    return errors


def settings_from_config(
    config: Optional[Mapping[str, Any]], environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """
    Build Settings from a validated config dict, applying environment overrides.

    Args:
        config: Parsed config dictionary, or None for defaults only
        environ: Environment mapping (default: ``os.environ``)
    """
    values = _merged(config or {}, os.environ if environ is None else environ)
    defaults = Settings()
    interface = values.get("interface", defaults.interface)
    return Settings(
        registry=Path(values.get("registry", defaults.registry)).expanduser(),
        log_dir=Path(values.get("log_dir", defaults.log_dir)).expanduser(),
        broadcast=str(values.get("broadcast", defaults.broadcast)),
        port=int(values.get("port", defaults.port)),
        packet_count=int(values.get("packet_count", defaults.packet_count)),
        packet_delay=float(values.get("packet_delay", defaults.packet_delay)),
        interface=str(interface) if interface else None,
        wait_timeout=int(values.get("wait_timeout", defaults.wait_timeout)),
        wait_interval=int(values.get("wait_interval", defaults.wait_interval)),
        probe_timeout=int(values.get("probe_timeout", defaults.probe_timeout)),
        transports=list(values.get("transports", defaults.transports)),
        analysis_days=int(values.get("analysis_days", defaults.analysis_days)),
    )


def load_settings(path: Path, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load, validate and build Settings.  A missing or empty file means defaults.

    Raises:
        ConfigError: If the file is unparsable or fails validation
    """
    raw: Optional[dict[str, Any]] = None
    if path.exists():
        try:
            raw = load_config(path)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    errors = validate_config(raw or {}, environ)
    if errors:
        raise ConfigError("; ".join(errors))
    return settings_from_config(raw, environ)
