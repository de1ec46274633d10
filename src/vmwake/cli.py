"""Command-line interface for vmwake."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import click

from vmwake import __version__

if TYPE_CHECKING:
    from vmwake.config.loader import Settings

DEFAULT_CONFIG = Path.home() / ".config" / "vmwake" / "config.yaml"

# Exit codes: 0 success, 1 operation failed, 2 invalid input / missing prerequisite
EXIT_FAILED = 1
EXIT_INVALID = 2


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_settings(ctx: click.Context) -> "Settings":
    from vmwake.config.loader import ConfigError, load_settings

    try:
        return load_settings(Path(ctx.obj["config"]))
    except ConfigError as exc:
        click.echo("Config validation errors:", err=True)
        for e in str(exc).split("; "):
            click.echo(f"  • {e}", err=True)
        sys.exit(EXIT_INVALID)


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="vmwake")
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG),
    envvar="VMWAKE_CONFIG",
    show_default=True,
    help="Path to vmwake config.yaml (optional)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str, verbose: bool) -> None:
    """vmwake — wake sleeping cluster nodes and analyse their sleep/wake cycles."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── wake command ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("target")
@click.option("--broadcast", "-b", help="Broadcast address [default: from config]")
@click.option("--port", "-p", type=int, help="WoL UDP port [default: from config]")
@click.option("--wait", "-w", is_flag=True, help="Wait for the host to come online")
@click.option(
    "--timeout", "-t", type=click.IntRange(min=0), help="Seconds to wait for the host"
)
@click.option(
    "--interval", type=click.IntRange(min=1), help="Seconds between reachability probes"
)
@click.option(
    "--count", "-n", type=click.IntRange(min=1), default=1, show_default=True, help="Packets to send"
)
@click.option("--registry", "-r", type=click.Path(), help="Host registry file")
@click.pass_context
def wake(
    ctx: click.Context,
    target: str,
    broadcast: Optional[str],
    port: Optional[int],
    wait: bool,
    timeout: Optional[int],
    interval: Optional[int],
    count: int,
    registry: Optional[str],
) -> None:
    """Wake a node by MAC address or registry host name."""
    settings = _load_settings(ctx)

    from vmwake.core.errors import ResolutionError, ValidationError
    from vmwake.core.events import EventLog, Outcome
    from vmwake.core.wake import WakeRequest, run_wake
    from vmwake.core.wol import build_senders

    request = WakeRequest(
        target=target,
        broadcast=broadcast or settings.broadcast,
        port=port if port is not None else settings.port,
        wait=wait,
        timeout=timeout if timeout is not None else settings.wait_timeout,
        interval=interval if interval is not None else settings.wait_interval,
        probe_timeout=settings.probe_timeout,
        count=count,
        delay=settings.packet_delay,
    )
    registry_path = Path(registry) if registry else settings.registry

    try:
        result = run_wake(
            request,
            registry_path=registry_path,
            event_log=EventLog(settings.event_log_path),
            senders=build_senders(settings.transports, settings.interface),
        )
    except (ValidationError, ResolutionError) as exc:
        click.echo(f"✗  {exc}", err=True)
        sys.exit(EXIT_INVALID)

    t = result.target
    if result.outcome is Outcome.WOL_FAILED:
        click.echo(
            f"✗  Failed to send Wake-on-LAN packet to {t.link_address}: {result.error}", err=True
        )
        sys.exit(result.exit_code)

    click.echo(
        f"WOL packet sent to {t.link_address}"
        + (f" ({t.network_address})" if t.network_address else "")
        + f" via {result.transport}"
    )
    if result.wait_skipped:
        click.echo("⚠  No IP address known for this host; not waiting for it to come online")
    if result.success:
        if wait and not result.wait_skipped:
            click.echo(f"✓  Host {t.network_address} is online")
        return
    click.echo(f"✗  {result.error}", err=True)
    sys.exit(result.exit_code)


# ── send command ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("mac_address")
@click.option("--broadcast", "-b", help="Broadcast address [default: from config]")
@click.option("--port", "-p", type=int, help="WoL UDP port [default: from config]")
@click.option(
    "--count", "-n", type=click.IntRange(min=1), help="Number of packets [default: from config]"
)
@click.option("--interface", "-i", help="Network interface (enables etherwake)")
@click.pass_context
def send(
    ctx: click.Context,
    mac_address: str,
    broadcast: Optional[str],
    port: Optional[int],
    count: Optional[int],
    interface: Optional[str],
) -> None:
    """Send a burst of magic packets to MAC_ADDRESS without recording events."""
    settings = _load_settings(ctx)

    from vmwake.core.errors import NoTransportAvailable, ValidationError
    from vmwake.core.wol import build_senders, send_burst

    n = count if count is not None else settings.packet_count
    try:
        result = send_burst(
            mac_address,
            broadcast=broadcast or settings.broadcast,
            port=port if port is not None else settings.port,
            count=n,
            delay=settings.packet_delay,
            senders=build_senders(settings.transports, interface or settings.interface),
        )
    except ValidationError as exc:
        click.echo(f"✗  {exc}", err=True)
        click.echo("   Expected format: XX:XX:XX:XX:XX:XX", err=True)
        sys.exit(EXIT_INVALID)
    except NoTransportAvailable as exc:
        click.echo(f"✗  {exc}", err=True)
        sys.exit(EXIT_INVALID)

    if not result.success:
        click.echo(f"✗  Failed to send any magic packets to {result.mac}", err=True)
        sys.exit(EXIT_FAILED)
    click.echo(f"✓  Sent {result.sent} magic packet(s) to {result.mac} via {result.transport}")
    if result.failed:
        click.echo(f"⚠  {result.failed} packet(s) failed")


# ── analyze command ──────────────────────────────────────────────────────────


@main.command()
@click.option("--days", "-d", type=click.IntRange(min=1), help="Days to analyse [default: 7]")
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def analyze(ctx: click.Context, days: Optional[int], as_json: bool) -> None:
    """Analyse sleep/wake cycle patterns from the wake event log."""
    settings = _load_settings(ctx)

    from vmwake.analytics.engine import NoData, analyze_log
    from vmwake.analytics.render import (
        render_json,
        render_no_data_json,
        render_no_data_text,
        render_text,
    )
    from vmwake.core.events import EventLog

    window = days or settings.analysis_days
    log_path = settings.event_log_path
    result = analyze_log(EventLog(log_path), window)

    if isinstance(result, NoData):
        if as_json:
            click.echo(render_no_data_json(result, str(log_path)))
        else:
            click.echo(render_no_data_text(result, str(log_path)))
        return

    click.echo(render_json(result) if as_json else render_text(result, str(log_path)))


# ── status command ───────────────────────────────────────────────────────────


@main.command()
@click.argument("hosts", nargs=-1)
@click.option("--all", "-a", "check_all", is_flag=True, help="Check every host in the registry")
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
@click.option("--registry", "-r", type=click.Path(), help="Host registry file")
@click.pass_context
def status(
    ctx: click.Context,
    hosts: tuple[str, ...],
    check_all: bool,
    as_json: bool,
    registry: Optional[str],
) -> None:
    """Check power state and reachability of hosts (names or IP addresses)."""
    settings = _load_settings(ctx)

    from vmwake.core.errors import RegistryNotFound
    from vmwake.core.probe import check_host
    from vmwake.core.registry import load_registry

    registry_path = Path(registry) if registry else settings.registry
    addresses: list[str] = []
    known: dict[str, str] = {}
    if check_all or hosts:
        try:
            entries = load_registry(registry_path)
        except RegistryNotFound as exc:
            if check_all:
                click.echo(f"✗  {exc}", err=True)
                sys.exit(EXIT_INVALID)
            entries = []
        known = {e.name: e.network_address for e in entries if e.network_address}
        if check_all:
            addresses.extend(known.values())
    addresses.extend(known.get(h, h) for h in hosts)

    if not addresses:
        click.echo("No hosts specified. Use --all or pass host names/IPs.", err=True)
        sys.exit(EXIT_INVALID)

    results = [check_host(a) for a in addresses]
    online = sum(1 for r in results if r.online)
    offline = len(results) - online

    if as_json:
        payload = {
            "timestamp": datetime.now().astimezone().isoformat(timespec="seconds"),
            "hosts": {
                r.host: {
                    "status": r.status,
                    "latency": f"{r.latency_ms} ms" if r.latency_ms is not None else "N/A",
                    "ssh": r.ssh,
                }
                for r in results
            },
            "summary": {"online": online, "offline": offline, "total": len(results)},
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(f"{'HOST':<30} {'STATUS':<10} {'LATENCY':<15} {'SSH'}")
        click.echo("─" * 66)
        for r in results:
            latency = f"{r.latency_ms} ms" if r.latency_ms is not None else "N/A"
            click.echo(f"{r.host:<30} {r.status:<10} {latency:<15} {r.ssh}")
        click.echo(f"\nOnline: {online}  Offline: {offline}  Total: {len(results)}")

    if offline:
        sys.exit(EXIT_FAILED)


# ── hosts command ────────────────────────────────────────────────────────────


@main.command("hosts")
@click.option("--registry", "-r", type=click.Path(), help="Host registry file")
@click.pass_context
def hosts_list(ctx: click.Context, registry: Optional[str]) -> None:
    """List hosts in the registry."""
    settings = _load_settings(ctx)

    from vmwake.core.errors import RegistryNotFound
    from vmwake.core.registry import load_registry

    try:
        entries = load_registry(Path(registry) if registry else settings.registry)
    except RegistryNotFound as exc:
        click.echo(f"✗  {exc}", err=True)
        sys.exit(EXIT_INVALID)
    if not entries:
        click.echo("No hosts configured.")
        return
    click.echo(f"{'NAME':<24} {'MAC':<20} {'IP'}")
    click.echo("─" * 60)
    for e in entries:
        click.echo(f"{e.name:<24} {e.link_address:<20} {e.network_address or '-'}")


# ── collect command ──────────────────────────────────────────────────────────


@main.command()
@click.option("--output", "-o", default="./wake-logs", show_default=True, help="Output directory")
@click.option("--days", "-d", type=click.IntRange(min=1), help="Days of logs [default: 7]")
@click.option("--analyze", "do_analyze", is_flag=True, help="Also write and print an analysis")
@click.pass_context
def collect(ctx: click.Context, output: str, days: Optional[int], do_analyze: bool) -> None:
    """Collect recent wake events into a timestamped directory."""
    settings = _load_settings(ctx)

    from vmwake.analytics.collect import collect_wake_logs
    from vmwake.core.events import EventLog

    dest = collect_wake_logs(
        EventLog(settings.event_log_path),
        Path(output),
        days=days or settings.analysis_days,
        analyze=do_analyze,
    )
    if do_analyze:
        click.echo((dest / "analysis.txt").read_text(encoding="utf-8").rstrip())
    click.echo(f"Logs saved to: {dest}")


# ── serve command ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind host")
@click.option("--port", default=8000, show_default=True, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Start the vmwake JSON API server."""
    import uvicorn

    from vmwake.api.routes import create_app

    app = create_app(settings=_load_settings(ctx))
    click.echo(f"Starting vmwake API at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
