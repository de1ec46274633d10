"""FastAPI routes for the vmwake JSON API."""

import logging
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Query
from fastapi.responses import JSONResponse

from vmwake import __version__
from vmwake.api.models import (
    HostResponse,
    HostsResponse,
    HostStatusResponse,
    WakeRequestBody,
    WakeResultResponse,
)
from vmwake.config.loader import Settings
from vmwake.core.errors import NameNotFound, RegistryNotFound, ValidationError
from vmwake.core.wake import WakeResult

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Runtime settings. If None, built-in defaults are used.

    Returns:
        FastAPI application instance
    """
    from vmwake.analytics.engine import NoData, analyze_log
    from vmwake.analytics.render import no_data_to_dict, report_to_dict
    from vmwake.core.events import EventLog
    from vmwake.core.probe import check_host
    from vmwake.core.registry import is_mac, load_registry, resolve
    from vmwake.core.wake import WakeRequest, run_wake
    from vmwake.core.wol import build_senders, normalize_mac

    app = FastAPI(
        title="vmwake",
        version=__version__,
        description="Wake-on-LAN orchestration and sleep/wake analytics",
    )
    app.state.settings = settings or Settings()
    app.state.last_results = {}

    def _result_to_response(r: WakeResult) -> WakeResultResponse:
        return WakeResultResponse(
            target=r.target.name,
            mac_address=r.target.link_address,
            success=r.success,
            outcome=r.outcome.value if r.outcome else None,
            transport=r.transport,
            started_at=r.started_at,
            finished_at=r.finished_at,
            duration_seconds=r.duration_seconds,
            wait_skipped=r.wait_skipped,
            error=r.error,
        )

    @app.get("/hosts", response_model=None)
    async def get_hosts() -> JSONResponse:
        s: Settings = app.state.settings
        try:
            entries = load_registry(s.registry)
        except RegistryNotFound as exc:
            return JSONResponse({"error": str(exc)}, status_code=503)
        body = HostsResponse(
            hosts=[
                HostResponse(name=e.name, mac_address=e.link_address, ip_address=e.network_address)
                for e in entries
            ]
        )
        return JSONResponse(body.model_dump())

    # plain def: the ping and port check block, so FastAPI runs this in its threadpool
    @app.get("/status/{name}", response_model=None)
    def get_host_status(name: str) -> JSONResponse:
        s: Settings = app.state.settings
        try:
            target = resolve(name, s.registry)
        except RegistryNotFound as exc:
            return JSONResponse({"error": str(exc)}, status_code=503)
        except NameNotFound as exc:
            return JSONResponse({"error": str(exc)}, status_code=404)
        if not target.network_address:
            return JSONResponse(
                {"error": f"No IP address known for '{name}'"}, status_code=422
            )
        st = check_host(target.network_address, timeout=s.probe_timeout)
        body = HostStatusResponse(
            name=target.name,
            host=st.host,
            status=st.status,
            latency_ms=st.latency_ms,
            ssh=st.ssh,
        )
        return JSONResponse(body.model_dump())

    @app.post("/wake")
    async def post_wake(req: WakeRequestBody, background_tasks: BackgroundTasks) -> JSONResponse:
        s: Settings = app.state.settings
        try:
            target = resolve(req.target, s.registry)
            mac = normalize_mac(target.link_address)
        except RegistryNotFound as exc:
            return JSONResponse({"error": str(exc)}, status_code=503)
        except NameNotFound as exc:
            return JSONResponse({"error": str(exc)}, status_code=404)
        except ValidationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=422)

        request = WakeRequest(
            target=req.target,
            broadcast=s.broadcast,
            port=s.port,
            wait=req.wait,
            timeout=req.timeout or s.wait_timeout,
            interval=s.wait_interval,
            probe_timeout=s.probe_timeout,
            delay=s.packet_delay,
        )

        def _run() -> None:
            result = run_wake(
                request,
                registry_path=s.registry,
                event_log=EventLog(s.event_log_path),
                senders=build_senders(s.transports, s.interface),
            )
            app.state.last_results[target.name] = result

        background_tasks.add_task(_run)
        return JSONResponse({"status": "wake_started", "target": target.name, "mac": mac})

    @app.get("/results/{target}", response_model=None)
    async def get_result(target: str) -> JSONResponse:
        key = target.upper() if is_mac(target) else target
        result = app.state.last_results.get(key)
        if not result:
            return JSONResponse({"error": f"No result found for '{target}'"}, status_code=404)
        return JSONResponse(_result_to_response(result).model_dump(mode="json"))

    @app.get("/analytics", response_model=None)
    def get_analytics(days: Optional[int] = Query(default=None, ge=1)) -> JSONResponse:
        s: Settings = app.state.settings
        window = days or s.analysis_days
        result = analyze_log(EventLog(s.event_log_path), window)
        if isinstance(result, NoData):
            return JSONResponse(no_data_to_dict(result, str(s.event_log_path)))
        return JSONResponse(report_to_dict(result))

    return app
