# wsc/server.py
"""
FastAPI server exposing the wsc measurement engine over JSON.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from starlette.responses import JSONResponse

from wsc.analysis.config import ProbeConfig
from wsc.analysis.channels import band_of, channel_of, recommend_for_frequency, strongest_first
from wsc.analysis.link import describe_link
from wsc.analysis.types import AccessPointObservation, SignalReading
from wsc.network.external_ip import ExternalIPMonitor
from wsc.network.probe import InvalidTargetError, check_port, measure_latency
from wsc.network.runner import ProbeRunner
from wsc.parsers.snapshot import to_observation
from wsc.utils.log import get_logger
from wsc.utils.signal import describe_quality
from wsc.utils.validate import (
    AccessPointOut,
    LatencyOut,
    LinkSummaryOut,
    PortCheckRequest,
    ProbeStatusOut,
    RecommendRequest,
    RecommendationOut,
    SampleOut,
)

logger = get_logger(__name__)


def create_app(
    cfg: Optional[ProbeConfig] = None,
    runner: Optional[ProbeRunner] = None,
    ip_monitor: Optional[ExternalIPMonitor] = None,
) -> FastAPI:
    """
    Build a FastAPI instance bound to a probe configuration.
    """
    cfg = cfg or ProbeConfig.default()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.runner.shutdown()

    app = FastAPI(title="wsc", lifespan=lifespan)
    app.state.cfg = cfg
    app.state.runner = runner or ProbeRunner(cfg)
    app.state.ip_monitor = ip_monitor or ExternalIPMonitor(
        cfg.external_ip_url, cfg.external_ip_interval_s
    )

    @app.get("/api/status", response_class=JSONResponse)
    async def status() -> JSONResponse:
        return JSONResponse(status_code=200, content={"status": "ok"})

    @app.get("/api/channel", response_class=JSONResponse)
    async def get_channel(frequency: int) -> JSONResponse:
        return JSONResponse(
            status_code=200,
            content={
                "frequency": frequency,
                "channel": channel_of(frequency),
                "band": band_of(frequency).value,
            },
        )

    @app.get("/api/signal", response_model=LinkSummaryOut)
    async def get_signal(rssi: int, frequency: int, link_speed: int = 0, connected: bool = True):
        """
        Derived link metrics (colour, distance, quality) for one reading.
        """
        summary = describe_link(SignalReading(rssi, frequency, link_speed, connected))
        return LinkSummaryOut(
            connected=summary.connected,
            band=summary.band.value,
            channel=summary.channel,
            color=summary.color,
            distance_m=summary.distance_m,
            quality=summary.quality.value,
            quality_description=describe_quality(summary.quality),
            rssi=summary.rssi,
            link_speed_mbps=summary.link_speed_mbps,
        )

    @app.post("/api/recommend", response_model=RecommendationOut)
    async def recommend(body: RecommendRequest):
        observations = [to_observation(o) for o in body.observations]
        rec = recommend_for_frequency(body.frequency, observations)
        return RecommendationOut(
            band=rec.band.value,
            channel=rec.channel,
            scores=rec.scores,
            access_points=[_access_point_out(o) for o in strongest_first(observations)],
        )

    @app.post("/api/port", response_class=JSONResponse)
    def post_port(request: Request, body: PortCheckRequest) -> JSONResponse:
        timeout_s = request.app.state.cfg.port_timeout_s
        try:
            is_open = check_port(body.host, body.port, timeout_s)
        except InvalidTargetError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return JSONResponse(
            status_code=200,
            content={"host": body.host, "port": body.port, "open": is_open},
        )

    @app.get("/api/latency", response_model=LatencyOut)
    def get_latency(request: Request, host: Optional[str] = None, port: Optional[int] = None):
        c = request.app.state.cfg
        if host is None:
            host = c.latency_host
        if port is None:
            port = c.latency_port
        try:
            result = measure_latency(host, port, c.latency_attempts, c.latency_timeout_s)
        except InvalidTargetError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return LatencyOut(
            host=host,
            port=port,
            available=result.available,
            average_ms=result.average_ms,
            samples_ms=result.samples_ms,
        )

    @app.post("/api/speedtest/start", response_model=ProbeStatusOut)
    def start_speedtest(request: Request):
        request.app.state.runner.start()
        return _probe_status(request.app.state.runner, 0)

    @app.post("/api/speedtest/cancel", response_model=ProbeStatusOut)
    def cancel_speedtest(request: Request):
        request.app.state.runner.cancel()
        return _probe_status(request.app.state.runner, 0)

    @app.get("/api/speedtest", response_model=ProbeStatusOut)
    def get_speedtest(request: Request, since: int = 0):
        """
        Poll the current run; ``since`` skips samples the client already has.
        """
        return _probe_status(request.app.state.runner, since)

    @app.get("/api/external-ip", response_class=JSONResponse)
    async def get_external_ip(request: Request) -> JSONResponse:
        monitor = request.app.state.ip_monitor
        monitor.maybe_refresh()
        return JSONResponse(status_code=200, content={"ip": monitor.value})

    return app


def _probe_status(runner: ProbeRunner, since: int) -> ProbeStatusOut:
    run = runner.current
    if run is None:
        return ProbeStatusOut(active=False, phase="idle")

    samples = run.samples_since(since)
    out = ProbeStatusOut(
        active=not run.done(),
        phase=run.phase,
        average_latency_ms=run.average_latency_ms,
        samples=[SampleOut(elapsed_s=s.elapsed_s, throughput_mbps=s.throughput_mbps) for s in samples],
        next_index=max(since, 0) + len(samples),
    )
    if run.done():
        try:
            result = run.result()
        except Exception as e:
            logger.error("Probe run crashed: %s", e)
            out.status = "error"
            out.error = str(e)
        else:
            out.status = result.status.value
            out.final_throughput_mbps = result.final_throughput_mbps
            out.error = result.error
    return out


def _access_point_out(obs: AccessPointObservation) -> AccessPointOut:
    return AccessPointOut(
        ssid=obs.display_ssid,
        frequency=obs.frequency_mhz,
        channel=channel_of(obs.frequency_mhz),
        band=band_of(obs.frequency_mhz).value,
        level=obs.level_dbm,
    )
