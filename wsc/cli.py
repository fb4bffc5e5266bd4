#!/usr/bin/env python3
"""
CLI entry point for the wsc Wi-Fi signal check toolkit.

Defines the following commands:
  wsc channel FREQ
  wsc signal RSSI FREQ [--link-speed MBPS]
  wsc recommend SNAPSHOT --frequency FREQ
  wsc latency [--host HOST] [--port PORT] [--attempts N]
  wsc speedtest [--url URL] [--ceiling S] [--quick]
  wsc port HOST PORT
  wsc serve [--host HOST] [--port 8000]
  wsc version
"""

import sys
import dataclasses
from concurrent import futures
from argparse import ArgumentParser, Namespace
from importlib.metadata import PackageNotFoundError, version as _get_version

import uvicorn

from wsc.utils.log import get_logger
from wsc.analysis.config import ProbeConfig
from wsc.analysis.channels import band_of, channel_of, recommend_for_frequency, strongest_first
from wsc.analysis.link import describe_link
from wsc.analysis.types import ProbeSample, ProbeStatus, SignalReading
from wsc.network.probe import InvalidTargetError, check_port, measure_latency
from wsc.network.runner import ProbeRunner
from wsc.parsers.snapshot import load_snapshot
from wsc.server import create_app
from wsc.utils.signal import describe_quality

logger = get_logger(__name__)

EXIT_INVALID = 2


def channel(frequency: int) -> int:
    """
    Print the channel number and band for a frequency.
    """
    ch = channel_of(frequency)
    logger.info("%d MHz -> channel %d (%s)", frequency, ch, band_of(frequency).value)
    return 0


def signal(rssi: int, frequency: int, link_speed: int) -> int:
    """
    Print the derived link metrics for one reading.
    """
    s = describe_link(SignalReading(rssi, frequency, link_speed))
    if not s.connected:
        logger.warning("Reading %d dBm looks disconnected", rssi)
        return 0
    logger.info(
        "%s, channel %d, %d Mbps | %d dBm (%s: %s) | colour %s | ~%.1f m",
        s.band.value, s.channel, s.link_speed_mbps, s.rssi,
        s.quality.value, describe_quality(s.quality), s.color, s.distance_m,
    )
    return 0


def recommend(snapshot_path: str, frequency: int) -> int:
    """
    Recommend the least-congested channel for the current band.

    Parameters
    ----------
    snapshot_path
        JSON scan snapshot.
    frequency
        Frequency (MHz) the device is currently associated on.
    """
    try:
        observations = load_snapshot(snapshot_path)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error("Cannot read snapshot %s: %s", snapshot_path, e)
        return EXIT_INVALID

    for obs in strongest_first(observations):
        logger.info(
            "  %-32s channel %3d | %-7s | %4d dBm",
            obs.display_ssid, channel_of(obs.frequency_mhz),
            band_of(obs.frequency_mhz).value, obs.level_dbm,
        )
    rec = recommend_for_frequency(frequency, observations)
    if rec.channel is None:
        logger.info("Band at %d MHz is not congested; no change recommended", frequency)
        return 0
    for ch, score in rec.scores.items():
        logger.info("  channel %3d  interference %.3e", ch, score)
    logger.info("Recommended channel: %d", rec.channel)
    return 0


def latency(cfg: ProbeConfig) -> int:
    """
    Measure average TCP connect latency to the configured target.
    """
    try:
        result = measure_latency(
            cfg.latency_host, cfg.latency_port, cfg.latency_attempts, cfg.latency_timeout_s
        )
    except InvalidTargetError as e:
        logger.error("Invalid target: %s", e)
        return EXIT_INVALID
    if not result.available:
        logger.warning("Latency unavailable (%d attempts failed)", result.attempts)
        return 1
    logger.info(
        "Latency to %s:%d: %.2f ms (%d/%d ok)",
        cfg.latency_host, cfg.latency_port, result.average_ms,
        len(result.samples_ms), result.attempts,
    )
    return 0


def speedtest(cfg: ProbeConfig) -> int:
    """
    Run latency then a timed download, logging samples as they arrive.

    Ctrl-C cancels the run; samples collected so far are still reported.
    """
    def on_progress(sample: ProbeSample) -> None:
        logger.info("%6.2fs  %8.1f Mbps", sample.elapsed_s, sample.throughput_mbps)

    runner = ProbeRunner(cfg)
    run = runner.start(on_progress)
    try:
        while True:
            try:
                result = run.result(timeout=0.5)
                break
            except futures.TimeoutError:
                continue
    except KeyboardInterrupt:
        logger.warning("Cancelling speed test")
        run.cancel()
        result = run.result()
    finally:
        runner.shutdown()

    ping = f"{result.average_latency_ms:.2f} ms" if result.average_latency_ms is not None else "unavailable"
    logger.info(
        "Speed test %s: ping %s, download %.1f Mbps (%d samples)",
        result.status.value, ping, result.final_throughput_mbps, len(result.samples),
    )
    return 0 if result.status is not ProbeStatus.ERROR else 1


def port(cfg: ProbeConfig, host: str, port_number: int) -> int:
    """
    Check whether HOST:PORT accepts TCP connections.
    """
    try:
        is_open = check_port(host, port_number, cfg.port_timeout_s)
    except InvalidTargetError as e:
        logger.error("Invalid target: %s", e)
        return EXIT_INVALID
    logger.info("Port %s:%d is %s", host, port_number, "OPEN" if is_open else "CLOSED")
    return 0 if is_open else 1


def serve(cfg: ProbeConfig, host: str, port_number: int) -> int:
    """
    Spin up FastAPI+Uvicorn to serve the JSON API.
    """
    logger.info("Serve: host=%s, port=%d", host, port_number)
    app = create_app(cfg)
    uvicorn.run(app, host=host, port=port_number)
    return 0


def version() -> int:
    """
    Print the installed wsc package version.
    """
    try:
        ver = _get_version("wsc")
    except PackageNotFoundError:
        ver = "unknown"
    logger.info("wsc version %s", ver)
    return 0


def build_config(args: Namespace) -> ProbeConfig:
    """
    Start from a preset and apply any probe flags given on the command line.
    """
    cfg = ProbeConfig.quick() if getattr(args, "quick", False) else ProbeConfig.default()
    overrides = {
        "latency_host": getattr(args, "target_host", None),
        "latency_port": getattr(args, "target_port", None),
        "latency_attempts": getattr(args, "attempts", None),
        "throughput_url": getattr(args, "url", None),
        "throughput_ceiling_s": getattr(args, "ceiling", None),
    }
    return dataclasses.replace(cfg, **{k: v for k, v in overrides.items() if v is not None})


def parse_args(argv: list[str] | None = None) -> Namespace:
    """
    Parse command-line arguments and return the populated namespace.
    """
    parser = ArgumentParser(prog="wsc")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # wsc channel
    p = subparsers.add_parser("channel", help="Map a frequency to its channel.")
    p.add_argument("frequency", type=int, help="Frequency in MHz.")

    # wsc signal
    p = subparsers.add_parser("signal", help="Describe a signal reading.")
    p.add_argument("rssi", type=int, help="Signal strength in dBm.")
    p.add_argument("frequency", type=int, help="Frequency in MHz.")
    p.add_argument("--link-speed", type=int, default=0, help="Link speed in Mbps.")

    # wsc recommend
    p = subparsers.add_parser("recommend", help="Recommend the least-congested channel.")
    p.add_argument("snapshot", type=str, help="JSON scan snapshot file.")
    p.add_argument(
        "--frequency", type=int, required=True, help="Current operating frequency in MHz."
    )

    # wsc latency
    p = subparsers.add_parser("latency", help="Measure TCP connect latency.")
    p.add_argument("--host", dest="target_host", type=str, help="Target host.")
    p.add_argument("--port", dest="target_port", type=int, help="Target port.")
    p.add_argument("--attempts", type=int, help="Number of connect attempts.")

    # wsc speedtest
    p = subparsers.add_parser("speedtest", help="Run latency + download test.")
    p.add_argument("--url", type=str, help="Large-payload download URL.")
    p.add_argument("--ceiling", type=float, help="Download time budget in seconds.")
    p.add_argument("--quick", action="store_true", help="Use the quick preset.")

    # wsc port
    p = subparsers.add_parser("port", help="Check TCP port reachability.")
    p.add_argument("host", type=str, help="Host name or IP address.")
    p.add_argument("port", type=int, help="TCP port.")

    # wsc serve
    p = subparsers.add_parser("serve", help="Serve via FastAPI + Uvicorn.")
    p.add_argument("--host", type=str, default="127.0.0.1", help="Interface to bind.")
    p.add_argument("--port", type=int, default=8000, help="Port number to serve on.")

    # wsc version
    subparsers.add_parser("version", help="Show wsc version and exit.")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Entry point: dispatch to the selected subcommand.
    """
    args = parse_args(argv)
    cfg = build_config(args)
    match args.command:
        case "channel":
            return channel(args.frequency)
        case "signal":
            return signal(args.rssi, args.frequency, args.link_speed)
        case "recommend":
            return recommend(args.snapshot, args.frequency)
        case "latency":
            return latency(cfg)
        case "speedtest":
            return speedtest(cfg)
        case "port":
            return port(cfg, args.host, args.port)
        case "serve":
            return serve(cfg, args.host, args.port)
        case "version":
            return version()
        case _:
            return 1


if __name__ == "__main__":
    sys.exit(main())
