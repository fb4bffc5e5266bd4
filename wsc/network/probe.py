"""
Active network probes: TCP connect latency, timed HTTP download throughput,
and TCP port reachability.

Connectivity failures (timeouts, refusals, resets, DNS errors) never escape
these functions; they are reported through the returned result instead.
"""

from __future__ import annotations

import queue
import socket
import threading
import time
from typing import Callable, Optional

import requests

from wsc.analysis.types import LatencyResult, ProbeSample, ProbeStatus, ThroughputResult
from wsc.utils.log import get_logger

logger = get_logger(__name__)

ProgressSink = Callable[[ProbeSample], None]

# download reader hand-off
_END = object()
_QUEUE_DEPTH = 8
_MIN_WAIT_S = 0.1
_READER_GRACE_S = 0.5


class InvalidTargetError(ValueError):
    """Raised for a host/port that must not be probed at all."""


def validate_target(host: str, port: int) -> None:
    if not isinstance(host, str) or not host.strip():
        raise InvalidTargetError(f"invalid host: {host!r}")
    # bool is an int subclass; True is not a port
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidTargetError(f"port must be an integer, got {port!r}")
    if not 1 <= port <= 65535:
        raise InvalidTargetError(f"port out of range: {port}")


def _connect_once(host: str, port: int, timeout_s: float) -> None:
    with socket.create_connection((host, port), timeout=timeout_s):
        pass


def measure_latency(
    host: str,
    port: int,
    attempts: int = 3,
    timeout_s: float = 2.0,
    cancel: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.perf_counter,
) -> LatencyResult:
    """
    Average TCP connect time to ``host:port`` over several attempts.

    Parameters
    ----------
    host, port
        Target endpoint.
    attempts
        Number of independent connect-then-close attempts.
    timeout_s
        Per-attempt connect timeout.
    cancel
        Checked before every attempt; when set the run stops as CANCELLED.
    clock
        Monotonic clock in seconds.

    Returns
    -------
    LatencyResult
        ``average_ms`` over successful attempts, or None if none succeeded.
    """
    validate_target(host, port)
    samples: list[float] = []
    status = ProbeStatus.COMPLETED
    tried = 0

    for i in range(attempts):
        if cancel is not None and cancel.is_set():
            status = ProbeStatus.CANCELLED
            break
        tried += 1
        start = clock()
        try:
            _connect_once(host, port, timeout_s)
        except (OSError, UnicodeError) as e:
            logger.debug("Latency attempt %d to %s:%d failed: %s", i + 1, host, port, e)
            continue
        samples.append((clock() - start) * 1000.0)

    average = sum(samples) / len(samples) if samples else None
    if average is None and status is ProbeStatus.COMPLETED:
        logger.warning("Latency unavailable: %d attempts to %s:%d failed", tried, host, port)
    return LatencyResult(status=status, average_ms=average, samples_ms=samples, attempts=tried)


def _offer(out: queue.Queue, item, stop: threading.Event) -> bool:
    while not stop.is_set():
        try:
            out.put(item, timeout=0.1)
            return True
        except queue.Full:
            continue
    return False


def _pump(response, chunk_size: int, out: queue.Queue, stop: threading.Event) -> None:
    """
    Reader thread: move chunks from ``response`` into ``out``.

    A read error is handed to the consumer, unless the consumer has already
    stopped listening. The response is closed here, once the last read returns.
    """
    try:
        for chunk in response.iter_content(chunk_size=chunk_size):
            if not _offer(out, chunk, stop):
                return
        _offer(out, _END, stop)
    except Exception as e:
        if not stop.is_set():
            _offer(out, e, stop)
    finally:
        response.close()


def measure_throughput(
    url: str,
    on_progress: Optional[ProgressSink] = None,
    cancel: Optional[threading.Event] = None,
    *,
    ceiling_s: float = 15.0,
    sample_interval_s: float = 0.3,
    chunk_size: int = 32 * 1024,
    connect_timeout_s: float = 5.0,
    read_timeout_s: float = 10.0,
    session: Optional[requests.Session] = None,
    clock: Callable[[], float] = time.monotonic,
) -> ThroughputResult:
    """
    Stream a large download and sample the running average rate.

    Chunks are read on a helper thread, so the time budget and ``cancel`` are
    honoured even while a read is stalled on a slow link. The loop stops at
    the end of the payload, once ``ceiling_s`` has elapsed, or when ``cancel``
    is set. Samples already emitted are always returned.

    Parameters
    ----------
    url
        Endpoint serving a large payload.
    on_progress
        Called with each new ProbeSample, at most once per
        ``sample_interval_s``. Also called while no data arrives, so a stall
        shows up as a falling rate.
    cancel
        Cooperative cancellation flag, checked at least every
        ``sample_interval_s``.
    session
        Optional requests session (a new one is created and closed otherwise).

    Returns
    -------
    ThroughputResult
        Samples plus the final average rate in decimal Mbps.
    """
    samples: list[ProbeSample] = []
    total_bytes = 0
    elapsed = 0.0
    status = ProbeStatus.COMPLETED
    error = None

    if cancel is not None and cancel.is_set():
        return ThroughputResult(status=ProbeStatus.CANCELLED)

    own_session = session is None
    if own_session:
        session = requests.Session()

    start = clock()
    last_emit = start
    stop = threading.Event()
    try:
        response = session.get(url, stream=True, timeout=(connect_timeout_s, read_timeout_s))
        try:
            response.raise_for_status()
        except requests.HTTPError:
            response.close()
            raise

        chunks: queue.Queue = queue.Queue(maxsize=_QUEUE_DEPTH)
        reader = threading.Thread(
            target=_pump, args=(response, chunk_size, chunks, stop), daemon=True
        )
        reader.start()
        try:
            while True:
                if cancel is not None and cancel.is_set():
                    status = ProbeStatus.CANCELLED
                    break
                wait = min(sample_interval_s, max(ceiling_s - elapsed, _MIN_WAIT_S))
                try:
                    item = chunks.get(timeout=wait)
                except queue.Empty:
                    item = None
                if item is _END:
                    break
                if isinstance(item, Exception):
                    raise item
                if item is not None:
                    total_bytes += len(item)
                now = clock()
                elapsed = now - start
                if elapsed > ceiling_s:
                    logger.debug("Throughput ceiling of %.1fs reached", ceiling_s)
                    break
                if now - last_emit >= sample_interval_s and elapsed > 0:
                    sample = ProbeSample(elapsed, _mbps(total_bytes, elapsed))
                    samples.append(sample)
                    last_emit = now
                    if on_progress is not None:
                        on_progress(sample)
        finally:
            stop.set()
            reader.join(timeout=_READER_GRACE_S)
            if reader.is_alive():
                logger.debug("Download reader still blocked; it closes the response on return")
    except requests.RequestException as e:
        logger.warning("Throughput test against %s failed: %s", url, e)
        status = ProbeStatus.ERROR
        error = str(e)
    finally:
        if own_session:
            session.close()

    final = _mbps(total_bytes, elapsed) if elapsed > 0 else 0.0
    logger.info(
        "Throughput %s: %d bytes in %.2fs (%.1f Mbps, %d samples)",
        status.value, total_bytes, elapsed, final, len(samples),
    )
    return ThroughputResult(
        status=status,
        final_mbps=final,
        samples=samples,
        total_bytes=total_bytes,
        elapsed_s=elapsed,
        error=error,
    )


def _mbps(total_bytes: int, elapsed_s: float) -> float:
    return (total_bytes * 8) / 1_000_000 / elapsed_s


def check_port(host: str, port: int, timeout_s: float = 4.0) -> bool:
    """
    Return True if a TCP connection to ``host:port`` can be established.

    Raises
    ------
    InvalidTargetError
        For an empty host or a port outside 1..65535, before any network I/O.
    """
    validate_target(host, port)
    try:
        _connect_once(host, port, timeout_s)
    except (OSError, UnicodeError) as e:
        logger.info("Port %s:%d closed or unreachable: %s", host, port, e)
        return False
    return True
