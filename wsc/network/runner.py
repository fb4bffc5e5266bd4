"""
Background probe runs: latency then throughput, cancellable from outside.

Each ``ProbeRun`` owns its cancel flag, its sample list and its result, so
concurrent readers (a chart polling ``samples_since``) never share state with
another run.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

import requests

from wsc.analysis.config import ProbeConfig
from wsc.analysis.types import ProbeResult, ProbeSample, ProbeStatus
from wsc.network.probe import ProgressSink, measure_latency, measure_throughput
from wsc.utils.log import get_logger

logger = get_logger(__name__)


class ProbeRun:
    """
    One user-initiated measurement.
    """
    def __init__(
        self,
        cfg: ProbeConfig,
        on_progress: Optional[ProgressSink] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.cfg = cfg
        self.on_progress = on_progress
        self.session_factory = session_factory
        self.cancel_event = threading.Event()
        self.phase = "pending"
        self.average_latency_ms: Optional[float] = None
        self._samples: List[ProbeSample] = []
        self._future: Optional[Future] = None

    def execute(self) -> ProbeResult:
        cfg = self.cfg
        self.phase = "latency"
        latency = measure_latency(
            cfg.latency_host,
            cfg.latency_port,
            attempts=cfg.latency_attempts,
            timeout_s=cfg.latency_timeout_s,
            cancel=self.cancel_event,
        )
        self.average_latency_ms = latency.average_ms
        if latency.status is ProbeStatus.CANCELLED:
            self.phase = "done"
            return ProbeResult(ProbeStatus.CANCELLED, latency.average_ms, 0.0, [])

        self.phase = "throughput"
        with self.session_factory() as session:
            throughput = measure_throughput(
                cfg.throughput_url,
                on_progress=self._record,
                cancel=self.cancel_event,
                ceiling_s=cfg.throughput_ceiling_s,
                sample_interval_s=cfg.sample_interval_s,
                chunk_size=cfg.chunk_size,
                connect_timeout_s=cfg.connect_timeout_s,
                read_timeout_s=cfg.read_timeout_s,
                session=session,
            )
        self.phase = "done"
        return ProbeResult(
            status=throughput.status,
            average_latency_ms=latency.average_ms,
            final_throughput_mbps=throughput.final_mbps,
            samples=list(throughput.samples),
            error=throughput.error,
        )

    def _record(self, sample: ProbeSample) -> None:
        self._samples.append(sample)
        if self.on_progress is not None:
            self.on_progress(sample)

    def cancel(self) -> None:
        self.cancel_event.set()

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def result(self, timeout: Optional[float] = None) -> ProbeResult:
        if self._future is None:
            raise RuntimeError("probe run was never started")
        return self._future.result(timeout)

    def samples(self) -> List[ProbeSample]:
        return list(self._samples)

    def samples_since(self, index: int) -> List[ProbeSample]:
        """Samples emitted after the first ``index``, for incremental charts."""
        return self._samples[max(index, 0):]


class ProbeRunner:
    """
    Runs at most one ProbeRun at a time on a single worker thread.
    """
    def __init__(
        self,
        cfg: ProbeConfig,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.cfg = cfg
        self.session_factory = session_factory
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="wsc-probe")
        self._lock = threading.Lock()
        self._current: Optional[ProbeRun] = None

    @property
    def current(self) -> Optional[ProbeRun]:
        return self._current

    def start(self, on_progress: Optional[ProgressSink] = None) -> ProbeRun:
        """
        Start a run, or return the active one if it has not finished yet.
        """
        with self._lock:
            if self._current is not None and not self._current.done():
                logger.info("Probe run already active; not starting another")
                return self._current
            run = ProbeRun(self.cfg, on_progress, self.session_factory)
            run._future = self._executor.submit(run.execute)
            self._current = run
            logger.info("Probe run started")
            return run

    def cancel(self) -> bool:
        run = self._current
        if run is None or run.done():
            return False
        logger.info("Cancelling probe run")
        run.cancel()
        return True

    def shutdown(self) -> None:
        self.cancel()
        self._executor.shutdown(wait=True)
