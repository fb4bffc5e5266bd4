import threading

from wsc.analysis.config import ProbeConfig
from wsc.analysis.types import ProbeStatus
from wsc.network.runner import ProbeRunner


def make_cfg(listener, **kw):
    host, port = listener
    return ProbeConfig(
        latency_host=host,
        latency_port=port,
        latency_attempts=1,
        latency_timeout_s=1.0,
        throughput_url="http://speed.test/payload",
        **kw,
    )


def test_run_completes_with_latency(tcp_listener, fake_http):
    FakeResponse, FakeSession = fake_http
    response = FakeResponse([b"x" * 1024] * 3)
    session = FakeSession(response)
    runner = ProbeRunner(make_cfg(tcp_listener), session_factory=lambda: session)
    try:
        run = runner.start()
        result = run.result(timeout=10)
    finally:
        runner.shutdown()

    assert result.status is ProbeStatus.COMPLETED
    assert result.average_latency_ms is not None
    assert result.final_throughput_mbps >= 0
    assert response.closed
    assert session.closed
    assert run.done()
    assert run.phase == "done"


def test_start_while_active_returns_same_run_and_cancel_keeps_samples(tcp_listener, fake_http):
    FakeResponse, FakeSession = fake_http
    gate = threading.Event()

    def gated_chunks():
        while True:
            gate.wait(5)
            yield b"x" * 1024

    response = FakeResponse(gated_chunks())
    runner = ProbeRunner(make_cfg(tcp_listener), session_factory=lambda: FakeSession(response))
    try:
        first = runner.start()
        second = runner.start()
        assert second is first

        assert runner.cancel() is True
        gate.set()
        result = first.result(timeout=10)
    finally:
        runner.shutdown()

    assert result.status is ProbeStatus.CANCELLED
    assert result.samples == first.samples()
    assert runner.cancel() is False


def test_new_run_after_completion_starts_fresh(tcp_listener, fake_http):
    FakeResponse, FakeSession = fake_http
    runner = ProbeRunner(
        make_cfg(tcp_listener),
        session_factory=lambda: FakeSession(FakeResponse([b"x"])),
    )
    try:
        first = runner.start()
        first.result(timeout=10)
        second = runner.start()
        second.result(timeout=10)
    finally:
        runner.shutdown()

    assert second is not first
    assert runner.current is second


def test_progress_sink_and_samples_since(tcp_listener):
    # drive _record directly: the sink sees every sample in order
    from wsc.analysis.types import ProbeSample
    from wsc.network.runner import ProbeRun

    seen = []
    run = ProbeRun(make_cfg(tcp_listener), on_progress=seen.append)
    for i in range(1, 4):
        run._record(ProbeSample(i * 0.5, float(i)))

    assert seen == run.samples()
    assert [s.elapsed_s for s in run.samples_since(1)] == [1.0, 1.5]
    assert run.samples_since(3) == []
    assert not run.done()
