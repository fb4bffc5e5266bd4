import requests

import wsc.network.external_ip as external_ip
from wsc.network.external_ip import ERROR, LOADING, ExternalIPMonitor


class FakeIPResponse:
    def __init__(self, text):
        self.text = text

    def raise_for_status(self):
        pass


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_lookup_updates_value(monkeypatch):
    monkeypatch.setattr(external_ip.requests, "get", lambda url, timeout: FakeIPResponse(" 203.0.113.7\n"))
    monitor = ExternalIPMonitor(clock=Clock())
    assert monitor.value == LOADING
    monitor.maybe_refresh().join(5)
    assert monitor.value == "203.0.113.7"


def test_lookups_are_throttled(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeIPResponse("198.51.100.1")

    monkeypatch.setattr(external_ip.requests, "get", fake_get)
    clock = Clock()
    monitor = ExternalIPMonitor("http://ip.test", interval_s=10.0, clock=clock)

    monitor.maybe_refresh().join(5)
    clock.now = 9.9
    assert monitor.maybe_refresh() is None
    clock.now = 10.0
    monitor.maybe_refresh().join(5)
    assert calls == ["http://ip.test", "http://ip.test"]


def test_failure_keeps_previous_value(monkeypatch):
    clock = Clock()
    monitor = ExternalIPMonitor(interval_s=10.0, clock=clock)

    def failing_get(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(external_ip.requests, "get", failing_get)
    monitor.maybe_refresh().join(5)
    assert monitor.value == ERROR

    monkeypatch.setattr(external_ip.requests, "get", lambda url, timeout: FakeIPResponse("192.0.2.1"))
    clock.now = 10.0
    monitor.maybe_refresh().join(5)
    assert monitor.value == "192.0.2.1"

    monkeypatch.setattr(external_ip.requests, "get", failing_get)
    clock.now = 20.0
    monitor.maybe_refresh().join(5)
    assert monitor.value == "192.0.2.1"
