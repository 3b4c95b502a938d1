"""Shared fixtures and fakes for idlestop tests."""

from __future__ import annotations

import os

# keep imports of idlestop from picking up a real config or writing a log file
os.environ["IDLESTOP_LOG"] = ""
os.environ["IDLESTOP_CONF"] = os.path.join(os.path.dirname(__file__), "missing.yaml")

import pytest

from idlestop.idle import watchdog
from idlestop.power import basepower
from idlestop.probe import baseprobe
from idlestop.state import memstate

T0 = 1_700_000_000
PEER = ("10.0.2.15:22", "10.0.2.2:50000")


class fakeprobe(baseprobe):
    """Probe answering from a list; `up=False` is a missing tool, `broken=True` a failing one."""

    name = "fake"

    def __init__(self, conns=(), up=True, broken=False, name=None) -> None:
        self.conns = list(conns)
        self.up = up
        self.broken = broken
        self.calls = 0
        if name:
            self.name = name

    def available(self) -> bool:
        return self.up

    def _established(self, port):
        self.calls += 1
        return None if self.broken else list(self.conns)


class fakepower(basepower):
    """Power control that records poweroff requests instead of halting anything."""

    name = "fake"

    def __init__(self, ok=True, up=True, name=None) -> None:
        super().__init__()
        self.ok = ok
        self.up = up
        self.calls = 0
        if name:
            self.name = name

    def command(self):
        return "fake-poweroff" if self.up else None

    def poweroff(self) -> bool:
        self.calls += 1
        return self.ok


class fakeclock:
    def __init__(self, t: int = T0) -> None:
        self.t = t

    def __call__(self) -> float:
        return float(self.t)


@pytest.fixture
def clock() -> fakeclock:
    return fakeclock()


@pytest.fixture
def probe() -> fakeprobe:
    return fakeprobe()


@pytest.fixture
def power() -> fakepower:
    return fakepower()


@pytest.fixture
def state() -> memstate:
    return memstate()


@pytest.fixture
def dog(state, probe, power, clock) -> watchdog:
    return watchdog(state=state, probes=[probe], power=[power], port=22, timeout=1800, clock=clock)
