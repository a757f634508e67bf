"""Test configuration and fixtures."""

import asyncio
import os
from contextlib import asynccontextmanager

import pytest

os.environ["ENVIRONMENT"] = "testing"

from health_orchestrator.domain.models import ProbeOutcome, Registration  # noqa: E402
from health_orchestrator.engine.scope import ProbeScope  # noqa: E402
from health_orchestrator.observability.metrics import HealthMetrics  # noqa: E402


class StubProbe:
    """Probe with a scripted delay and result that records how it was called."""

    def __init__(self, outcome=None, delay=0.0, error=None):
        self.outcome = outcome or ProbeOutcome.healthy("ok")
        self.delay = delay
        self.error = error
        self.calls = 0
        self.contexts = []
        self.signals = []
        self.started = asyncio.Event()
        self.was_cancelled = False
        self.finished_at = None

    async def check(self, context, signal):
        self.calls += 1
        self.contexts.append(context)
        self.signals.append(signal)
        self.started.set()
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.was_cancelled = True
            raise
        self.finished_at = asyncio.get_running_loop().time()
        if self.error is not None:
            raise self.error
        return self.outcome


class StubPublisher:
    """Publisher with a scripted delay and failure that records each report."""

    def __init__(self, name="stub", delay=0.0, error=None):
        self.name = name
        self.delay = delay
        self.error = error
        self.reports = []
        self.started = asyncio.Event()
        self.active = 0
        self.max_active = 0
        self.was_cancelled = False

    async def publish(self, report, signal):
        self.started.set()
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.was_cancelled = True
            raise
        finally:
            self.active -= 1
        if self.error is not None:
            raise self.error
        self.reports.append(report)


class CountingScopeFactory:
    """Scope factory that counts how often the scope is opened and released."""

    def __init__(self, resources=None):
        self.resources = resources or {"db": object()}
        self.opened = 0
        self.released = 0
        self.released_at = None
        self.scopes = []

    @asynccontextmanager
    async def __call__(self):
        self.opened += 1
        scope = ProbeScope(self.resources)
        self.scopes.append(scope)
        try:
            yield scope
        finally:
            self.released += 1
            self.released_at = asyncio.get_running_loop().time()


@pytest.fixture
def metrics():
    """Fresh metrics collector with its own registry."""
    return HealthMetrics()


@pytest.fixture
def make_probe():
    """Factory for stub probes."""
    return StubProbe


@pytest.fixture
def make_publisher():
    """Factory for stub publishers."""
    return StubPublisher


@pytest.fixture
def scope_factory():
    """Scope factory that records its lifecycle."""
    return CountingScopeFactory()


@pytest.fixture
def register():
    """Build a registration around a probe instance."""

    def _register(name, probe, tags=(), timeout=0.0):
        return Registration.for_probe(name, probe, tags=tags, timeout=timeout)

    return _register
