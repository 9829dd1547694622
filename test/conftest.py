"""Shared fixtures: a virtual clock and a store whose state follows a script."""

from typing import Callable

import pytest

from upgradewatch.core.clock import ManualClock
from upgradewatch.orchestration.list_poller import ListPoller
from upgradewatch.orchestration.poller import Poller
from upgradewatch.orchestration.sequencer import StageSequencer
from upgradewatch.orchestration.stages import StageServices
from upgradewatch.services.memory_store import InMemoryObjectStore


class ScriptedStore(InMemoryObjectStore):
    """In-memory store that applies scheduled changes as virtual time passes.

    A change scheduled at time t is visible to every read made at or after t.
    """

    def __init__(self, clock: ManualClock):
        super().__init__()
        self._clock = clock
        self._events: list[tuple[float, Callable[[InMemoryObjectStore], object]]] = []
        self.get_calls = 0
        self.list_calls = 0

    def at(self, when: float, change: Callable[[InMemoryObjectStore], object]) -> None:
        self._events.append((when, change))
        self._events.sort(key=lambda event: event[0])

    def _apply_due(self) -> None:
        while self._events and self._events[0][0] <= self._clock.now():
            _, change = self._events.pop(0)
            change(self)

    def get(self, kind, namespace, name):
        self.get_calls += 1
        self._apply_due()
        return super().get(kind, namespace, name)

    def list(self, kind, namespace):
        self.list_calls += 1
        self._apply_due()
        return super().list(kind, namespace)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def store(clock):
    return ScriptedStore(clock)


@pytest.fixture
def poller(store, clock):
    return Poller(store=store, clock=clock)


@pytest.fixture
def list_poller(store, clock):
    return ListPoller(store=store, clock=clock)


@pytest.fixture
def sequencer(store, poller, list_poller, clock):
    services = StageServices(store=store, poller=poller, list_poller=list_poller)
    return StageSequencer(services=services, clock=clock)
