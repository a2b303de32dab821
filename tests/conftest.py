"""Shared fixtures."""

from typing import List, Optional, Tuple

import pytest

from conducts import ConductManager
from devices import DeviceStateManager, DevicesDao
from z2m_worker import Z2MWorker


class FakeMqtt:
    """Records published messages instead of sending them."""

    def __init__(self):
        self.published: List[Tuple[str, Optional[str]]] = []

    def publish(self, topic: str, payload: Optional[str]):
        self.published.append((topic, payload))

    def topics(self) -> List[str]:
        return [t for t, _ in self.published]


class StaticProcesses:
    """Process store returning a fixed list."""

    def __init__(self, processes=None):
        self.processes = list(processes or [])
        self.calls = 0

    async def get_state_triggered(self):
        self.calls += 1
        return self.processes


@pytest.fixture
def mqtt():
    return FakeMqtt()


@pytest.fixture
def devices():
    return DevicesDao()


@pytest.fixture
def states():
    return DeviceStateManager()


@pytest.fixture
def conduct_manager():
    return ConductManager()


@pytest.fixture
def worker(devices, states, conduct_manager, mqtt):
    w = Z2MWorker(devices, states, conduct_manager, mqtt, base_topic="zigbee2mqtt")
    w.start()
    mqtt.published.clear()
    return w
