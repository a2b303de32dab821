"""Tests for process stores."""

import pytest
from aiohttp import web
from aiohttp import test_utils

from models import Conduct, DeviceTarget
from process_store import HttpProcessStore, YamlProcessStore, process_from_dict

PROCESSES = [
    {
        "alias": "follow",
        "condition": {"left": {"value": 1}, "op": "eq", "right": {"value": 1}},
        "triggers": [{"identifier": "zigbee2mqtt/0x1", "contact": "state"}],
        "conducts": [
            {"target": {"identifier": "zigbee2mqtt/0x2", "contact": "state"}, "value": True}
        ],
    },
    {"alias": "scheduled", "conducts": []},
    {"alias": "off", "disabled": True, "triggers": [{"identifier": "zigbee2mqtt/0x1", "contact": "state"}]},
    {"triggers": []},
]


def test_process_from_dict():
    process = process_from_dict(PROCESSES[0])

    assert process.alias == "follow"
    assert process.is_disabled is False
    assert process.triggers == [DeviceTarget("zigbee2mqtt/0x1", "state")]
    assert process.conducts == [Conduct(DeviceTarget("zigbee2mqtt/0x2", "state"), True)]


def test_process_requires_alias():
    with pytest.raises(ValueError):
        process_from_dict({"triggers": []})


async def test_yaml_store_returns_state_triggered(caplog):
    store = YamlProcessStore(PROCESSES)

    processes = await store.get_state_triggered()

    # untriggered processes are excluded, disabled ones are left to the processor
    assert [p.alias for p in processes] == ["follow", "off"]
    assert "Process skipped" in caplog.text


@pytest.fixture
async def processes_server():
    hits = []

    async def handler(request):
        hits.append(request.path)
        return web.json_response(PROCESSES)

    app = web.Application()
    app.router.add_get("/processes", handler)
    srv = test_utils.TestServer(app)
    await srv.start_server()
    yield srv, hits
    await srv.close()


async def test_http_store_caches(processes_server):
    server, hits = processes_server
    store = HttpProcessStore(str(server.make_url("/processes")), cache_ttl=60)
    try:
        first = await store.get_state_triggered()
        second = await store.get_state_triggered()
    finally:
        await store.close()

    assert [p.alias for p in first] == ["follow", "off"]
    assert second == first
    assert hits == ["/processes"]


async def test_http_store_refetches_when_expired(processes_server):
    server, hits = processes_server
    store = HttpProcessStore(str(server.make_url("/processes")), cache_ttl=0)
    try:
        await store.get_state_triggered()
        await store.get_state_triggered()
    finally:
        await store.close()

    assert hits == ["/processes", "/processes"]
