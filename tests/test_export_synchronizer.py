"""Mini README: Tests for the debounced export synchroniser and its transport.

Structure:
    * RecordingTransport - in-process transport capturing every payload.
    * Debounce behaviour - bursts coalesce, spaced edits each send.
    * Timing - one transmission at ``last_edit + delay``.
    * Guards - loading, a failed load, disabled config, unchanged snapshots,
      teardown.
    * Outcomes - success/error status, manual sync and endpoint test.
    * WebhookTransport - HTTP status mapping through ``httpx.MockTransport``.

Timers use a 50 ms window so the suite stays fast; waits are generous
multiples of it.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from furnledger.export import (
    ExportConfig,
    ExportSynchronizer,
    JsonConfigStorage,
    MemoryConfigStorage,
    SyncStatus,
    TransmissionResult,
    WebhookTransport,
)
from furnledger.ledger import DashboardState, OperationalCost
from furnledger.store import DashboardStore, InMemoryPersistenceAdapter, actions

DELAY = 0.05
URL = "https://hooks.example.test/sync"
NOW = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)


class RecordingTransport:
    def __init__(self, success: bool = True) -> None:
        self.success = success
        self.sent: List[Tuple[str, Dict[str, Any]]] = []
        self.sent_at: List[float] = []

    async def send(self, url: str, payload: Dict[str, Any]) -> TransmissionResult:
        self.sent.append((url, payload))
        self.sent_at.append(asyncio.get_running_loop().time())
        return TransmissionResult(
            success=self.success,
            status_code=200 if self.success else 500,
            message="ok" if self.success else "boom",
        )


class BrokenLoadAdapter(InMemoryPersistenceAdapter):
    async def fetch_all_data(self) -> DashboardState:
        raise ConnectionError("cannot reach backend")


class ExplodingTransport:
    async def send(self, url: str, payload: Dict[str, Any]) -> TransmissionResult:
        raise RuntimeError("socket closed")


def _cost(amount: float) -> OperationalCost:
    return OperationalCost.create(date="2025-03-01", amount=amount, category="Misc", cost_type="variable")


def _state(*amounts: float) -> DashboardState:
    return DashboardState(operational_costs=tuple(_cost(amount) for amount in amounts))


def _synchronizer(transport, *, enabled: bool = True, url: str = URL) -> ExportSynchronizer:
    storage = MemoryConfigStorage(ExportConfig(endpoint_url=url, enabled=enabled))
    return ExportSynchronizer(storage, transport, delay=DELAY, clock=lambda: NOW)


def _commit(store: DashboardStore, state: DashboardState) -> None:
    store.dispatch(actions.SetState(state))


async def _loaded_store() -> DashboardStore:
    store = DashboardStore(InMemoryPersistenceAdapter(), seed_generator=lambda: [_cost(1)])
    await store.load()
    return store


async def _settle(synchronizer: ExportSynchronizer, factor: float = 3) -> None:
    await asyncio.sleep(DELAY * factor)
    await synchronizer.wait_idle()


@pytest.mark.asyncio
async def test_burst_of_edits_sends_once_with_latest_snapshot() -> None:
    """Edits inside the window collapse into one transmission."""

    transport = RecordingTransport()
    store = await _loaded_store()
    synchronizer = _synchronizer(transport)
    synchronizer.attach(store)

    for count in range(1, 4):
        _commit(store, _state(*([10.0] * count)))
        await asyncio.sleep(DELAY / 5)
    assert synchronizer.status is SyncStatus.SCHEDULED
    assert transport.sent == []

    await _settle(synchronizer)

    assert len(transport.sent) == 1
    url, payload = transport.sent[0]
    assert url == URL
    assert payload["action"] == "sync_all"
    assert payload["summary"]["totalOperationalCosts"] == 3
    assert synchronizer.status is SyncStatus.SUCCESS
    assert synchronizer.last_synced_at == NOW


@pytest.mark.asyncio
async def test_transmission_happens_after_last_edit_plus_delay() -> None:
    """Edits keep pushing the timer back; it fires once, ``delay`` after the last."""

    transport = RecordingTransport()
    store = await _loaded_store()
    synchronizer = _synchronizer(transport)
    synchronizer.attach(store)
    loop = asyncio.get_running_loop()

    first_edit = loop.time()
    last_edit = first_edit
    for amount in (1.0, 2.0, 3.0):
        last_edit = loop.time()
        _commit(store, _state(amount))
        await asyncio.sleep(DELAY * 0.6)
    assert loop.time() > first_edit + DELAY
    assert transport.sent == []

    await _settle(synchronizer)

    assert len(transport.sent) == 1
    assert transport.sent[0][1]["summary"]["variableCosts"] == 3.0
    assert last_edit + DELAY - 0.001 <= transport.sent_at[0] < last_edit + DELAY * 4


@pytest.mark.asyncio
async def test_failed_load_never_exports() -> None:
    """An unreachable backend must not publish an empty ledger."""

    transport = RecordingTransport()
    store = DashboardStore(BrokenLoadAdapter(), seed_generator=lambda: [_cost(1)])
    synchronizer = _synchronizer(transport)
    synchronizer.attach(store)

    await store.load()
    assert not synchronizer.has_pending
    await store.add_operational_cost(_cost(2))
    await _settle(synchronizer)

    assert store.ready is False
    assert transport.sent == []
    assert synchronizer.status is SyncStatus.IDLE


@pytest.mark.asyncio
async def test_persisted_import_arms_export_after_failed_load() -> None:
    transport = RecordingTransport()
    store = DashboardStore(BrokenLoadAdapter())
    synchronizer = _synchronizer(transport)
    synchronizer.attach(store)
    await store.load()

    assert await store.import_snapshot(_state(8.0).as_dict()) is True
    await _settle(synchronizer)

    assert len(transport.sent) == 1
    assert transport.sent[0][1]["summary"]["variableCosts"] == 8.0


@pytest.mark.asyncio
async def test_spaced_edits_each_send() -> None:
    """Edits further apart than the window each produce a transmission."""

    transport = RecordingTransport()
    store = await _loaded_store()
    synchronizer = _synchronizer(transport)
    synchronizer.attach(store)

    for amount in (1.0, 2.0, 3.0):
        _commit(store, _state(amount))
        await _settle(synchronizer)

    assert [payload["summary"]["variableCosts"] for _, payload in transport.sent] == [1.0, 2.0, 3.0]


@pytest.mark.asyncio
async def test_loaded_snapshot_is_exported_after_initial_load() -> None:
    """Nothing is sent while loading; the loaded ledger goes out once ready."""

    transport = RecordingTransport()
    store = DashboardStore(InMemoryPersistenceAdapter(), seed_generator=lambda: [_cost(5)])
    synchronizer = _synchronizer(transport)
    synchronizer.attach(store)

    synchronizer.observe(_state(99.0), True)
    assert not synchronizer.has_pending

    await store.load()
    await _settle(synchronizer)

    assert len(transport.sent) == 1
    assert transport.sent[0][1]["summary"]["variableCosts"] == 5.0


@pytest.mark.asyncio
async def test_inactive_config_never_schedules() -> None:
    transport = RecordingTransport()
    disabled = _synchronizer(transport, enabled=False)
    missing_url = _synchronizer(transport, url="")

    for synchronizer in (disabled, missing_url):
        synchronizer.observe(_state(1.0), False)
        assert not synchronizer.has_pending
        assert synchronizer.status is SyncStatus.DISABLED
    await asyncio.sleep(DELAY * 2)
    assert transport.sent == []


@pytest.mark.asyncio
async def test_unchanged_snapshot_is_not_resent() -> None:
    """Equal snapshots, even as new objects, do not re-arm the timer."""

    transport = RecordingTransport()
    synchronizer = _synchronizer(transport)
    state = _state(1.0)

    synchronizer.observe(state, False)
    await _settle(synchronizer)
    synchronizer.observe(DashboardState.from_dict(state.as_dict()), False)

    assert not synchronizer.has_pending
    await _settle(synchronizer)
    assert len(transport.sent) == 1


@pytest.mark.asyncio
async def test_equal_set_state_does_not_retrigger_export() -> None:
    transport = RecordingTransport()
    store = await _loaded_store()
    synchronizer = _synchronizer(transport)
    synchronizer.attach(store)
    _commit(store, _state(7.0))
    await _settle(synchronizer)

    _commit(store, DashboardState.from_dict(store.state.as_dict()))
    await _settle(synchronizer)

    assert len(transport.sent) == 1


@pytest.mark.asyncio
async def test_teardown_drops_pending_export() -> None:
    transport = RecordingTransport()
    store = await _loaded_store()
    synchronizer = _synchronizer(transport)
    synchronizer.attach(store)

    _commit(store, _state(4.0))
    assert synchronizer.has_pending
    synchronizer.teardown()
    _commit(store, _state(5.0))
    await _settle(synchronizer)

    assert transport.sent == []
    assert not synchronizer.has_pending


@pytest.mark.asyncio
async def test_failed_transmission_records_error_without_retry() -> None:
    transport = RecordingTransport(success=False)
    synchronizer = _synchronizer(transport)

    synchronizer.observe(_state(1.0), False)
    await _settle(synchronizer, factor=6)

    assert len(transport.sent) == 1
    assert synchronizer.status is SyncStatus.ERROR
    assert synchronizer.last_result.status_code == 500
    assert synchronizer.last_synced_at is None


@pytest.mark.asyncio
async def test_transport_exception_is_contained() -> None:
    synchronizer = _synchronizer(ExplodingTransport())

    result = await synchronizer.sync_now(_state(1.0))

    assert result.success is False
    assert "socket closed" in result.message
    assert synchronizer.status is SyncStatus.ERROR


@pytest.mark.asyncio
async def test_sync_now_replaces_pending_timer() -> None:
    transport = RecordingTransport()
    synchronizer = _synchronizer(transport)
    synchronizer.observe(_state(1.0), False)

    result = await synchronizer.sync_now(_state(2.0))
    await _settle(synchronizer)

    assert result.success is True
    assert len(transport.sent) == 1
    assert transport.sent[0][1]["summary"]["variableCosts"] == 2.0


@pytest.mark.asyncio
async def test_send_test_posts_connectivity_payload() -> None:
    transport = RecordingTransport()
    synchronizer = _synchronizer(transport, enabled=False)

    result = await synchronizer.send_test()

    assert result.success is True
    assert transport.sent[0][1]["action"] == "test"
    assert synchronizer.status is SyncStatus.DISABLED
    assert (await _synchronizer(transport, url="").send_test()).success is False


@pytest.mark.asyncio
async def test_update_config_rearms_and_disables(tmp_path) -> None:
    """Saving config persists it; disabling cancels the pending export."""

    transport = RecordingTransport()
    storage = JsonConfigStorage(tmp_path / "export_config.json")
    synchronizer = ExportSynchronizer(storage, transport, delay=DELAY)
    assert synchronizer.status is SyncStatus.DISABLED

    synchronizer.update_config(ExportConfig(endpoint_url=URL, enabled=True))
    synchronizer.observe(_state(1.0), False)
    assert synchronizer.has_pending
    synchronizer.update_config(ExportConfig(endpoint_url=URL, enabled=False))
    await _settle(synchronizer)

    assert transport.sent == []
    assert synchronizer.status is SyncStatus.DISABLED
    assert json.loads((tmp_path / "export_config.json").read_text()) == {
        "endpointUrl": URL,
        "enabled": False,
    }
    assert storage.load() == ExportConfig(endpoint_url=URL, enabled=False)


@pytest.mark.asyncio
async def test_webhook_transport_maps_status_codes() -> None:
    """2xx responses succeed; anything else is reported with its body."""

    seen: List[Dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        if request.url.path == "/ok":
            return httpx.Response(200, text="stored")
        return httpx.Response(403, text="forbidden")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        transport = WebhookTransport(client=client)
        ok = await transport.send("https://hooks.example.test/ok", {"action": "test"})
        denied = await transport.send("https://hooks.example.test/denied", {"action": "test"})

    assert ok == TransmissionResult(success=True, status_code=200, message="stored")
    assert denied.success is False
    assert denied.status_code == 403
    assert denied.message == "forbidden"
    assert seen == [{"action": "test"}, {"action": "test"}]


@pytest.mark.asyncio
async def test_webhook_transport_reports_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await WebhookTransport(client=client).send(URL, {"action": "sync_all"})

    assert result.success is False
    assert result.status_code is None
    assert "timed out" in result.message
