"""Mini README: Debounced push of dashboard snapshots to the export webhook.

Structure:
    * SyncStatus - lifecycle reported to the interface.
    * ExportSynchronizer - observes the store, coalesces bursts of edits into
      one transmission and records the outcome.

Behaviour:
    * Nothing is scheduled while the store is loading or not yet ready (a
      failed load), while the export is disabled or has no URL, or when the
      snapshot serialises identically to the last one scheduled.
    * There is at most one pending timer. A new snapshot cancels it and arms a
      fresh one, so N edits inside the window produce one transmission at
      ``last_edit + delay``.
    * A transmission that has started is never cancelled and never retried.
    * ``teardown`` drops the pending timer without sending and detaches from
      the store.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set

from ..ledger.entities import DashboardState
from ..logging_utils import get_logger
from ..store.dashboard_store import DashboardStore
from .config_storage import ConfigStorage, ExportConfig
from .formatter import build_sync_payload, build_test_payload, stable_serialisation
from .transport import ExportTransport, TransmissionResult

LOGGER = get_logger(__name__)

DEFAULT_DELAY_SECONDS = 5.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncStatus(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SUCCESS = "success"
    ERROR = "error"
    DISABLED = "disabled"


class ExportSynchronizer:
    """Mirror committed snapshots to the configured webhook."""

    def __init__(
        self,
        storage: ConfigStorage,
        transport: ExportTransport,
        *,
        delay: float = DEFAULT_DELAY_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if delay <= 0:
            raise ValueError("delay must be positive")
        self._storage = storage
        self._transport = transport
        self._delay = delay
        self._clock = clock
        self._config = storage.load()
        self._last_serialised: Optional[str] = None
        self._pending: Optional[asyncio.TimerHandle] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._store: Optional[DashboardStore] = None
        self.status = SyncStatus.IDLE if self._config.is_active else SyncStatus.DISABLED
        self.last_result: Optional[TransmissionResult] = None
        self.last_synced_at: Optional[datetime] = None

    @property
    def config(self) -> ExportConfig:
        return self._config

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def attach(self, store: DashboardStore) -> None:
        """Start observing ``store``; attaching again replaces the old link."""

        self.detach()
        self._store = store
        self._unsubscribe = store.subscribe(self.observe)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._store = None

    def observe(self, state: DashboardState, loading: bool) -> None:
        """Store listener deciding whether ``state`` needs exporting."""

        if loading or not self._config.is_active:
            return
        if self._store is not None and not self._store.ready:
            return
        serialised = stable_serialisation(state)
        if serialised == self._last_serialised:
            return
        self.schedule(state, serialised)

    def schedule(self, state: DashboardState, serialised: Optional[str] = None) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.warning("No running event loop; export of the latest snapshot skipped")
            return
        self._cancel_pending()
        self._last_serialised = serialised if serialised is not None else stable_serialisation(state)
        self._pending = loop.call_later(self._delay, self._fire, state)
        self.status = SyncStatus.SCHEDULED
        LOGGER.debug("Export scheduled in %.2fs", self._delay)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self, state: DashboardState) -> None:
        self._pending = None
        self._track(asyncio.get_running_loop().create_task(self._transmit(state)))

    def _track(self, task: asyncio.Task) -> None:
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _deliver(self, payload: Dict[str, Any]) -> TransmissionResult:
        url = self._config.endpoint_url or ""
        try:
            return await self._transport.send(url, payload)
        except Exception as error:
            LOGGER.exception("Export transport raised while sending %s", payload.get("action"))
            return TransmissionResult(success=False, message=str(error))

    async def _transmit(self, state: DashboardState) -> TransmissionResult:
        self.status = SyncStatus.SENDING
        result = await self._deliver(build_sync_payload(state, now=self._clock()))
        self.last_result = result
        if result.success:
            self.last_synced_at = self._clock()
            self.status = SyncStatus.SUCCESS
        else:
            self.status = SyncStatus.ERROR
        if self._pending is not None:
            self.status = SyncStatus.SCHEDULED
        return result

    async def sync_now(self, state: DashboardState) -> TransmissionResult:
        """Send ``state`` immediately, replacing any pending timer."""

        if not self._config.endpoint_url:
            return TransmissionResult(success=False, message="No export endpoint configured")
        self._cancel_pending()
        self._last_serialised = stable_serialisation(state)
        task = asyncio.get_running_loop().create_task(self._transmit(state))
        self._track(task)
        return await task

    async def send_test(self) -> TransmissionResult:
        """Post the test payload; ledger data and sync status are untouched."""

        if not self._config.endpoint_url:
            return TransmissionResult(success=False, message="No export endpoint configured")
        result = await self._deliver(build_test_payload(now=self._clock()))
        LOGGER.info("Export endpoint test %s", "succeeded" if result.success else "failed")
        return result

    def update_config(self, config: ExportConfig) -> None:
        """Persist ``config``; the next snapshot is exported even if unchanged."""

        self._storage.save(config)
        self._config = config
        self._last_serialised = None
        if not config.is_active:
            self._cancel_pending()
            self.status = SyncStatus.DISABLED
        elif self.status is SyncStatus.DISABLED:
            self.status = SyncStatus.IDLE
        LOGGER.info("Export config updated (active=%s)", config.is_active)

    async def wait_idle(self) -> None:
        """Wait for transmissions already started; pending timers are left alone."""

        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    def teardown(self) -> None:
        if self._pending is not None:
            LOGGER.debug("Dropping pending export on teardown")
        self._cancel_pending()
        self.detach()
        if self.status is SyncStatus.SCHEDULED:
            self.status = SyncStatus.IDLE if self._config.is_active else SyncStatus.DISABLED

    def status_snapshot(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "config": self._config.as_dict(),
            "pending": self.has_pending,
            "lastSyncedAt": self.last_synced_at.isoformat() if self.last_synced_at else None,
            "lastResult": self.last_result.as_dict() if self.last_result else None,
        }
