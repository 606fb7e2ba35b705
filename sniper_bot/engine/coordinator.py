from __future__ import annotations

import asyncio
import copy
from datetime import datetime, timezone
from typing import Callable

from sniper_bot.core.config import ScheduleConfig
from sniper_bot.core.errors import PositionConflictError
from sniper_bot.core.types import EngineMode, EngineState
from sniper_bot.data.storage.json_store import JsonStateStore
from sniper_bot.engine.schedule import curation_due, curation_key, detection_due, detection_key
from sniper_bot.execution.lifecycle import LifecycleUpdate, PositionLifecycleManager
from sniper_bot.monitoring.logger import get_logger
from sniper_bot.strategies.signal_detector import SignalDetector
from sniper_bot.universe.curator import WatchlistCurator
from sniper_bot.universe.watchlist import prune_expired


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EngineCoordinator:
    """
    Owns EngineState and drives one tick at a time.

    A tick either monitors the open position or scans (curation and/or
    detection), never both. Each tick mutates a working copy of the state,
    which is committed and written to disk only if the tick completes.
    """

    def __init__(
        self,
        *,
        schedule: ScheduleConfig,
        store: JsonStateStore,
        curator: WatchlistCurator,
        detector: SignalDetector,
        lifecycle: PositionLifecycleManager,
        state: EngineState | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._schedule = schedule
        self._store = store
        self._curator = curator
        self._detector = detector
        self._lifecycle = lifecycle
        self._state = state if state is not None else store.load()
        self._clock = clock
        self._log = get_logger("engine")

    @property
    def state(self) -> EngineState:
        return self._state

    async def run(self, stop: asyncio.Event | None = None) -> None:
        stop = stop or asyncio.Event()
        loop = asyncio.get_running_loop()
        interval = float(self._schedule.tick_interval_sec)
        self._log.info(
            "engine online: mode=%s curation@%02d UTC scans@%s UTC",
            self._state.mode.value,
            self._schedule.curation_hour_utc,
            ",".join(f"{h:02d}" for h in self._schedule.scan_hours_utc),
        )
        while not stop.is_set():
            started = loop.time()
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                self._log.exception("tick failed; state left as of previous tick")
            elapsed = loop.time() - started
            try:
                await asyncio.wait_for(stop.wait(), timeout=max(0.0, interval - elapsed))
            except asyncio.TimeoutError:
                pass

    async def tick(self, now: datetime | None = None) -> bool:
        """Run one tick. Returns True when state changed and was persisted."""
        now = now or self._clock()
        working = copy.deepcopy(self._state)

        if working.mode != EngineMode.SCANNING:
            # LOCK: no scanning while an order or position is active
            update = await self._lifecycle.monitor(working.mode, working.position, working.current_pnl, now)
            self._apply(working, update)
            self._commit(working, watchlist_changed=False)
            return True

        mutated = False
        watchlist_changed = False

        if curation_due(self._schedule, now, working.last_curation_run):
            working.watchlist = await self._curator.refresh(working.watchlist, now)
            working.last_curation_run = curation_key(now)
            mutated = watchlist_changed = True

        if detection_due(self._schedule, now, working.last_detection_run):
            live = prune_expired(working.watchlist, now)
            if len(live) != len(working.watchlist):
                working.watchlist = live
                watchlist_changed = True
            signal = await self._detector.detect(live, now)
            working.last_detection_run = detection_key(now)
            mutated = True
            if signal is not None:
                try:
                    update = await self._lifecycle.open_position(working.mode, working.position, signal, now)
                except PositionConflictError:
                    self._log.exception("refusing %s", signal.symbol)
                else:
                    self._apply(working, update)

        if mutated:
            self._commit(working, watchlist_changed=watchlist_changed)
        return mutated

    def _apply(self, state: EngineState, update: LifecycleUpdate) -> None:
        state.mode = update.mode
        state.position = update.position
        state.current_pnl = update.current_pnl

    def _commit(self, working: EngineState, *, watchlist_changed: bool) -> None:
        self._store.commit(working, watchlist_changed=watchlist_changed)
        self._state = working
