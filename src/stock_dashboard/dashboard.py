"""Holds the last loaded dashboard snapshot and reloads it on change."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from . import crud
from .crud import SnapshotLoadError
from .domain import DashboardSnapshot
from .notifications import ChangeNotifier

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[..., Awaitable[DashboardSnapshot]]


class DashboardStore:
    """Snapshot cache with full-reload semantics.

    Any change notification marks the snapshot stale; the next read reloads
    everything. A failed reload keeps the previous snapshot and records the
    error so callers can show both.
    """

    def __init__(
        self,
        notifier: ChangeNotifier | None = None,
        *,
        window_months: int = 12,
        clock: Callable[[], date] = date.today,
        loader: SnapshotLoader = crud.load_snapshot,
    ) -> None:
        self.snapshot: DashboardSnapshot | None = None
        self.error: str | None = None
        self.last_updated: datetime | None = None
        self.stale = True
        self._changes = 0
        self._window_months = window_months
        self._clock = clock
        self._loader = loader
        self._lock = asyncio.Lock()
        self._unsubscribe = notifier.subscribe(self._on_change) if notifier else None

    def today(self) -> date:
        return self._clock()

    def _on_change(self, channel: str) -> None:
        logger.debug("Snapshot marked stale", extra={"channel": channel})
        self._changes += 1
        self.stale = True

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def refresh(self, session: AsyncSession) -> DashboardSnapshot | None:
        async with self._lock:
            changes_seen = self._changes
            logger.info("Refreshing dashboard snapshot")
            try:
                snapshot = await self._loader(
                    session, self.today(), window_months=self._window_months
                )
            except SnapshotLoadError as exc:
                self.error = str(exc)
                logger.warning("Dashboard refresh failed", extra={"error": self.error})
                return self.snapshot

            self.snapshot = snapshot
            self.error = None
            # A notification that arrived mid-load leaves the snapshot stale.
            self.stale = self._changes != changes_seen
            self.last_updated = datetime.now(timezone.utc)
            logger.info("Dashboard snapshot loaded", extra=snapshot.counts())
            return snapshot

    async def current(self, session: AsyncSession) -> DashboardSnapshot:
        """Return a fresh snapshot, or the last good one if reloading fails.

        Raises :class:`SnapshotLoadError` only when nothing was ever loaded.
        """

        if self.stale or self.snapshot is None:
            await self.refresh(session)
        if self.snapshot is None:
            raise SnapshotLoadError(self.error or "Dashboard data is not available")
        return self.snapshot


__all__ = ["DashboardStore"]
