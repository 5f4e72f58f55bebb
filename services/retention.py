"""Age-based removal of stored readings."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from threading import Event, Thread
from typing import Optional

from datastore.base import Clock, ReadingStore, ensure_utc, utc_now

logger = logging.getLogger(__name__)


class RetentionPruner:
    """Deletes readings recorded before a cutoff.

    ``prune`` is the one-shot operation. ``start`` runs ``prune_expired`` on a
    daemon thread every ``interval_seconds``.
    """

    def __init__(
        self,
        store: ReadingStore,
        retention: timedelta = timedelta(days=30),
        interval_seconds: float = 3600.0,
        clock: Clock = utc_now,
    ) -> None:
        if retention <= timedelta(0):
            raise ValueError("Retention must be a positive duration.")
        self.store = store
        self.retention = retention
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._stop = Event()
        self._thread: Optional[Thread] = None

    def prune(self, cutoff: datetime) -> int:
        cutoff = ensure_utc(cutoff)
        deleted = self.store.delete_older_than(cutoff)
        logger.info(
            "Pruned readings",
            extra={"cutoff": cutoff.isoformat(), "deleted_count": deleted},
        )
        return deleted

    def prune_expired(self) -> int:
        # Cutoff is fixed before the store is scanned.
        cutoff = ensure_utc(self._clock()) - self.retention
        return self.prune(cutoff)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.interval_seconds <= 0 or self.running:
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name="retention-pruner", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.prune_expired()
            except Exception:
                logger.exception("Scheduled prune failed")
