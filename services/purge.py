"""Background sweeper that deletes refresh tokens past their expiry."""

from __future__ import annotations

import logging
import threading

from models.db_storage import DBStorage
from services.refresh_sessions import RefreshSessionEngine

logger = logging.getLogger(__name__)


class PurgeSweeper:
    """Runs ``engine.purge_expired()`` every ``interval`` seconds on a daemon thread."""

    def __init__(self, engine: RefreshSessionEngine, storage: DBStorage, interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._engine = engine
        self._storage = storage
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        """Start the sweeper thread (idempotent)."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_loop, name="refresh-token-purge", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        if not self._thread:
            return
        self._stop.set()
        self._thread.join(timeout=timeout)

    def sweep_once(self) -> int:
        try:
            return self._engine.purge_expired()
        finally:
            self._storage.close()

    def _run_loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.sweep_once()
            except Exception:
                logger.exception("refresh token purge failed")
