"""
================================================================================
Session Registry
================================================================================

Owns exactly one automation session per worker.

Features:
    - Lazy creation on first use, explicit creation at test setup
    - Liveness check (a real round trip) before handing out a session
    - Transparent replacement of a dead session, old resources released once
    - Idempotent release, bulk release for harness teardown

The registry is an ordinary object injected into pages, elements and the
navigation controller, so independent registries can coexist (e.g. in tests).

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Hashable, List, Optional

from loguru import logger

from .errors import ErrorKind, SessionInitError
from .remote_driver import RemoteDriver
from .settings import FrameworkSettings, normalize_browser_kind


# Creates a live driver for a browser kind; raises on failure.
DriverFactory = Callable[[str], RemoteDriver]


@dataclass
class Session:
    """
    One isolated connection to a remote automation engine.

    Attributes:
        worker_id: Identity of the worker that owns the session
        browser_kind: Engine kind the session was created for
        driver: Remote capability interface for this session
        session_id: Unique identity; changes when a session is replaced
        created_at: Creation timestamp
        alive: False once the session failed a liveness check or was closed
    """

    worker_id: Hashable
    browser_kind: str
    driver: RemoteDriver
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=datetime.now)
    alive: bool = True
    _closed: bool = field(default=False, repr=False)

    def probe(self) -> bool:
        """
        Round-trip liveness check.

        Only a SESSION_DEAD result marks the session dead; other failures
        (e.g. a page mid-navigation) leave a live session in place.
        """
        if not self.alive:
            return False
        result = self.driver.window_handles()
        if result.is_ok:
            return True
        if result.kind == ErrorKind.SESSION_DEAD:
            logger.debug(
                f"Liveness check failed for session {self.session_id}: {result.message}"
            )
            self.alive = False
        else:
            logger.debug(
                f"Liveness check for session {self.session_id} inconclusive, "
                f"keeping it: {result.kind.value}: {result.message}"
            )
        return self.alive

    def close(self) -> None:
        """Release remote resources. Subsequent calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self.alive = False

        result = self.driver.quit()
        if result.is_ok:
            logger.info(f"Session {self.session_id} closed (worker={self.worker_id})")
        else:
            logger.warning(
                f"Session {self.session_id} did not quit cleanly: {result.message}"
            )


class SessionRegistry:
    """
    Worker-keyed map of live sessions.

    Usage:
        registry = SessionRegistry(driver_factory, default_browser="chromium")
        session = registry.current_or_create()
        session.driver.navigate("https://example.com")
        registry.release()
    """

    def __init__(
        self,
        driver_factory: DriverFactory,
        default_browser: str = "chromium",
    ):
        """
        Args:
            driver_factory: Creates a driver for an engine kind
            default_browser: Engine used for lazily created sessions
        """
        self._driver_factory = driver_factory
        self._default_browser = normalize_browser_kind(default_browser)
        self._sessions: Dict[Hashable, Session] = {}
        self._worker_locks: Dict[Hashable, threading.RLock] = {}
        self._map_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: FrameworkSettings,
        driver_factory: Optional[DriverFactory] = None,
    ) -> "SessionRegistry":
        """Registry whose creation strategy is chosen by configuration."""
        if driver_factory is None:
            from .playwright_driver import driver_factory_from_settings
            driver_factory = driver_factory_from_settings(settings)
        return cls(driver_factory, default_browser=settings.browser_kind)

    @staticmethod
    def current_worker_id() -> Hashable:
        """Identity of the calling worker (its thread)."""
        return threading.get_ident()

    @property
    def default_browser(self) -> str:
        return self._default_browser

    # =========================================================================
    # Public API
    # =========================================================================

    def current_or_create(self, worker_id: Optional[Hashable] = None) -> Session:
        """
        Return the worker's live session, creating or replacing it as needed.

        Raises:
            SessionInitError: Creation or replacement failed
        """
        worker_id = self._worker(worker_id)

        with self._lock_for(worker_id):
            session = self.get(worker_id)

            if session is None:
                logger.info(f"No session for worker {worker_id}, creating one")
                return self._create(worker_id, self._default_browser)

            if session.probe():
                return session

            logger.warning(
                f"Session {session.session_id} for worker {worker_id} is "
                f"unresponsive, replacing it"
            )
            self._discard(worker_id, session)
            return self._create(worker_id, session.browser_kind)

    def init_explicit(
        self,
        worker_id: Optional[Hashable] = None,
        browser_kind: Optional[str] = None,
    ) -> Session:
        """
        Force a fresh session with a specific engine kind.

        Any existing session for the worker is destroyed first.
        """
        worker_id = self._worker(worker_id)
        kind = normalize_browser_kind(browser_kind or self._default_browser)

        with self._lock_for(worker_id):
            existing = self.get(worker_id)
            if existing is not None:
                logger.info(
                    f"Session already exists for worker {worker_id}, "
                    f"quitting it before explicit init"
                )
                self._discard(worker_id, existing)
            return self._create(worker_id, kind)

    def release(self, worker_id: Optional[Hashable] = None) -> None:
        """Destroy the worker's session if present. Idempotent."""
        worker_id = self._worker(worker_id)

        with self._lock_for(worker_id):
            with self._map_lock:
                session = self._sessions.pop(worker_id, None)
                self._worker_locks.pop(worker_id, None)
            if session is not None:
                session.close()

    def release_all(self) -> None:
        """Destroy every session held by the registry."""
        for worker_id in self.active_workers():
            self.release(worker_id)

    def get(self, worker_id: Optional[Hashable] = None) -> Optional[Session]:
        """Peek at the worker's session without probing or creating."""
        worker_id = self._worker(worker_id)
        with self._map_lock:
            return self._sessions.get(worker_id)

    def active_workers(self) -> List[Hashable]:
        with self._map_lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._sessions)

    # =========================================================================
    # Internals
    # =========================================================================

    def _worker(self, worker_id: Optional[Hashable]) -> Hashable:
        return self.current_worker_id() if worker_id is None else worker_id

    def _lock_for(self, worker_id: Hashable) -> threading.RLock:
        with self._map_lock:
            return self._worker_locks.setdefault(worker_id, threading.RLock())

    def _create(self, worker_id: Hashable, browser_kind: str) -> Session:
        logger.info(f"Initializing {browser_kind} session for worker {worker_id}")
        try:
            driver = self._driver_factory(browser_kind)
        except Exception as e:
            logger.error(f"Session creation failed for worker {worker_id}: {e}")
            raise SessionInitError(
                f"Failed to initialize {browser_kind} session for worker "
                f"{worker_id}: {e}"
            ) from e

        if driver is None:
            raise SessionInitError(
                f"Driver factory returned no driver for {browser_kind}"
            )

        session = Session(worker_id=worker_id, browser_kind=browser_kind, driver=driver)
        with self._map_lock:
            self._sessions[worker_id] = session

        logger.info(
            f"Session {session.session_id} ready ({browser_kind}, worker={worker_id})"
        )
        return session

    def _discard(self, worker_id: Hashable, session: Session) -> None:
        with self._map_lock:
            if self._sessions.get(worker_id) is session:
                del self._sessions[worker_id]
        session.close()


__all__ = [
    "DriverFactory",
    "Session",
    "SessionRegistry",
]
