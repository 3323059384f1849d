"""
State controller: owns the current AppState snapshot for the running site.

Mutations are optimistic. `apply` swaps the in-memory snapshot at once so the
next render sees it, and writes it to the local cache before returning, so
the cache always mirrors the last applied snapshot. A failed save never rolls
the snapshot back.

The remote push happens off the request path, on a background writer with a
single pending slot. If several snapshots are applied while a push is in
flight, only the newest one is pushed next and the superseded ones are
dropped, so pushes cannot land out of order and the remote store converges
on the last applied snapshot.
"""

from __future__ import annotations

import atexit
import threading
from typing import Any, Callable

from dialogics.domains.models import AppState
from dialogics.domains.operations import grounding_context
from dialogics.infrastructure.gateway import PersistenceGateway
from dialogics.infrastructure.local_cache import LocalCacheError
from dialogics.utils.logger import get_logger

logger = get_logger()

Document = dict[str, Any]


class StateNotLoadedError(RuntimeError):
    """Raised when the snapshot is read or mutated before initialize() finished."""


class _PushWriter:
    """Single background thread draining a one-slot queue of (version, document)."""

    def __init__(self, push: Callable[[int, Document], None]) -> None:
        self._push = push
        self._cond = threading.Condition()
        self._pending: tuple[int, Document] | None = None
        self._busy = False
        self._closed = False
        self.dropped = 0
        self._thread = threading.Thread(target=self._run, name="dialogics-push-writer", daemon=True)
        self._thread.start()

    def submit(self, version: int, document: Document) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("Push writer is closed")
            if self._pending is not None:
                self.dropped += 1
                logger.debug("Dropping superseded snapshot v%d in favour of v%d", self._pending[0], version)
            self._pending = (version, document)
            self._cond.notify_all()

    def _run(self) -> None:
        while True:
            with self._cond:
                while self._pending is None and not self._closed:
                    self._cond.wait()
                if self._pending is None:
                    return
                version, document = self._pending
                self._pending = None
                self._busy = True
            try:
                self._push(version, document)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until nothing is pending or in flight. False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._pending is None and not self._busy, timeout)

    def close(self, timeout: float | None = None) -> None:
        self.flush(timeout)
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        self._thread.join(timeout)


class StateController:
    """
    Lifecycle: initialize() once, then apply()/dispatch() for every mutation,
    current_snapshot() for every render. Renderers receive the controller (or a
    snapshot) explicitly; nothing here is a module-level global.
    """

    def __init__(self, gateway: PersistenceGateway | None = None) -> None:
        self._gateway = gateway if gateway is not None else PersistenceGateway()
        self._lock = threading.RLock()
        self._state: AppState | None = None
        self._version = 0
        self._saved_version = 0
        self._pushed_version = 0
        self._dropped = 0
        self._writer: _PushWriter | None = None
        self.last_save_error: Exception | None = None

    # --- Lifecycle ---

    def initialize(self) -> AppState:
        """Load the snapshot through the gateway. Only the first call loads."""
        with self._lock:
            if self._state is None:
                self._state = self._gateway.load()
                logger.info("State initialised.")
            return self._state

    def register_shutdown(self) -> None:
        """Flush pending remote pushes when the interpreter exits."""
        atexit.register(self.close)

    @property
    def is_loaded(self) -> bool:
        return self._state is not None

    @property
    def version(self) -> int:
        """Number of snapshots applied since initialisation."""
        return self._version

    @property
    def saved_version(self) -> int:
        """Version of the last snapshot written to the local cache."""
        return self._saved_version

    @property
    def pushed_version(self) -> int:
        """Version of the last snapshot the remote store accepted."""
        return self._pushed_version

    @property
    def dropped_count(self) -> int:
        """Snapshots superseded before their remote push started."""
        writer = self._writer
        return self._dropped + (writer.dropped if writer is not None else 0)

    def current_snapshot(self) -> AppState:
        state = self._state
        if state is None:
            raise StateNotLoadedError("State is still loading")
        return state

    # --- Mutation ---

    def apply(self, next_state: AppState) -> AppState:
        """
        Swap in next_state, write it to the local cache and schedule the remote
        push. Returns without waiting for the remote store.
        """
        with self._lock:
            if self._state is None:
                raise StateNotLoadedError("Cannot apply changes before the state has loaded")
            self._state = next_state
            self._version += 1
            version = self._version
            try:
                document = self._gateway.save_local(next_state)
            except LocalCacheError as e:
                self.last_save_error = e
                logger.exception("Saving snapshot v%d locally failed; it stays applied in memory: %s", version, e)
                return next_state
            self._saved_version = version
            self.last_save_error = None
            if self._writer is None:
                self._writer = _PushWriter(self._push)
            self._writer.submit(version, document)
        return next_state

    def dispatch(self, operation: Callable[..., AppState], *args: Any, **kwargs: Any) -> AppState:
        """
        Run a pure operation against the current snapshot and apply its result.
        An operation that returns the same snapshot (target not found) is not saved.
        """
        with self._lock:
            current = self.current_snapshot()
            result = operation(current, *args, **kwargs)
            if result is current:
                logger.debug("%s was a no-op", getattr(operation, "__name__", "operation"))
                return current
            return self.apply(result)

    def _push(self, version: int, document: Document) -> None:
        if self._gateway.push_remote(document):
            self._pushed_version = version

    # --- Read-only views ---

    def grounding_context(self) -> tuple[dict[str, Any], ...]:
        """Current topic catalogue for the assistant, as fresh plain records."""
        return grounding_context(self.current_snapshot())

    # --- Shutdown ---

    def flush(self, timeout: float | None = None) -> bool:
        writer = self._writer
        if writer is None:
            return True
        return writer.flush(timeout)

    def close(self, timeout: float | None = None) -> None:
        with self._lock:
            writer, self._writer = self._writer, None
        if writer is not None:
            writer.close(timeout)
            self._dropped += writer.dropped
