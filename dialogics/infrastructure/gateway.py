"""
Persistence gateway: load and save the whole AppState against the remote store,
with the local cache as durability floor and the seed document as last resort.
"""

from __future__ import annotations

from typing import Any

from dialogics.domains.models import AppState, state_from_dict, state_to_dict
from dialogics.domains.seed import initial_state
from dialogics.infrastructure.local_cache import LocalCache, LocalCacheError
from dialogics.infrastructure.store_client import RemoteStoreClient, RemoteStoreError
from dialogics.utils.logger import get_logger

logger = get_logger()


class PersistenceGateway:
    def __init__(
        self,
        remote: RemoteStoreClient | None = None,
        cache: LocalCache | None = None,
    ) -> None:
        self.remote = remote if remote is not None else RemoteStoreClient()
        self.cache = cache if cache is not None else LocalCache()

    def load(self) -> AppState:
        """
        Return the best available snapshot: remote, then local cache, then seed.
        Never raises; every fallback is logged.
        """
        state = self._load_remote()
        if state is not None:
            return state

        state = self._load_cache()
        if state is not None:
            return state

        logger.info("No stored data found; starting from the seed document.")
        return initial_state()

    def _load_remote(self) -> AppState | None:
        if not self.remote.configured:
            logger.info("Remote store not configured; using local data.")
            return None
        try:
            document = self.remote.fetch()
            state = state_from_dict(document)
        except RemoteStoreError as e:
            logger.warning("Remote store unavailable, falling back to local cache: %s", e)
            return None
        except ValueError as e:
            logger.warning("Remote store returned an unusable document, falling back to local cache: %s", e)
            return None

        # Keep a local copy for disaster recovery; losing it is not fatal to a read.
        try:
            self.cache.write(state_to_dict(state))
        except LocalCacheError as e:
            logger.warning("Could not refresh local cache after remote load: %s", e)
        logger.info(
            "Loaded state from remote store (%d topics, %d stories, %d bookings).",
            len(state.topics), len(state.stories), len(state.bookings),
        )
        return state

    def _load_cache(self) -> AppState | None:
        try:
            document = self.cache.read()
            if document is None:
                return None
            state = state_from_dict(document)
        except (LocalCacheError, ValueError) as e:
            logger.warning("Local cache unusable, ignoring it: %s", e)
            return None
        logger.info("Loaded state from local cache %s.", self.cache.path)
        return state

    def save_local(self, state: AppState) -> dict[str, Any]:
        """
        Write a snapshot to the local cache and return the encoded document.

        Raises:
            LocalCacheError: If the local write fails.
        """
        document = state_to_dict(state)
        self.cache.write(document)
        return document

    def push_remote(self, document: dict[str, Any]) -> bool:
        """
        Replace the remote document. Failures are logged and swallowed, since
        the local cache already holds the data. Returns True when the store
        accepted the write.
        """
        if not self.remote.configured:
            return False
        try:
            self.remote.push(document)
        except RemoteStoreError as e:
            logger.error("Failed to sync with remote store (kept in local cache): %s", e)
            return False
        return True

    def save(self, state: AppState) -> None:
        """
        Persist a snapshot: local cache first, then the remote store.

        Raises:
            LocalCacheError: If the local write fails; the remote is not tried.
        """
        self.push_remote(self.save_local(state))
