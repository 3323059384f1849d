"""
Local durable cache: a single JSON slot on disk holding the last known document.

Written after every mutation and every successful remote read; read at
startup when the remote store is unavailable.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from dialogics.utils.config import cache_dir as _default_cache_dir
from dialogics.utils.config import cache_key as _default_cache_key
from dialogics.utils.logger import get_logger

logger = get_logger()


class LocalCacheError(RuntimeError):
    """Raised when the cache slot cannot be read or written."""


class LocalCache:
    """One named slot, `<cache_dir>/<key>.json`, always overwritten wholesale."""

    def __init__(self, cache_dir: Path | None = None, key: str | None = None) -> None:
        self._dir = Path(cache_dir) if cache_dir is not None else _default_cache_dir()
        self.key = key or _default_cache_key()

    @property
    def path(self) -> Path:
        return self._dir / f"{self.key}.json"

    def read(self) -> dict[str, Any] | None:
        """
        Return the cached document, or None if the slot is empty.

        Raises:
            LocalCacheError: If the slot exists but cannot be read or parsed.
        """
        p = self.path
        if not p.is_file():
            return None
        try:
            with open(p, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise LocalCacheError(f"Could not read cache slot {p}: {e}") from e
        if not isinstance(data, dict):
            raise LocalCacheError(f"Cache slot {p} does not hold a JSON object")
        return data

    def write(self, document: dict[str, Any]) -> None:
        """
        Overwrite the slot. The temp file + os.replace keeps a crash from
        leaving a half-written document behind.

        Raises:
            LocalCacheError: On any filesystem or serialisation failure.
        """
        p = self.path
        tmp_name = None
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(document, ensure_ascii=False)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.key}.", suffix=".tmp", dir=str(p.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, p)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            raise LocalCacheError(f"Could not write cache slot {p}: {e}") from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug("Wrote cache slot %s (%d bytes)", p, len(payload))

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
