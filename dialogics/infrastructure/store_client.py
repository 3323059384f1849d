"""
HTTP client for the remote store: one endpoint, GET reads the whole document,
POST replaces it.

The store is usually a small PHP/MySQL script next to the site. When it is
missing the host tends to answer 200 with an HTML error page, so a read only
counts when the response also declares JSON.
"""

from __future__ import annotations

from typing import Any

import requests

from dialogics.utils.config import store_api_url, store_timeout_seconds
from dialogics.utils.logger import get_logger

logger = get_logger()

_MAX_DEBUG_BODY_CHARS = 500


class RemoteStoreError(RuntimeError):
    """Raised when the remote store cannot be read or written."""

    def __init__(self, message: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.original = original


def _redact_url(url: str) -> str:
    # Avoid leaking tokens if one is ever passed in the query string.
    if not url:
        return url
    for marker in ("token=", "api_key=", "apikey="):
        if marker in url.lower():
            return url.split("?", 1)[0] + "?REDACTED=1"
    return url


class RemoteStoreClient:
    def __init__(self, endpoint: str | None = None, timeout: int | None = None) -> None:
        self.endpoint = (endpoint if endpoint is not None else store_api_url()) or ""
        self.timeout = timeout if timeout is not None else store_timeout_seconds()

    @property
    def configured(self) -> bool:
        return bool(self.endpoint.strip())

    def _require_endpoint(self) -> str:
        if not self.configured:
            raise RemoteStoreError("Remote store not configured (STORE_API_URL is not set).")
        return self.endpoint.strip()

    def fetch(self) -> dict[str, Any]:
        """
        Read the full document.

        Raises:
            RemoteStoreError: On network errors, non-2xx status, a non-JSON
                content type, or a body that is not a non-empty JSON object.
        """
        url = self._require_endpoint()
        try:
            response = requests.get(url, headers={"Accept": "application/json"}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RemoteStoreError(f"GET {_redact_url(url)} failed: {type(e).__name__}: {e}", e) from e

        status_code = getattr(response, "status_code", None)
        content_type = (response.headers.get("Content-Type") or "").lower()
        if not (status_code and 200 <= status_code < 300):
            raise RemoteStoreError(f"GET {_redact_url(url)} returned status {status_code}")
        if "application/json" not in content_type:
            preview = ""
            try:
                preview = (response.text or "")[:_MAX_DEBUG_BODY_CHARS]
            except Exception:
                preview = ""
            logger.debug("Non-JSON store response preview: %s", preview)
            raise RemoteStoreError(f"GET {_redact_url(url)} returned content type {content_type or 'none'!r}")

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteStoreError(f"GET {_redact_url(url)} returned malformed JSON: {e}", e) from e
        if not data or not isinstance(data, dict):
            raise RemoteStoreError(f"GET {_redact_url(url)} returned an empty or non-object document")
        return data

    def push(self, document: dict[str, Any]) -> None:
        """
        Replace the remote document with `document`.

        Raises:
            RemoteStoreError: On network errors or a non-2xx status.
        """
        url = self._require_endpoint()
        try:
            response = requests.post(
                url,
                json=document,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            status = None
            if getattr(e, "response", None) is not None:
                status = getattr(e.response, "status_code", None)
            detail = f"status {status}" if status else f"{type(e).__name__}: {e}"
            raise RemoteStoreError(f"POST {_redact_url(url)} failed: {detail}", e) from e
        logger.debug("Remote store accepted document (%s)", getattr(response, "status_code", None))
