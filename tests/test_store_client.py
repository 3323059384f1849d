"""
Tests for RemoteStoreClient: read acceptance rules and full-document writes.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from dialogics.infrastructure.store_client import RemoteStoreClient, RemoteStoreError

ENDPOINT = "https://example.test/api.php"


def _response(status: int = 200, content_type: str = "application/json", payload: object = None) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.headers = {"Content-Type": content_type}
    r.json.return_value = payload if payload is not None else {"topics": []}
    r.text = "<html>oops</html>"
    return r


@pytest.fixture
def client() -> RemoteStoreClient:
    return RemoteStoreClient(endpoint=ENDPOINT, timeout=5)


def test_fetch_returns_document(client: RemoteStoreClient) -> None:
    doc = {"topics": [{"id": "t1"}], "stories": [], "bookings": []}
    with patch("dialogics.infrastructure.store_client.requests.get", return_value=_response(payload=doc)) as mock_get:
        assert client.fetch() == doc
    mock_get.assert_called_once()
    assert mock_get.call_args.args[0] == ENDPOINT
    assert mock_get.call_args.kwargs["timeout"] == 5


def test_fetch_accepts_charset_suffix(client: RemoteStoreClient) -> None:
    r = _response(content_type="application/json; charset=utf-8", payload={"topics": []})
    with patch("dialogics.infrastructure.store_client.requests.get", return_value=r):
        assert client.fetch() == {"topics": []}


def test_fetch_rejects_html_even_with_200(client: RemoteStoreClient) -> None:
    with patch("dialogics.infrastructure.store_client.requests.get", return_value=_response(content_type="text/html")):
        with pytest.raises(RemoteStoreError, match="content type"):
            client.fetch()


def test_fetch_rejects_error_status(client: RemoteStoreClient) -> None:
    with patch("dialogics.infrastructure.store_client.requests.get", return_value=_response(status=500)):
        with pytest.raises(RemoteStoreError, match="status 500"):
            client.fetch()


def test_fetch_rejects_malformed_body(client: RemoteStoreClient) -> None:
    r = _response()
    r.json.side_effect = ValueError("Expecting value")
    with patch("dialogics.infrastructure.store_client.requests.get", return_value=r):
        with pytest.raises(RemoteStoreError, match="malformed"):
            client.fetch()


def test_fetch_rejects_empty_document(client: RemoteStoreClient) -> None:
    r = _response()
    r.json.return_value = None
    with patch("dialogics.infrastructure.store_client.requests.get", return_value=r):
        with pytest.raises(RemoteStoreError, match="empty"):
            client.fetch()


def test_fetch_wraps_network_errors(client: RemoteStoreClient) -> None:
    err = requests.exceptions.ConnectionError("refused")
    with patch("dialogics.infrastructure.store_client.requests.get", side_effect=err):
        with pytest.raises(RemoteStoreError) as exc_info:
            client.fetch()
    assert exc_info.value.original is err


def test_push_posts_full_document(client: RemoteStoreClient) -> None:
    doc = {"topics": [], "stories": [], "bookings": [], "settings": {}}
    r = _response()
    with patch("dialogics.infrastructure.store_client.requests.post", return_value=r) as mock_post:
        client.push(doc)
    assert mock_post.call_args.kwargs["json"] == doc
    assert mock_post.call_args.kwargs["headers"]["Content-Type"] == "application/json"
    r.raise_for_status.assert_called_once()


def test_push_raises_on_http_error(client: RemoteStoreClient) -> None:
    r = _response(status=503)
    r.raise_for_status.side_effect = requests.exceptions.HTTPError("503 Server Error", response=r)
    with patch("dialogics.infrastructure.store_client.requests.post", return_value=r):
        with pytest.raises(RemoteStoreError, match="status 503"):
            client.push({"topics": []})


def test_unconfigured_client_raises() -> None:
    c = RemoteStoreClient(endpoint="", timeout=5)
    assert c.configured is False
    with patch("dialogics.infrastructure.store_client.requests.get") as mock_get:
        with pytest.raises(RemoteStoreError, match="not configured"):
            c.fetch()
    mock_get.assert_not_called()
