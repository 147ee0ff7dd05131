import json
import os
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from typer.testing import CliRunner

from bookstore_api.core.services.author_service import AuthorService
from bookstore_api.core.services.book_service import BookService
from bookstore_api.infrastructure.config.settings import Configuration, reset_configuration
from bookstore_api.infrastructure.http.api_client import ApiClient
from bookstore_api.utils import data_generator

FAKE_BASE_URL = "https://bookstore.test"

REASONS = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    415: "Unsupported Media Type",
}


class FakeBookstoreAdapter(BaseAdapter):
    """In-memory Bookstore backend plugged into requests as a transport adapter.

    ``persistent=False`` mimics the public sandbox: writes are acknowledged
    but never stored. ``visibility_lag`` keeps a deleted item readable for
    that many GETs, to exercise read-after-write polling.
    """

    def __init__(self, api_prefix: str = "/api/v1", persistent: bool = True, visibility_lag: int = 0):
        super().__init__()
        self.api_prefix = api_prefix
        self.persistent = persistent
        self.visibility_lag = visibility_lag
        self.store: Dict[str, Dict[int, Dict[str, Any]]] = {"Books": {}, "Authors": {}}
        self.sent: List[requests.PreparedRequest] = []
        self.timeouts: List[Any] = []
        self.raise_on_send: Optional[Exception] = None
        self.canned: Dict[Tuple[str, str], Tuple[int, bytes, str]] = {}
        self._next_id = 1000
        self._lingering: Dict[Tuple[str, int], int] = {}

    # --- test helpers ---

    def seed(self, collection: str, item: Dict[str, Any]) -> Dict[str, Any]:
        self.store[collection][item["id"]] = dict(item)
        return item

    def respond_with(self, method: str, path: str, status: int, body: bytes, content_type: str = "application/json"):
        """Serve a fixed response for one method/path (path relative to the API prefix)."""
        self.canned[(method.upper(), path)] = (status, body, content_type)

    @property
    def last_request(self) -> requests.PreparedRequest:
        return self.sent[-1]

    # --- adapter interface ---

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.sent.append(request)
        self.timeouts.append(timeout)
        if self.raise_on_send is not None:
            raise self.raise_on_send

        path = urlsplit(request.url).path
        if not path.startswith(self.api_prefix):
            return self._respond(request, 404, {"title": "Not Found"})
        path = path[len(self.api_prefix):]

        canned = self.canned.get((request.method, path))
        if canned is not None:
            status, body, content_type = canned
            return self._raw_response(request, status, body, content_type)

        parts = [p for p in path.split("/") if p]
        if not parts or parts[0] not in self.store or len(parts) > 2:
            return self._respond(request, 404, {"title": "Not Found"})
        collection = parts[0]

        if len(parts) == 1:
            return self._collection(request, collection)
        try:
            item_id = int(parts[1])
        except ValueError:
            return self._respond(request, 400, {"title": "One or more validation errors occurred."})
        return self._item(request, collection, item_id)

    def close(self):
        pass

    # --- routing ---

    def _collection(self, request, collection):
        if request.method == "GET":
            return self._respond(request, 200, list(self.store[collection].values()))
        if request.method == "POST":
            payload, error = self._read_body(request)
            if error is not None:
                return error
            if not payload.get("id"):
                self._next_id += 1
                payload["id"] = self._next_id
            if self.persistent:
                self.store[collection][payload["id"]] = payload
            return self._respond(request, 200, payload)
        return self._respond(request, 405, {"title": "Method Not Allowed"})

    def _item(self, request, collection, item_id):
        items = self.store[collection]
        if request.method == "GET":
            lag = self._lingering.get((collection, item_id), 0)
            if lag > 0:
                self._lingering[(collection, item_id)] = lag - 1
                return self._respond(request, 200, {"id": item_id})
            if item_id not in items:
                return self._respond(request, 404, {"title": "Not Found", "status": 404})
            return self._respond(request, 200, items[item_id])
        if request.method == "PUT":
            payload, error = self._read_body(request)
            if error is not None:
                return error
            if self.persistent:
                items[item_id] = payload
            return self._respond(request, 200, payload)
        if request.method == "DELETE":
            if self.persistent and item_id in items:
                del items[item_id]
                if self.visibility_lag:
                    self._lingering[(collection, item_id)] = self.visibility_lag
            return self._raw_response(request, 200, b"", "")
        return self._respond(request, 405, {"title": "Method Not Allowed"})

    def _read_body(self, request):
        content_type = request.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            return None, self._respond(request, 415, {"title": "Unsupported Media Type"})
        try:
            body = request.body.decode("utf-8") if isinstance(request.body, bytes) else request.body
            payload = json.loads(body or "")
        except ValueError:
            return None, self._respond(request, 400, {"title": "Invalid JSON"})
        if not isinstance(payload, dict):
            return None, self._respond(request, 400, {"title": "Expected an object"})
        return payload, None

    def _respond(self, request, status, payload):
        body = json.dumps(payload).encode("utf-8")
        return self._raw_response(request, status, body, "application/json; charset=utf-8; v=1.0")

    def _raw_response(self, request, status, body, content_type):
        response = requests.Response()
        response.status_code = status
        response.reason = REASONS.get(status, "")
        response._content = body
        response.headers = CaseInsensitiveDict({"Content-Type": content_type} if content_type else {})
        response.encoding = "utf-8"
        response.url = request.url
        response.request = request
        return response


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keeps real BOOKSTORE_* variables and the cached default config out of tests."""
    for name in list(os.environ):
        if name.startswith("BOOKSTORE_"):
            monkeypatch.delenv(name, raising=False)
    reset_configuration()
    yield
    reset_configuration()


@pytest.fixture
def test_config() -> Configuration:
    return Configuration.from_mapping({
        "base.url": FAKE_BASE_URL,
        "api.version": "v1",
        "timeout": 5,
        "connection.timeout": 2,
        "log.requests": False,
        "environment": "test",
        "deletion.persistence": True,
    })


@pytest.fixture
def fake_bookstore() -> FakeBookstoreAdapter:
    return FakeBookstoreAdapter()


@pytest.fixture
def api_client(test_config, fake_bookstore):
    client = ApiClient(test_config, adapters={FAKE_BASE_URL: fake_bookstore})
    yield client
    client.close()


@pytest.fixture
def book_service(api_client) -> BookService:
    return BookService(api_client)


@pytest.fixture
def author_service(api_client) -> AuthorService:
    return AuthorService(api_client)


@pytest.fixture
def fresh_ids():
    """Starts the test with an empty used-id registry."""
    data_generator.reset_used_ids()
    yield
    data_generator.reset_used_ids()


@pytest.fixture
def write_config(tmp_path):
    """Writes a bookstore.yaml with the given text and returns its path."""
    def _write(text: str, name: str = "bookstore.yaml"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def make_client(test_config):
    """Builds an ApiClient over its own fake backend.

    Returns ``(client, adapter)``; adapter keyword arguments configure the
    fake (``persistent``, ``visibility_lag``).
    """
    clients = []

    def _make(config: Optional[Configuration] = None, **adapter_kwargs):
        config = config or test_config
        adapter = FakeBookstoreAdapter(**adapter_kwargs)
        client = ApiClient(config, adapters={config.base_url: adapter})
        clients.append(client)
        return client, adapter

    yield _make
    for client in clients:
        client.close()
