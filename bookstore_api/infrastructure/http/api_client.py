"""HTTP client core: one shared request template, fresh per-call builders.

The ``ApiClient`` owns a read-only ``RequestTemplate`` (base URI, default
headers, content type, timeouts, interceptors) and the ``requests`` session
used for transport. Callers never touch the template directly; they ask
for a ``RequestBuilder`` via ``get_request_spec()`` and customise that.

``initialize()`` and ``reset()`` throw away the session (cookies, pooled
connections, mounted adapters) and rebuild the template from configuration.
Neither may run while other threads have requests in flight on the same
client.
"""

import json
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import quote

import requests
from requests.adapters import BaseAdapter, HTTPAdapter

from bookstore_api.domain.interfaces.config import ConfigurationProvider
from bookstore_api.domain.interfaces.reporting import ExchangeReporter
from bookstore_api.domain.models.http import ApiResponse, SentRequest
from bookstore_api.domain.models.resources import Resource
from bookstore_api.infrastructure.config.settings import DEFAULTS, ConfigurationError
from bookstore_api.infrastructure.http.request_logging import log_exchange

logger = logging.getLogger(__name__)

USER_AGENT = "Bookstore-API-Automation/1.0"
JSON_CONTENT_TYPE = "application/json"

ResponseHook = Callable[..., Any]


@dataclass(frozen=True)
class RequestTemplate:
    """Read-only base every per-call request is derived from."""

    base_uri: str
    headers: Mapping[str, str]
    content_type: str
    accept: str
    connect_timeout: float
    read_timeout: float
    response_hooks: Tuple[ResponseHook, ...] = ()
    reporters: Tuple[ExchangeReporter, ...] = ()

    @property
    def timeout(self) -> Tuple[float, float]:
        """``(connect, read)`` in seconds, the form ``requests`` expects."""
        return (self.connect_timeout, self.read_timeout)


_NO_BODY = object()


class RequestBuilder:
    """Per-call request, seeded from a snapshot of the template.

    Setters return the builder so calls can be chained::

        client.get_request_spec().path_param("id", 5).get("/Books/{id}")
    """

    def __init__(self, template: RequestTemplate, session: requests.Session):
        self.template = template
        self._session = session
        self._headers: Dict[str, str] = dict(template.headers)
        self._path_params: Dict[str, Any] = {}
        self._query_params: Dict[str, Any] = {}
        self._body: Any = _NO_BODY

    @property
    def headers(self) -> Dict[str, str]:
        """Copy of the headers this request will send."""
        return dict(self._headers)

    def header(self, name: str, value: str) -> "RequestBuilder":
        """Sets a header on this request only.

        Args:
            name: Header name. Replaces a template default of the same name.
            value: Header value.

        Returns:
            RequestBuilder: This builder, for chaining.
        """
        self._headers[name] = value
        return self

    def without_header(self, name: str) -> "RequestBuilder":
        """Drops a header, e.g. to send a request with no Content-Type."""
        self._headers.pop(name, None)
        return self

    def bearer_token(self, token: str) -> "RequestBuilder":
        """Adds ``Authorization: Bearer <token>``."""
        return self.header("Authorization", f"Bearer {token}")

    def content_type(self, value: str) -> "RequestBuilder":
        return self.header("Content-Type", value)

    def path_param(self, name: str, value: Any) -> "RequestBuilder":
        """Binds a ``{name}`` placeholder in the request path.

        Args:
            name: Placeholder name without braces.
            value: Substituted as ``str(value)``, URL-quoted.

        Returns:
            RequestBuilder: This builder, for chaining.
        """
        self._path_params[name] = value
        return self

    def query_param(self, name: str, value: Any) -> "RequestBuilder":
        """Adds a query string parameter."""
        self._query_params[name] = value
        return self

    def body(self, payload: Any) -> "RequestBuilder":
        """Sets a JSON body. Resources are serialized with ``to_payload()``."""
        if isinstance(payload, Resource):
            payload = payload.to_payload()
        self._body = json.dumps(payload).encode("utf-8")
        return self

    def raw_body(self, data: Union[str, bytes]) -> "RequestBuilder":
        """Sets the body verbatim, e.g. for malformed-JSON tests."""
        self._body = data.encode("utf-8") if isinstance(data, str) else data
        return self

    def build_url(self, path: str) -> str:
        """Expands path parameters and prefixes the base URI.

        Args:
            path: Path relative to the API base, e.g. ``/Books/{id}``.

        Returns:
            str: The absolute URL.

        Raises:
            ValueError: If the path names a parameter that was never bound.
        """
        try:
            expanded = path.format_map(
                {name: quote(str(value), safe="") for name, value in self._path_params.items()}
            )
        except KeyError as e:
            raise ValueError(f"Missing path parameter {e} for path '{path}'") from e
        return self.template.base_uri + expanded

    def get(self, path: str) -> ApiResponse:
        """Sends a GET. See ``request``."""
        return self.request("GET", path)

    def post(self, path: str) -> ApiResponse:
        """Sends a POST with the body set on this builder, if any."""
        return self.request("POST", path)

    def put(self, path: str) -> ApiResponse:
        """Sends a PUT with the body set on this builder, if any."""
        return self.request("PUT", path)

    def patch(self, path: str) -> ApiResponse:
        return self.request("PATCH", path)

    def delete(self, path: str) -> ApiResponse:
        """Sends a DELETE. No body unless one was set explicitly."""
        return self.request("DELETE", path)

    def request(self, method: str, path: str) -> ApiResponse:
        """Sends the request and captures the response.

        Raises:
            requests.RequestException: On transport failure. Not retried.
        """
        request = requests.Request(
            method=method.upper(),
            url=self.build_url(path),
            headers=self._headers,
            params=self._query_params or None,
            data=None if self._body is _NO_BODY else self._body,
            hooks={"response": list(self.template.response_hooks)},
        )
        prepared = self._session.prepare_request(request)

        try:
            response = self._session.send(prepared, timeout=self.template.timeout)
        except requests.RequestException as e:
            logger.error(f"{prepared.method} {prepared.url} failed: {type(e).__name__}: {e}")
            raise

        api_response = _capture(prepared, response)
        for reporter in self.template.reporters:
            reporter.record_exchange(api_response)
        return api_response


def _capture(prepared: requests.PreparedRequest, response: requests.Response) -> ApiResponse:
    body = prepared.body
    if isinstance(body, str):
        body = body.encode("utf-8")
    return ApiResponse(
        status_code=response.status_code,
        elapsed=response.elapsed,
        content_type=response.headers.get("Content-Type", ""),
        body=response.content or b"",
        headers=dict(response.headers),
        request=SentRequest(
            method=prepared.method or "",
            url=prepared.url or "",
            headers=dict(prepared.headers),
            body=body,
        ),
    )


class ApiClient:
    """Owns the shared request template and the transport session."""

    def __init__(
        self,
        config: ConfigurationProvider,
        reporters: Sequence[ExchangeReporter] = (),
        adapters: Optional[Mapping[str, BaseAdapter]] = None,
    ):
        """Initializes the client and builds the template.

        Args:
            config: Resolved configuration.
            reporters: Reporting adapters that receive every exchange.
            adapters: Extra transport adapters keyed by URL prefix, mounted
                on every session this client builds.

        Raises:
            ConfigurationError: If the base URL or API version is missing.
        """
        self.config = config
        self._reporters = tuple(reporters)
        self._adapters = dict(adapters or {})
        self._lock = threading.Lock()
        self._template: Optional[RequestTemplate] = None
        self._session: Optional[requests.Session] = None
        self.initialize()

    def initialize(self) -> RequestTemplate:
        """Builds the template and a fresh session from current configuration.

        A session left over from an earlier call is closed once the new one
        is in place.

        Returns:
            RequestTemplate: The template new builders are seeded from.

        Raises:
            ConfigurationError: If the base URL or API version is missing.
        """
        if not self.config.base_url.strip():
            raise ConfigurationError("base.url is required to initialize the API client")
        if not self.config.api_version.strip():
            raise ConfigurationError("api.version is required to initialize the API client")

        hooks: Tuple[ResponseHook, ...] = ()
        if self.config.get_bool("log.requests", DEFAULTS["log.requests"]):
            hooks = (log_exchange,)

        template = RequestTemplate(
            base_uri=self.config.api_base_path,
            headers=MappingProxyType({
                "User-Agent": USER_AGENT,
                "Content-Type": JSON_CONTENT_TYPE,
                "Accept": JSON_CONTENT_TYPE,
            }),
            content_type=JSON_CONTENT_TYPE,
            accept=JSON_CONTENT_TYPE,
            connect_timeout=float(self.config.get_int("connection.timeout", DEFAULTS["connection.timeout"])),
            read_timeout=float(self.config.get_int("timeout", DEFAULTS["timeout"])),
            response_hooks=hooks,
            reporters=self._reporters,
        )
        session = self._build_session()

        with self._lock:
            old_session = self._session
            self._template = template
            self._session = session
        if old_session is not None:
            old_session.close()
        logger.info(f"ApiClient initialized with base URI: {template.base_uri}")
        return template

    def reset(self) -> RequestTemplate:
        """Discards transport state and rebuilds the template."""
        template = self.initialize()
        logger.debug("ApiClient reset completed")
        return template

    def _build_session(self) -> requests.Session:
        session = requests.Session()
        no_retries = HTTPAdapter(max_retries=0)
        session.mount("https://", no_retries)
        session.mount("http://", no_retries)
        for prefix, adapter in self._adapters.items():
            session.mount(prefix, adapter)
        return session

    @property
    def template(self) -> RequestTemplate:
        if self._template is None:
            raise RuntimeError("ApiClient is not initialized")
        return self._template

    @property
    def base_url(self) -> str:
        return self.template.base_uri

    def get_request_spec(self) -> RequestBuilder:
        """Returns a fresh builder seeded from the current template."""
        with self._lock:
            template, session = self._template, self._session
        if template is None or session is None:
            raise RuntimeError("ApiClient is not initialized")
        return RequestBuilder(template, session)

    def close(self) -> None:
        with self._lock:
            session = self._session
            self._session = None
        if session is not None:
            session.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
