"""Verbose request/response logging, installed as a ``requests`` response hook.

Enabled by the ``log.requests`` setting. Output goes to the
``bookstore_api.http`` logger so it can be filtered separately.
"""

import logging
from typing import Any, Mapping, Optional, Union

import requests

http_logger = logging.getLogger("bookstore_api.http")

MAX_LOGGED_BODY_CHARS = 2000
MASKED_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie"})


def _format_body(body: Optional[Union[str, bytes]]) -> str:
    if body is None or body == b"" or body == "":
        return "<none>"
    if isinstance(body, bytes):
        text = body.decode("utf-8", errors="replace")
    else:
        text = body
    if len(text) > MAX_LOGGED_BODY_CHARS:
        return text[:MAX_LOGGED_BODY_CHARS] + f"... ({len(text)} chars)"
    return text


def _format_headers(headers: Mapping[str, str]) -> str:
    shown = []
    for name, value in headers.items():
        if name.lower() in MASKED_HEADERS:
            value = "****"
        shown.append(f"{name}={value}")
    return ", ".join(shown)


def log_exchange(response: requests.Response, *args: Any, **kwargs: Any) -> None:
    """Logs the request that produced ``response`` followed by the response itself."""
    request = response.request
    http_logger.info(f"Request method: {request.method}")
    http_logger.info(f"Request URI:    {request.url}")
    http_logger.info(f"Headers:        {_format_headers(request.headers)}")
    http_logger.info(f"Body:           {_format_body(request.body)}")
    elapsed_ms = int(response.elapsed.total_seconds() * 1000)
    http_logger.info(f"Response:       {response.status_code} {response.reason} ({elapsed_ms} ms)")
    http_logger.info(f"Headers:        {_format_headers(response.headers)}")
    http_logger.info(f"Body:           {_format_body(response.content)}")
