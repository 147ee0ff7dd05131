"""Response wrapper returned by every client-core and service call."""

import json
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional


class ResponseDecodeError(ValueError):
    """Raised when a response body cannot be decoded into the expected shape."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        snippet = body if len(body) <= 200 else body[:200] + "..."
        super().__init__(f"{message} (status={status_code}, body={snippet!r})")


@dataclass(frozen=True)
class SentRequest:
    """What was actually put on the wire for one call."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    def json(self) -> Any:
        """Decodes the transmitted body, for asserting on outgoing payloads."""
        if self.body is None:
            return None
        return json.loads(self.body.decode("utf-8"))


@dataclass(frozen=True)
class ApiResponse:
    """Captured HTTP response, scoped to a single call."""

    status_code: int
    elapsed: timedelta
    content_type: str
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)
    request: Optional[SentRequest] = None

    @property
    def text(self) -> str:
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError:
            return self.body.decode("latin-1")

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed.total_seconds() * 1000)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def is_json(self) -> bool:
        return "application/json" in self.content_type.lower()

    def json(self) -> Any:
        """Parses the body as JSON.

        Raises:
            ResponseDecodeError: If the body is empty or not valid JSON.
        """
        if not self.body:
            raise ResponseDecodeError("Response body is empty", self.status_code, "")
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as e:
            raise ResponseDecodeError(
                f"Response body is not valid JSON: {e.msg}", self.status_code, self.text
            ) from e
