"""Defines common Value Objects and constants shared by every layer.

Endpoint paths are relative to the API base path
(``<base.url>/api/<api.version>``).
"""

from typing import NewType

# === Core Value Objects ===

ResourceId = NewType("ResourceId", int)        # Server-assigned identifier
ResourcePath = NewType("ResourcePath", str)    # Path template relative to the API base path
StatusCode = NewType("StatusCode", int)        # HTTP status code

# Known non-persistent sandbox target: accepts writes/deletes but does not store them.
NON_PERSISTENT_SANDBOX_HOST = "fakerestapi.azurewebsites.net"


class Endpoints:
    """Resource paths exposed by the Bookstore API."""

    BOOKS = ResourcePath("/Books")
    BOOKS_BY_ID = ResourcePath("/Books/{id}")

    AUTHORS = ResourcePath("/Authors")
    AUTHORS_BY_ID = ResourcePath("/Authors/{id}")

    @staticmethod
    def books_by_id(book_id: int) -> str:
        return f"{Endpoints.BOOKS}/{book_id}"

    @staticmethod
    def authors_by_id(author_id: int) -> str:
        return f"{Endpoints.AUTHORS}/{author_id}"


class StatusCodes:
    """HTTP status codes the suite asserts on."""

    # 2xx
    OK = StatusCode(200)
    CREATED = StatusCode(201)
    ACCEPTED = StatusCode(202)
    NO_CONTENT = StatusCode(204)

    # 4xx
    BAD_REQUEST = StatusCode(400)
    UNAUTHORIZED = StatusCode(401)
    FORBIDDEN = StatusCode(403)
    NOT_FOUND = StatusCode(404)
    METHOD_NOT_ALLOWED = StatusCode(405)
    CONFLICT = StatusCode(409)
    UNSUPPORTED_MEDIA_TYPE = StatusCode(415)
    UNPROCESSABLE_ENTITY = StatusCode(422)

    # 5xx
    INTERNAL_SERVER_ERROR = StatusCode(500)
    BAD_GATEWAY = StatusCode(502)
    SERVICE_UNAVAILABLE = StatusCode(503)
    GATEWAY_TIMEOUT = StatusCode(504)

    SUCCESSFUL_CREATE = (OK, CREATED)
    SUCCESSFUL_DELETE = (OK, ACCEPTED, NO_CONTENT)
