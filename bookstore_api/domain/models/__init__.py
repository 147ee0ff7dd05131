from bookstore_api.domain.models.common import (
    NON_PERSISTENT_SANDBOX_HOST,
    Endpoints,
    ResourceId,
    ResourcePath,
    StatusCode,
    StatusCodes,
)
from bookstore_api.domain.models.http import ApiResponse, ResponseDecodeError, SentRequest
from bookstore_api.domain.models.resources import Author, Book, Resource

__all__ = [
    "NON_PERSISTENT_SANDBOX_HOST",
    "Endpoints",
    "ResourceId",
    "ResourcePath",
    "StatusCode",
    "StatusCodes",
    "ApiResponse",
    "ResponseDecodeError",
    "SentRequest",
    "Author",
    "Book",
    "Resource",
]
