"""Service for the ``/Books`` collection."""

from bookstore_api.core.services.resource_service import ResourceService
from bookstore_api.domain.models.common import Endpoints
from bookstore_api.domain.models.resources import Book


class BookService(ResourceService[Book]):
    collection_path = Endpoints.BOOKS
    item_path = Endpoints.BOOKS_BY_ID
    model = Book
    label = "book"

    def describe(self, entity: Book) -> str:
        return str(entity.title)
