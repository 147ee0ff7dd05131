from bookstore_api.core.services.resource_service import ResourceService
from bookstore_api.core.services.book_service import BookService
from bookstore_api.core.services.author_service import AuthorService

__all__ = ["ResourceService", "BookService", "AuthorService"]
