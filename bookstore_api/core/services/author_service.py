"""Service for the ``/Authors`` collection."""

from bookstore_api.core.services.resource_service import ResourceService
from bookstore_api.domain.models.common import Endpoints
from bookstore_api.domain.models.resources import Author


class AuthorService(ResourceService[Author]):
    collection_path = Endpoints.AUTHORS
    item_path = Endpoints.AUTHORS_BY_ID
    model = Author
    label = "author"

    def describe(self, entity: Author) -> str:
        return entity.full_name
