"""Typed CRUD facade over one Bookstore resource collection.

Every call is a single synchronous round trip through the client core and
returns the raw ``ApiResponse``; status checks and decoding are left to
the caller (``extract_one`` / ``extract_list``). No caching, no session
state between calls, no retries.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar

from bookstore_api.domain.models.common import ResourceId, ResourcePath
from bookstore_api.domain.models.http import ApiResponse, ResponseDecodeError
from bookstore_api.domain.models.resources import Resource
from bookstore_api.infrastructure.http.api_client import ApiClient
from bookstore_api.infrastructure.resilience.poller import (
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_TIMEOUT_S,
    await_until,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Resource)


class ResourceService(Generic[R]):
    """Maps list/get/create/update/delete onto HTTP verbs for resource type ``R``."""

    collection_path: ResourcePath
    item_path: ResourcePath
    model: Type[R]
    label: str = "resource"

    def __init__(self, api_client: ApiClient):
        """Initializes the service with the client core it sends through."""
        self.api_client = api_client

    def list_all(self) -> ApiResponse:
        logger.info(f"Fetching all {self.label}s")
        return self.api_client.get_request_spec().get(self.collection_path)

    def get_by_id(self, resource_id: ResourceId) -> ApiResponse:
        """GET one item. The id is sent as-is; the server decides 400 vs 404."""
        logger.info(f"Fetching {self.label} with ID: {resource_id}")
        return (
            self.api_client.get_request_spec()
            .path_param("id", resource_id)
            .get(self.item_path)
        )

    def create(self, entity: R) -> ApiResponse:
        """POST a new item. Not idempotent: repeated calls may create duplicates."""
        logger.info(f"Creating new {self.label}: {self.describe(entity)}")
        return self.api_client.get_request_spec().body(entity).post(self.collection_path)

    def update(self, resource_id: ResourceId, entity: R) -> ApiResponse:
        """PUT an item. The body id is always replaced by ``resource_id``."""
        logger.info(f"Updating {self.label} with ID: {resource_id}")
        normalized = entity.with_changes(id=resource_id)
        return (
            self.api_client.get_request_spec()
            .path_param("id", resource_id)
            .body(normalized)
            .put(self.item_path)
        )

    def delete(self, resource_id: ResourceId) -> ApiResponse:
        """DELETE an item. Success does not mean the item is gone on every backend."""
        logger.info(f"Deleting {self.label} with ID: {resource_id}")
        return (
            self.api_client.get_request_spec()
            .path_param("id", resource_id)
            .delete(self.item_path)
        )

    def extract_one(self, response: ApiResponse) -> R:
        """Decodes a single item.

        Raises:
            ResponseDecodeError: If the body is not a JSON object or a field
                has the wrong type.
        """
        payload = response.json()
        if not isinstance(payload, dict):
            raise ResponseDecodeError(
                f"Expected a JSON object for {self.model.__name__}, got {type(payload).__name__}",
                response.status_code,
                response.text,
            )
        return self._decode(payload, response)

    def extract_list(self, response: ApiResponse) -> List[R]:
        """Decodes a list of items.

        Raises:
            ResponseDecodeError: If the body is not a JSON array of objects or
                an item has a wrongly typed field.
        """
        payload = response.json()
        if not isinstance(payload, list):
            raise ResponseDecodeError(
                f"Expected a JSON array of {self.model.__name__}, got {type(payload).__name__}",
                response.status_code,
                response.text,
            )
        items = []
        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                raise ResponseDecodeError(
                    f"Item {index} is not a JSON object ({type(item).__name__})",
                    response.status_code,
                    response.text,
                )
            items.append(self._decode(item, response, index))
        return items

    def _decode(self, payload: dict, response: ApiResponse, index: Optional[int] = None) -> R:
        try:
            return self.model.from_payload(payload)
        except TypeError as e:
            where = f"Item {index}: " if index is not None else ""
            raise ResponseDecodeError(f"{where}{e}", response.status_code, response.text) from e

    def await_status(
        self,
        resource_id: ResourceId,
        expected_status: int,
        timeout: float = DEFAULT_TIMEOUT_S,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
    ) -> int:
        """Polls GET-by-id until it answers ``expected_status``.

        Raises:
            PollTimeoutError: If the status never showed up in time.
        """
        return await_until(
            lambda: self.get_by_id(resource_id).status_code == expected_status,
            timeout=timeout,
            poll_interval=poll_interval,
            description=f"GET {self.label} {resource_id} returns {expected_status}",
        )

    def describe(self, entity: R) -> str:
        return repr(entity)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self.api_client.base_url!r})"

