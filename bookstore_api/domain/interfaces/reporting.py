"""Interface for test-reporting adapters.

The HTTP client core hands every completed exchange to the registered
reporters. Publishing (HTML reports, attachments) is up to the
implementation and lives outside this package.
"""

import abc

from bookstore_api.domain.models.http import ApiResponse


class ExchangeReporter(abc.ABC):
    """Abstract Base Class for anything that records request/response pairs."""

    @abc.abstractmethod
    def record_exchange(self, response: ApiResponse) -> None:
        """Records one completed exchange.

        Args:
            response: The captured response; ``response.request`` holds what was sent.
        """
        pass

    def record_step(self, description: str) -> None:
        """Records a named test step. Optional for implementations."""
        pass
