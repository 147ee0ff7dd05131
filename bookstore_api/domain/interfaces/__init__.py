"""Domain Interfaces: abstract contracts implemented by the infrastructure layer."""

from bookstore_api.domain.interfaces.config import ConfigurationProvider
from bookstore_api.domain.interfaces.reporting import ExchangeReporter

__all__ = ["ConfigurationProvider", "ExchangeReporter"]
