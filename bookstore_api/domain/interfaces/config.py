"""Interface for configuration providers.

Defines the contract for retrieving settings (target endpoint, timeouts,
logging flags) from layered sources. Typed accessors never raise for a
missing or malformed key; they fall back to the supplied default.
"""

import abc
from typing import Any, Optional


class ConfigurationProvider(abc.ABC):
    """Abstract Base Class for retrieving configuration values."""

    @abc.abstractmethod
    def get(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        """Gets a raw configuration value by key.

        Args:
            key: The configuration key (e.g., 'base.url', 'timeout').
            default: The default value to return if the key is not found.

        Returns:
            The configuration value, or the default if not found.
        """
        pass

    @abc.abstractmethod
    def get_string(self, key: str, default: str = "") -> str:
        pass

    @abc.abstractmethod
    def get_int(self, key: str, default: int = 0) -> int:
        pass

    @abc.abstractmethod
    def get_bool(self, key: str, default: bool = False) -> bool:
        pass

    @property
    @abc.abstractmethod
    def base_url(self) -> str:
        pass

    @property
    @abc.abstractmethod
    def api_version(self) -> str:
        pass

    @property
    def api_base_path(self) -> str:
        """Composite base path, always derived: ``<base_url>/api/<api_version>``."""
        return self.base_url + "/api/" + self.api_version
