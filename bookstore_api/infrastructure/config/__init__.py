from bookstore_api.infrastructure.config.settings import (
    Configuration,
    ConfigurationError,
    expects_persistent_deletes,
    get_configuration,
    is_non_persistent_target,
    reset_configuration,
)

__all__ = [
    "Configuration",
    "ConfigurationError",
    "expects_persistent_deletes",
    "get_configuration",
    "is_non_persistent_target",
    "reset_configuration",
]
