"""Loads and exposes configuration settings for the test-client core.

Sources, lowest to highest priority:
1. YAML key/value file (``bookstore.yaml``; keys such as ``base.url``)
2. ``.env`` file
3. Environment variables (``BOOKSTORE_BASE_URL`` for ``base.url``)
4. Documented defaults for anything still unset

The resolved values are frozen when the Configuration is built. Typed
accessors never raise for a malformed value: they log a warning and hand
back the default. Only a missing or unreadable configuration file is fatal.
"""

import logging
import os
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from dotenv import dotenv_values

from bookstore_api.domain.interfaces.config import ConfigurationProvider
from bookstore_api.domain.models.common import NON_PERSISTENT_SANDBOX_HOST

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_FILE_NAME = "bookstore.yaml"
CONFIG_FILE_ENV_VAR = "BOOKSTORE_CONFIG_FILE"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "BOOKSTORE_"

DEFAULTS: Dict[str, Any] = {
    "base.url": "https://fakerestapi.azurewebsites.net",
    "api.version": "v1",
    "timeout": 30,
    "connection.timeout": 10,
    "logging.enabled": True,
    "log.level": "INFO",
    "log.requests": True,
    "retry.count": 2,
    "environment": "dev",
    "deletion.persistence": False,
}

# No default, but still overridable from the environment. Read by logger_setup.
OPTIONAL_KEYS = ("log.format", "log.file")

TRUE_VALUES = frozenset({"true", "yes", "on", "1"})
FALSE_VALUES = frozenset({"false", "no", "off", "0"})


class ConfigurationError(RuntimeError):
    """Fatal configuration problem: the suite cannot determine its target."""


def env_var_name(key: str) -> str:
    """Maps a dotted config key to its environment override name."""
    return ENV_PREFIX + key.upper().replace(".", "_")


def find_upwards(file_name: str, start: Optional[Path] = None) -> Optional[Path]:
    """Searches for ``file_name`` in ``start`` (default: cwd) and its parents."""
    current_dir = start or Path.cwd()
    for path in [current_dir] + list(current_dir.parents):
        candidate = path / file_name
        if candidate.is_file():
            return candidate
    return None


def resolve_config_path(config_file: Optional[Union[str, Path]] = None) -> Path:
    """Works out which YAML file to load.

    Raises:
        ConfigurationError: If no file can be located.
    """
    if config_file is None:
        config_file = os.environ.get(CONFIG_FILE_ENV_VAR) or None
    if config_file is not None:
        path = Path(config_file)
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found: {path}")
        return path

    found = find_upwards(DEFAULT_CONFIG_FILE_NAME)
    if found is None:
        raise ConfigurationError(
            f"{DEFAULT_CONFIG_FILE_NAME} not found in {Path.cwd()} or any parent directory"
        )
    return found


def _flatten(mapping: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML sections into dotted keys (``base: {url: x}`` -> ``base.url``)."""
    flat: Dict[str, Any] = {}
    for key, value in mapping.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def read_config_file(path: Path) -> Dict[str, Any]:
    """Reads the YAML configuration file into a flat key/value dict.

    An empty file is valid and yields no values.

    Raises:
        ConfigurationError: If the file is unreadable, not YAML, or not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse configuration file {path}: {e}") from e

    if data is None:
        logger.debug(f"Configuration file {path} is empty, using defaults.")
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a key/value mapping, got {type(data).__name__}"
        )
    return _flatten(data)


class Configuration(ConfigurationProvider):
    """Immutable, resolved configuration for one test process."""

    def __init__(self, values: Mapping[str, Any], source: Optional[Path] = None):
        self._values: Mapping[str, Any] = MappingProxyType(dict(values))
        self.source = source

    # --- Construction ---

    @classmethod
    def load(
        cls,
        config_file: Optional[Union[str, Path]] = None,
        env_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True,
    ) -> "Configuration":
        """Loads configuration from the YAML file, .env file and environment.

        Args:
            config_file: Path to the YAML file (see ``resolve_config_path``).
            env_file: Path to a .env file (searched upwards from cwd if None).
            environ: Environment mapping; defaults to ``os.environ``.
            load_env_file: Set False to skip the .env layer entirely.

        Raises:
            ConfigurationError: If the YAML file is missing or unreadable.
        """
        path = resolve_config_path(config_file)
        values = read_config_file(path)
        logger.info(f"Loaded configuration from YAML: {path}")

        env_layer: Dict[str, Optional[str]] = {}
        if load_env_file:
            dotenv_path = Path(env_file) if env_file else find_upwards(ENV_FILE_NAME)
            if dotenv_path and dotenv_path.is_file():
                env_layer.update(dotenv_values(dotenv_path))
                logger.info(f"Loaded environment variables from: {dotenv_path}")
            else:
                logger.debug(".env file not found, skipping.")
        env_layer.update(os.environ if environ is None else environ)

        for key in set(DEFAULTS) | set(OPTIONAL_KEYS) | set(values):
            override = env_layer.get(env_var_name(key))
            if override is not None:
                logger.debug(f"Config key '{key}' overridden by {env_var_name(key)}")
                values[key] = override

        config = cls(values, source=path)
        logger.info(f"Configuration initialized for environment: {config.environment}")
        return config

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Configuration":
        """Builds a configuration from a plain dict, without files or environment."""
        return cls(_flatten(values))

    # --- Typed accessors ---

    def get(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        if key in self._values:
            return self._values[key]
        logger.debug(f"Config key '{key}' not set. Returning default: {default}")
        return default

    def get_string(self, key: str, default: str = "") -> str:
        value = self.get(key)
        if value is None:
            return default
        return str(value)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            return default
        if isinstance(value, bool):
            logger.warning(f"Invalid integer value for key '{key}': {value}. Using default: {default}")
            return default
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            logger.warning(f"Invalid integer value for key '{key}': {value}. Using default: {default}")
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            return default
        if isinstance(value, bool):
            return value
        normalized = str(value).strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
        logger.warning(f"Invalid boolean value for key '{key}': {value}. Using default: {default}")
        return default

    # --- Named settings ---

    @property
    def base_url(self) -> str:
        return self.get_string("base.url", DEFAULTS["base.url"])

    @property
    def api_version(self) -> str:
        return self.get_string("api.version", DEFAULTS["api.version"])

    @property
    def timeout(self) -> int:
        """Read timeout in seconds."""
        return self.get_int("timeout", DEFAULTS["timeout"])

    @property
    def connection_timeout(self) -> int:
        """Connect timeout in seconds."""
        return self.get_int("connection.timeout", DEFAULTS["connection.timeout"])

    @property
    def logging_enabled(self) -> bool:
        return self.get_bool("logging.enabled", DEFAULTS["logging.enabled"])

    @property
    def log_level(self) -> str:
        return self.get_string("log.level", DEFAULTS["log.level"]).upper()

    @property
    def request_logging_enabled(self) -> bool:
        return self.get_bool("log.requests", DEFAULTS["log.requests"])

    @property
    def retry_count(self) -> int:
        return self.get_int("retry.count", DEFAULTS["retry.count"])

    @property
    def environment(self) -> str:
        return self.get_string("environment", DEFAULTS["environment"])

    @property
    def deletion_persistence(self) -> bool:
        return self.get_bool("deletion.persistence", DEFAULTS["deletion.persistence"])

    def as_dict(self) -> Dict[str, Any]:
        """Resolved, typed view of every known setting plus the derived base path."""
        return {
            "environment": self.environment,
            "base.url": self.base_url,
            "api.version": self.api_version,
            "api.base.path": self.api_base_path,
            "timeout": self.timeout,
            "connection.timeout": self.connection_timeout,
            "logging.enabled": self.logging_enabled,
            "log.level": self.log_level,
            "log.requests": self.request_logging_enabled,
            "retry.count": self.retry_count,
            "deletion.persistence": self.deletion_persistence,
        }

    def log_configuration(self) -> None:
        """Logs every resolved setting at INFO."""
        logger.info("=== Configuration Settings ===")
        for key, value in self.as_dict().items():
            logger.info(f"{key}: {value}")
        logger.info("==============================")

    def __repr__(self) -> str:
        return f"Configuration(environment={self.environment!r}, api_base_path={self.api_base_path!r})"


# --- Process-wide default instance ---
_instance: Optional[Configuration] = None
_instance_lock = threading.Lock()


def get_configuration() -> Configuration:
    """Returns the process default Configuration, loading it on first use.

    Concurrent first calls load the file exactly once.
    """
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                _instance = Configuration.load()
    return _instance


def reset_configuration() -> None:
    """Drops the process default so the next ``get_configuration`` reloads it."""
    global _instance
    with _instance_lock:
        _instance = None


def is_non_persistent_target(config: ConfigurationProvider) -> bool:
    """True when the configured target is the known non-persistent sandbox."""
    return NON_PERSISTENT_SANDBOX_HOST in config.base_url


def expects_persistent_deletes(config: ConfigurationProvider) -> bool:
    """Whether a DELETE should be verified by a follow-up 404.

    Requires ``deletion.persistence`` and a target other than the sandbox.
    """
    return (
        config.get_bool("deletion.persistence", DEFAULTS["deletion.persistence"])
        and not is_non_persistent_target(config)
    )
