"""Central Configuration System for 4Eunoia.

This module is the single source of truth for application configuration.
Services never read it implicitly: the values reach them through a
``StorageContext`` or through constructor arguments, so two contexts with
different settings can live side by side (tests rely on this).

The configuration system supports:
- Multi-source configuration (environment variables > config file > defaults)
- API key lookup (environment > system keyring)
- Sample vs. user storage modes, local or cloud backends

Example:
    >>> from eunoia.config import get_config
    >>>
    >>> cfg = get_config()
    >>> print(cfg.storage.mode)  # DataMode.SAMPLE by default
    >>> if cfg.is_ai_available():
    ...     key = get_api_key()

Config File Format (YAML):
    ```yaml
    ai:
      mode: enabled  # enabled | disabled
      model_name: gemini-1.5-flash
      temperature: 0.4
      max_output_tokens: 2048
      timeout_seconds: 60
      max_excerpt_chars: 400
      max_prompt_entries: 40

    storage:
      mode: user  # sample | user
      backend: local  # local | cloud
      data_dir: ~/.eunoia/data
      cloud_url: https://my-project.firebaseio.com
      user_id: abc123

    habits:
      streak_policy: always_increment  # always_increment | reset_on_miss

    log_level: INFO
    debug: false
    ```
"""

from __future__ import annotations

import functools
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import keyring
import keyring.errors
import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Raised when an explicitly requested config file cannot be read."""

    pass


class APIKeyError(ConfigError):
    """Base exception for API key related issues."""

    pass


class APIKeyNotFoundError(APIKeyError):
    """Raised when no API key is found in the environment or the keyring."""

    pass


class APIKeyInvalidError(APIKeyError):
    """Raised when an API key fails basic format checks.

    This does NOT mean the key was rejected by Gemini, only that it is
    obviously malformed (wrong length, embedded whitespace).
    """

    pass


# =============================================================================
# Enums
# =============================================================================


class AIMode(str, Enum):
    """Whether report flows may call the Gemini API.

    Attributes:
        ENABLED: Reports are written by the model when a key is configured.
        DISABLED: No network calls; every report uses the rule-based fallback.
    """

    ENABLED = "enabled"
    DISABLED = "disabled"


class DataMode(str, Enum):
    """Which dataset the services read and write.

    Attributes:
        SAMPLE: A generated demo dataset held in memory. Nothing is persisted.
        USER: The user's own records in the configured backend.
    """

    SAMPLE = "sample"
    USER = "user"


class StorageBackend(str, Enum):
    """Where user-mode records live."""

    LOCAL = "local"
    CLOUD = "cloud"


class StreakPolicy(str, Enum):
    """How a habit streak reacts to a missed period.

    Attributes:
        ALWAYS_INCREMENT: Every completion on a new day adds one to the streak,
            regardless of how long ago the previous completion was.
        RESET_ON_MISS: A completion after a gap longer than the habit's
            frequency allows restarts the streak at 1.
    """

    ALWAYS_INCREMENT = "always_increment"
    RESET_ON_MISS = "reset_on_miss"


class KeySource(str, Enum):
    """Where the API key was found."""

    ENVIRONMENT = "environment"
    KEYRING = "keyring"
    NONE = "none"


# =============================================================================
# Configuration Models
# =============================================================================


class AIConfig(BaseModel):
    """Configuration for the Gemini integration.

    Attributes:
        mode: Whether flows may call the model at all.
        model_name: Gemini model identifier.
        temperature: Sampling temperature (0.0=deterministic, 2.0=creative).
        max_output_tokens: Maximum tokens in a model reply.
        timeout_seconds: Upper bound on a single model call.
        max_excerpt_chars: Longest diary/note excerpt copied into a prompt.
        max_prompt_entries: Most records of one kind serialized into a prompt.
    """

    mode: AIMode = Field(default=AIMode.ENABLED, description="AI activation mode.")
    model_name: str = Field(default="gemini-1.5-flash", description="Gemini model name.")
    temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=2048, ge=100, le=32000)
    timeout_seconds: int = Field(default=60, ge=5, le=600)
    max_excerpt_chars: int = Field(default=400, ge=20, le=5000)
    max_prompt_entries: int = Field(default=40, ge=1, le=500)

    def is_enabled(self) -> bool:
        """Check if AI features are enabled.

        Returns:
            True if mode is ENABLED.
        """
        return self.mode == AIMode.ENABLED


class StorageConfig(BaseModel):
    """Configuration for record storage.

    Attributes:
        mode: Sample (demo) or user data.
        backend: Local JSON files or the per-user cloud document store.
        data_dir: Directory holding one JSON file per storage key.
        cloud_url: Base URL of the cloud document store.
        user_id: Authenticated user id; records live under ``users/{user_id}``.
        auth_token: Token appended to cloud requests.
        request_timeout_seconds: Timeout for a single cloud request.
    """

    mode: DataMode = DataMode.SAMPLE
    backend: StorageBackend = StorageBackend.LOCAL
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".eunoia" / "data")
    cloud_url: str | None = None
    user_id: str | None = None
    auth_token: SecretStr | None = None
    request_timeout_seconds: float = Field(default=10.0, gt=0, le=120)

    @field_validator("data_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        """Expand ~ in the data directory."""
        return Path(v).expanduser()


class HabitConfig(BaseModel):
    """Configuration for habit tracking."""

    streak_policy: StreakPolicy = StreakPolicy.ALWAYS_INCREMENT


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Configuration priority (highest wins):
    1. Environment variables (EUNOIA_*, nested with ``__``)
    2. Config file values passed in by :func:`load_config`
    3. In-code defaults

    Example:
        >>> import os
        >>> os.environ["EUNOIA_STORAGE__MODE"] = "user"
        >>> AppConfig().storage.mode
        <DataMode.USER: 'user'>
    """

    ai: AIConfig = Field(default_factory=AIConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    habits: HabitConfig = Field(default_factory=HabitConfig)
    debug: bool = Field(default=False, description="Enable debug mode.")
    log_level: str = Field(default="INFO", description="Level for the eunoia logger.")
    log_file: Path | None = Field(default=None, description="Optional log file.")

    model_config = {
        "env_prefix": "EUNOIA_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; the environment wins over them.
        return (env_settings, init_settings, file_secret_settings)

    def is_ai_available(self) -> bool:
        """Check if AI is enabled AND an API key is configured.

        Returns:
            True if AI can be used, False otherwise.
        """
        if not self.ai.is_enabled():
            return False
        return APIKeyManager().get_key() is not None


# =============================================================================
# API Key Management
# =============================================================================


class APIKeyManager:
    """Lookup and storage of the Gemini API key.

    Sources tried in priority order:
    1. Environment variables (GEMINI_API_KEY, then GOOGLE_API_KEY)
    2. System keyring (macOS Keychain, Windows Credential Manager, etc.)

    Keys are wrapped in SecretStr and never logged.

    Example:
        >>> manager = APIKeyManager()
        >>> key = manager.get_key()
        >>> if key:
        ...     print(manager.get_key_source())
    """

    KEYRING_SERVICE = "eunoia"
    KEYRING_USERNAME = "gemini"
    ENV_VAR_NAMES = ("GEMINI_API_KEY", "GOOGLE_API_KEY")

    def __init__(self) -> None:
        self._cached_key: SecretStr | None = None
        self._key_source: KeySource = KeySource.NONE

    def get_key(self) -> SecretStr | None:
        """Retrieve the API key trying sources in priority order.

        Returns:
            SecretStr wrapper around the key, or None if not found.
        """
        if self._cached_key is not None:
            return self._cached_key

        key = self._read_from_environment()
        if key and self.validate_key_format(key):
            self._cached_key = SecretStr(key)
            self._key_source = KeySource.ENVIRONMENT
            logger.debug("API key loaded from environment variable")
            return self._cached_key

        key = self._read_from_keyring()
        if key and self.validate_key_format(key):
            self._cached_key = SecretStr(key)
            self._key_source = KeySource.KEYRING
            logger.debug("API key loaded from system keyring")
            return self._cached_key

        self._key_source = KeySource.NONE
        logger.debug("No API key found in any source")
        return None

    def get_key_source(self) -> KeySource:
        """Get the source where the key was found."""
        return self._key_source

    def store_key(self, key: str) -> None:
        """Store the API key in the system keyring.

        Args:
            key: The API key to store.

        Raises:
            APIKeyInvalidError: If the key fails format validation.
            ConfigError: If the keyring rejects the write.
        """
        key = key.strip()
        if not self.validate_key_format(key):
            raise APIKeyInvalidError(
                "API key format validation failed. "
                "Key must be 20-100 characters with no whitespace."
            )
        try:
            keyring.set_password(self.KEYRING_SERVICE, self.KEYRING_USERNAME, key)
        except keyring.errors.KeyringError as e:
            raise ConfigError(f"Failed to store key in keyring: {type(e).__name__}") from e

        self._cached_key = None
        self._key_source = KeySource.NONE
        logger.info("API key stored in system keyring")

    def delete_key(self) -> None:
        """Remove the API key from the system keyring, if present.

        Raises:
            ConfigError: If the keyring fails for a reason other than a missing key.
        """
        try:
            keyring.delete_password(self.KEYRING_SERVICE, self.KEYRING_USERNAME)
        except keyring.errors.PasswordDeleteError:
            pass
        except keyring.errors.KeyringError as e:
            raise ConfigError(f"Failed to delete key from keyring: {type(e).__name__}") from e

        self._cached_key = None
        self._key_source = KeySource.NONE

    def validate_key_format(self, key: str) -> bool:
        """Validate API key format without making an API call.

        Args:
            key: The key string to validate.

        Returns:
            True if the key is 20-100 characters with no whitespace.
        """
        if not key:
            return False
        key = key.strip()
        if len(key) < 20 or len(key) > 100:
            return False
        return not any(c.isspace() for c in key)

    def _read_from_environment(self) -> str | None:
        for name in self.ENV_VAR_NAMES:
            value = os.environ.get(name)
            if value and value.strip():
                return value.strip()
        return None

    def _read_from_keyring(self) -> str | None:
        try:
            return keyring.get_password(self.KEYRING_SERVICE, self.KEYRING_USERNAME)
        except keyring.errors.KeyringError as e:
            # Headless machines often have no usable backend
            logger.debug(f"Keyring access failed: {type(e).__name__}")
            return None


# =============================================================================
# Module-Level Functions
# =============================================================================


DEFAULT_CONFIG_PATHS: tuple[Path, ...] = (
    Path("./eunoia.yaml"),
    Path("./eunoia.yml"),
    Path.home() / ".eunoia" / "config.yaml",
)


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"Cannot read config file {path}: {type(e).__name__}") from e

    if not content.strip():
        return {}

    try:
        loaded = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse config file {path}: {e}. Using defaults.")
        return {}

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        logger.warning(f"Config file {path} has unexpected format. Using defaults.")
        return {}
    return loaded


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, uses defaults only (not an error). If the
    file is malformed or holds invalid values, logs a warning and uses
    defaults.

    Args:
        path: Optional path to config file. If None, searches default locations.

    Returns:
        Fully-populated AppConfig instance.

    Raises:
        ConfigFileError: If ``path`` was given explicitly but cannot be read.

    Example:
        >>> config = load_config()
        >>> config = load_config(Path("./my-config.yaml"))
    """
    config_data: dict[str, Any] = {}

    if path is not None:
        if not path.exists():
            raise ConfigFileError(f"Config file not found: {path}")
        config_data = _read_config_file(path)
    else:
        for candidate in DEFAULT_CONFIG_PATHS:
            if candidate.exists():
                try:
                    config_data = _read_config_file(candidate)
                except ConfigFileError as e:
                    logger.warning(f"{e}. Using defaults.")
                break

    try:
        return AppConfig(**config_data)
    except ValidationError as e:
        logger.warning(f"Error parsing config values: {e.error_count()} invalid field(s). Using defaults.")
        return AppConfig()


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton.

    Returns:
        Cached AppConfig instance.
    """
    return load_config()


def get_api_key() -> SecretStr:
    """Convenience function to get the Gemini API key.

    Returns:
        SecretStr wrapper around the API key.

    Raises:
        APIKeyNotFoundError: If no API key is configured in any source.
    """
    key = APIKeyManager().get_key()
    if key is None:
        raise APIKeyNotFoundError(
            "No API key found. Set GEMINI_API_KEY in the environment "
            "or store one in the system keyring."
        )
    return key


def reset_config() -> None:
    """Clear the configuration cache for testing."""
    get_config.cache_clear()
