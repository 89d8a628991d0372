"""Key-value storage for record lists.

Each entity kind owns one storage slot: a string key whose value is a JSON
array of records. Three interchangeable stores sit behind
:class:`KeyValueStore`:

- :class:`FileStore`: one JSON file per key in a local directory.
- :class:`MemoryStore`: a dict, used for the sample dataset and tests.
- :class:`CloudStore`: a per-user document store reached over HTTPS
  (Firebase Realtime Database REST layout, ``users/{uid}/{key}.json``).

Services never talk to a store directly. They go through
:func:`load_list` / :func:`save_list` with a :class:`StorageContext`, the
explicit bundle of store, data mode and clock that every service call
receives.

Error policy:
- A missing slot reads as an empty list.
- A malformed slot is logged, removed, and read as an empty list.
- An unreachable cloud store raises :class:`StorageUnavailableError`.

Example:
    >>> context = StorageContext(store=MemoryStore())
    >>> save_list(context, TASKS_KEY, [Task(title="Write report")])
    >>> [t.title for t in load_list(context, TASKS_KEY, Task)]
    ['Write report']
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import requests
from pydantic import ValidationError

from eunoia.config import AppConfig, DataMode, StorageBackend, get_config
from eunoia.core.clock import Clock, SystemClock
from eunoia.core.models import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


# =============================================================================
# Storage Keys
# =============================================================================

TASKS_KEY = "prodev-tasks"
CALENDAR_EVENTS_KEY = "prodev-calendar-events"
EXPENSES_KEY = "prodev-expenses"
NOTES_KEY = "prodev-notes"
GOALS_KEY = "prodev-goals"
HABITS_KEY = "prodev-habits"
REMINDERS_KEY = "prodev-reminders"
DAILY_LOGS_KEY = "4eunoia-daily-logs"
GRATITUDE_KEY = "4eunoia-wellness-gratitude"
REFRAMING_KEY = "4eunoia-wellness-reframing"

ALL_USER_DATA_KEYS: tuple[str, ...] = (
    TASKS_KEY,
    CALENDAR_EVENTS_KEY,
    EXPENSES_KEY,
    NOTES_KEY,
    GOALS_KEY,
    HABITS_KEY,
    REMINDERS_KEY,
    DAILY_LOGS_KEY,
    GRATITUDE_KEY,
    REFRAMING_KEY,
)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


# =============================================================================
# Exceptions
# =============================================================================


class StorageError(Exception):
    """Base exception for storage errors.

    Attributes:
        message: Human-readable error description.
        key: The storage key involved, if any.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key


class StorageParseError(StorageError):
    """A storage slot does not hold a valid list of records."""

    pass


class StorageUnavailableError(StorageError):
    """The backing store could not be reached."""

    pass


# =============================================================================
# Stores
# =============================================================================


class KeyValueStore(ABC):
    """String-keyed store of string values."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the raw value for ``key``, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Overwrite the value for ``key``."""

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Delete ``key``. Returns True if something was removed."""

    @abstractmethod
    def keys(self) -> list[str]:
        """List the keys currently present."""


class MemoryStore(KeyValueStore):
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)


class FileStore(KeyValueStore):
    """One UTF-8 JSON file per key under ``directory``.

    Writes go to a temporary file that is then renamed over the target, so a
    crash mid-write leaves either the old or the new slot, never half of one.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}{self.SUFFIX}"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read {path}: {type(e).__name__}", key) from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageUnavailableError(f"Cannot write {path}: {type(e).__name__}", key) from e

    def remove(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageUnavailableError(f"Cannot remove {path}: {type(e).__name__}", key) from e

    def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{self.SUFFIX}"))


class CloudStore(KeyValueStore):
    """Per-user document store over the Firebase Realtime Database REST API.

    Each key maps to ``{base_url}/users/{user_id}/{key}.json``. Lists written
    by other clients with ``push()`` come back as an object keyed by push id;
    :meth:`get` normalizes those into a JSON array with each push id stored
    as the record ``id``.

    Args:
        base_url: Database URL, e.g. ``https://my-app.firebaseio.com``.
        user_id: The authenticated user's id.
        auth_token: ID token or database secret sent as ``?auth=``.
        timeout: Seconds to wait for each request.
        session: Optional pre-configured requests session.
    """

    def __init__(
        self,
        base_url: str,
        user_id: str,
        auth_token: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout
        self._auth_token = auth_token
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def _url(self, key: str | None = None) -> str:
        if key is None:
            return f"{self.base_url}/users/{self.user_id}.json"
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return f"{self.base_url}/users/{self.user_id}/{key}.json"

    def _params(self, **extra: str) -> dict[str, str]:
        params = dict(extra)
        if self._auth_token:
            params["auth"] = self._auth_token
        return params

    def _request(self, method: str, url: str, key: str | None, **kwargs: Any) -> requests.Response:
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            # Never include the URL: it carries the auth token
            raise StorageUnavailableError(
                f"Cloud store {method} failed: {type(e).__name__}", key
            ) from e
        return response

    def get(self, key: str) -> str | None:
        response = self._request("GET", self._url(key), key, params=self._params())
        try:
            payload = response.json()
        except ValueError:
            # Malformed body is the decoder's problem, not a transport failure
            return response.text
        if payload is None:
            return None
        if isinstance(payload, dict):
            payload = [
                {"id": push_id, **value} if isinstance(value, dict) else value
                for push_id, value in payload.items()
            ]
        return json.dumps(payload)

    def set(self, key: str, value: str) -> None:
        self._request(
            "PUT",
            self._url(key),
            key,
            params=self._params(),
            data=value.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    def remove(self, key: str) -> bool:
        existed = self.get(key) is not None
        self._request("DELETE", self._url(key), key, params=self._params())
        return existed

    def keys(self) -> list[str]:
        response = self._request("GET", self._url(), None, params=self._params(shallow="true"))
        payload = response.json()
        return sorted(payload) if isinstance(payload, dict) else []


# =============================================================================
# Storage Context
# =============================================================================


@dataclass(frozen=True)
class StorageContext:
    """Everything a service call needs to reach its records.

    Attributes:
        store: The key-value store holding the record lists.
        mode: Whether ``store`` holds sample or user data.
        clock: Time source for timestamps and "today".
    """

    store: KeyValueStore
    mode: DataMode = DataMode.USER
    clock: Clock = field(default_factory=SystemClock)

    @classmethod
    def from_config(cls, config: AppConfig | None = None, clock: Clock | None = None) -> "StorageContext":
        """Build a context from configuration.

        Sample mode gets a fresh in-memory store seeded with generated demo
        records. User mode gets a :class:`FileStore` or :class:`CloudStore`
        depending on ``storage.backend``.

        Raises:
            ValueError: If the cloud backend is selected without a URL or user id.
        """
        config = config or get_config()
        clock = clock or SystemClock()
        storage = config.storage

        if storage.mode == DataMode.SAMPLE:
            from eunoia.core.sample_data import build_sample_store

            return cls(store=build_sample_store(clock), mode=DataMode.SAMPLE, clock=clock)

        if storage.backend == StorageBackend.CLOUD:
            if not storage.cloud_url or not storage.user_id:
                raise ValueError("Cloud storage requires storage.cloud_url and storage.user_id")
            token = storage.auth_token.get_secret_value() if storage.auth_token else None
            store: KeyValueStore = CloudStore(
                storage.cloud_url,
                storage.user_id,
                auth_token=token,
                timeout=storage.request_timeout_seconds,
            )
        else:
            store = FileStore(storage.data_dir)

        return cls(store=store, mode=DataMode.USER, clock=clock)


# =============================================================================
# List Codec
# =============================================================================


def decode_records(raw: str, model: type[R], key: str | None = None) -> list[R]:
    """Parse a stored JSON array into records.

    Raises:
        StorageParseError: If ``raw`` is not a JSON array of valid records.
    """
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StorageParseError(f"Invalid JSON: {e.msg}", key) from e

    if not isinstance(payload, list):
        raise StorageParseError(f"Expected a JSON array, got {type(payload).__name__}", key)

    try:
        return [model.model_validate(item) for item in payload if item is not None]
    except ValidationError as e:
        raise StorageParseError(
            f"{e.error_count()} invalid field(s) in {model.__name__} records", key
        ) from e


def encode_records(items: Iterable[Record]) -> str:
    return json.dumps([item.to_storage() for item in items], ensure_ascii=False)


def load_list(context: StorageContext, key: str, model: type[R]) -> list[R]:
    """Load every record stored under ``key``.

    A missing slot returns an empty list. A malformed slot is logged,
    removed, and also returns an empty list.
    """
    raw = context.store.get(key)
    if raw is None or not raw.strip():
        return []

    try:
        return decode_records(raw, model, key)
    except StorageParseError as e:
        logger.error(f"Discarding malformed storage slot '{key}': {e.message}")
        context.store.remove(key)
        return []


def save_list(context: StorageContext, key: str, items: Iterable[Record]) -> None:
    """Overwrite the slot for ``key`` with ``items``."""
    context.store.set(key, encode_records(items))


def clear_user_data(context: StorageContext) -> int:
    """Remove every record slot. Returns the number of slots removed."""
    removed = 0
    for key in ALL_USER_DATA_KEYS:
        if context.store.remove(key):
            removed += 1
    logger.info(f"Cleared {removed} storage slot(s) in {context.mode.value} mode")
    return removed
