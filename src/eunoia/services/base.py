"""Generic record service.

Every entity kind follows the same load-entire-list, mutate, save-entire-list
cycle against its storage slot. :class:`RecordService` implements that cycle
once; the per-entity services only declare their storage key, model and sort
order, plus whatever extra operation the entity needs.

Not-found is a return value here, never an exception: ``update`` returns
None and ``delete`` returns False, and storage is left untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, TypeVar

from eunoia.core.models import Record, new_record_id
from eunoia.core.storage import StorageContext, load_list, save_list

T = TypeVar("T", bound=Record)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
_MANAGED_FIELDS = frozenset({"id", "created_at", "updated_at"})


class RecordService(Generic[T]):
    """CRUD over one storage slot.

    Class Attributes:
        storage_key: Slot holding this entity's records.
        model: Record class stored in the slot.
        sort_field: Datetime attribute ``get_all`` sorts by, or None to keep
            stored order (newest additions first).
        sort_descending: Sort direction for ``sort_field``.
        default_now_fields: Fields set to the current time on ``add`` when
            the caller leaves them out.

    Example:
        >>> service = TaskService(context)
        >>> task = service.add(title="Water plants")
        >>> service.update(task.id, status=TaskStatus.COMPLETED)
        >>> service.delete(task.id)
        True
    """

    storage_key: ClassVar[str]
    model: ClassVar[type[Record]]
    sort_field: ClassVar[str | None] = None
    sort_descending: ClassVar[bool] = True
    default_now_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, context: StorageContext) -> None:
        self._context = context
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def context(self) -> StorageContext:
        return self._context

    # =========================================================================
    # Storage cycle
    # =========================================================================

    def _load(self) -> list[T]:
        return load_list(self._context, self.storage_key, self.model)  # type: ignore[return-value]

    def _save(self, items: list[T]) -> None:
        save_list(self._context, self.storage_key, items)

    def _now(self) -> datetime:
        return self._context.clock.now()

    def _sorted(self, items: list[T], field: str | None = None, descending: bool | None = None) -> list[T]:
        field = field or self.sort_field
        if field is None:
            return items
        reverse = self.sort_descending if descending is None else descending
        return sorted(items, key=lambda item: getattr(item, field) or _EARLIEST, reverse=reverse)

    def _normalize_fields(self, data: Mapping[str, Any] | None, fields: dict[str, Any]) -> dict[str, Any]:
        """Merge positional and keyword fields, accepting camelCase aliases.

        Raises:
            ValueError: If a field name is not part of the model.
        """
        aliases = {info.alias: name for name, info in self.model.model_fields.items() if info.alias}
        merged: dict[str, Any] = {}
        for key, value in {**(data or {}), **fields}.items():
            name = aliases.get(key, key)
            if name not in self.model.model_fields:
                raise ValueError(f"Unknown {self.model.__name__} field: {key}")
            merged[name] = value
        return merged

    # =========================================================================
    # Operations
    # =========================================================================

    def get_all(self) -> list[T]:
        """Return every record, in this entity's display order."""
        return self._sorted(self._load())

    def get(self, record_id: str) -> T | None:
        return next((item for item in self._load() if item.id == record_id), None)

    def add(self, data: Mapping[str, Any] | None = None, **fields: Any) -> T:
        """Create a record with a fresh id and timestamps, then persist it.

        Args:
            data: Field values as a mapping (snake_case or camelCase keys).
            **fields: Field values as keyword arguments.

        Returns:
            The stored record.

        Raises:
            pydantic.ValidationError: If the fields do not form a valid record.
        """
        values = {k: v for k, v in self._normalize_fields(data, fields).items() if k not in _MANAGED_FIELDS}
        now = self._now()
        values["id"] = new_record_id()
        for stamp in ("created_at", "updated_at"):
            if stamp in self.model.model_fields:
                values[stamp] = now
        for name in self.default_now_fields:
            values.setdefault(name, now)

        record = self.model.model_validate(values)
        items = self._load()
        items.insert(0, record)  # type: ignore[arg-type]
        self._save(items)
        self._logger.debug(f"Added {self.model.__name__} {record.id}")
        return record  # type: ignore[return-value]

    def update(self, record_id: str, data: Mapping[str, Any] | None = None, **changes: Any) -> T | None:
        """Merge ``changes`` into the record with ``record_id``.

        ``updated_at`` is bumped where the model tracks it. ``id`` and
        ``created_at`` cannot be changed.

        Returns:
            The updated record, or None if no record has that id.
        """
        values = {k: v for k, v in self._normalize_fields(data, changes).items() if k not in _MANAGED_FIELDS}
        items = self._load()
        index = next((i for i, item in enumerate(items) if item.id == record_id), None)
        if index is None:
            self._logger.debug(f"{self.model.__name__} {record_id} not found for update")
            return None

        merged = {**items[index].model_dump(), **values}
        if "updated_at" in self.model.model_fields:
            merged["updated_at"] = self._now()

        updated = self.model.model_validate(merged)
        items[index] = updated  # type: ignore[assignment]
        self._save(items)
        return updated  # type: ignore[return-value]

    def delete(self, record_id: str) -> bool:
        """Remove the record with ``record_id``.

        Returns:
            True if a record was removed, False if the id was absent.
        """
        items = self._load()
        remaining = [item for item in items if item.id != record_id]
        if len(remaining) == len(items):
            return False
        self._save(remaining)
        return True

    def replace_all(self, items: list[T]) -> None:
        """Overwrite the whole slot (bulk import)."""
        self._save(list(items))
