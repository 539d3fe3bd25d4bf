from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .models import Priority, TodoRecord, decode_records, encode_records, generate_todo_id, utcnow
from .storage import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "@todos"

# Failures absorbed by the store: I/O on either side of the storage call and
# payloads that do not decode into a list of records (pydantic.ValidationError
# is a ValueError).
_ABSORBED = (StorageError, OSError, ValueError)


# PUBLIC_INTERFACE
class TodoStore:
    """
    Owns the ordered, newest-first list of todo records and keeps it
    reconciled with a key-value storage backend under one fixed key.

    A single instance is shared by the list and detail views. Storage
    failures never propagate: they are logged and the triggering operation
    degrades to a no-op. Mutations hold a lock across their storage round
    trip so overlapping requests on the shared instance apply one at a time.
    """

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._todos: List[TodoRecord] = []
        self._lock = asyncio.Lock()

    @property
    def key(self) -> str:
        return self._key

    @property
    def todos(self) -> List[TodoRecord]:
        """Copies of the current records, newest first."""
        return [t.model_copy() for t in self._todos]

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self._todos if t.completed)

    @property
    def total_count(self) -> int:
        return len(self._todos)

    def _index_of(self, todo_id: str) -> Optional[int]:
        for i, t in enumerate(self._todos):
            if t.id == todo_id:
                return i
        return None

    def _new_id(self) -> str:
        taken = {t.id for t in self._todos}
        todo_id = generate_todo_id()
        while todo_id in taken:
            todo_id = generate_todo_id()
        return todo_id

    async def _read_persisted(self) -> Optional[List[TodoRecord]]:
        """
        Read and decode the persisted list. Returns [] when nothing is stored
        and None when the read or decode failed.
        """
        try:
            raw = await self._storage.get(self._key)
            if raw is None:
                return []
            return decode_records(raw)
        except _ABSORBED:
            logger.exception("Error loading todos from key %r", self._key)
            return None

    async def _write(self, records: List[TodoRecord]) -> bool:
        try:
            await self._storage.set(self._key, encode_records(records))
        except _ABSORBED:
            logger.exception("Error saving todos to key %r", self._key)
            return False
        return True

    async def load(self) -> List[TodoRecord]:
        """
        Replace the in-memory list with the persisted one. An absent key or
        any read/decode failure leaves the collection empty.
        """
        async with self._lock:
            records = await self._read_persisted()
            self._todos = records or []
            logger.debug("Loaded %d todos from key %r", len(self._todos), self._key)
            return self.todos

    async def save(self) -> bool:
        """Write the full in-memory list, replacing the stored value."""
        async with self._lock:
            return await self._write(self._todos)

    async def add(self, text: str) -> Optional[TodoRecord]:
        """
        Prepend a new medium-priority record. Blank text (after trimming) is
        ignored and returns None.
        """
        trimmed = (text or "").strip()
        if not trimmed:
            return None
        async with self._lock:
            record = TodoRecord(id=self._new_id(), text=trimmed, created_at=utcnow())
            self._todos = [record, *self._todos]
            await self._write(self._todos)
            return record.model_copy()

    async def toggle(self, todo_id: str) -> Optional[TodoRecord]:
        """Flip the completed flag. Unknown ids are a no-op returning None."""
        async with self._lock:
            i = self._index_of(todo_id)
            if i is None:
                logger.debug("toggle: no todo with id %r", todo_id)
                return None
            current = self._todos[i]
            updated = current.model_copy(update={"completed": not current.completed})
            self._todos = [*self._todos[:i], updated, *self._todos[i + 1:]]
            await self._write(self._todos)
            return updated.model_copy()

    async def delete(self, todo_id: str) -> bool:
        """Remove a record. Returns False (without saving) if the id is unknown."""
        async with self._lock:
            remaining = [t for t in self._todos if t.id != todo_id]
            if len(remaining) == len(self._todos):
                logger.debug("delete: no todo with id %r", todo_id)
                return False
            self._todos = remaining
            await self._write(self._todos)
            return True

    async def open_detail(self, todo_id: str) -> Optional[TodoRecord]:
        """Return a snapshot of the record as currently persisted, or None."""
        records = await self._read_persisted()
        for t in records or []:
            if t.id == todo_id:
                return t
        return None

    async def update_detail(
        self, todo_id: str, comment: str, priority: Priority
    ) -> Optional[TodoRecord]:
        """
        Overwrite comment and priority of one record with a read-merge-write
        against storage rather than the in-memory list. Text, completion,
        creation time and id are left untouched.

        After a successful write the edited record replaces its counterpart
        in the in-memory list, so a later list-side save keeps the edit.
        Returns the updated record, or None on a lookup miss or failure.
        """
        async with self._lock:
            records = await self._read_persisted()
            if not records:
                return None
            updated: Optional[TodoRecord] = None
            merged: List[TodoRecord] = []
            for t in records:
                if t.id == todo_id:
                    t = t.model_copy(update={"comment": comment, "priority": Priority(priority)})
                    updated = t
                merged.append(t)
            if updated is None:
                logger.debug("update_detail: no todo with id %r", todo_id)
                return None
            if not await self._write(merged):
                return None
            self._todos = [updated if t.id == todo_id else t for t in self._todos]
            return updated.model_copy()
