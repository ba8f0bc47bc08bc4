# shop_common/storage.py
"""JSON file backing store and the entity manager base built on it.

Each manager keeps its whole collection in memory, reads the backing file once
when it is constructed and rewrites the file in full after every mutation.
"""
import asyncio
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from shop_common.errors import NotFoundError, StorageIOError
from shop_common.logging import get_logger
from shop_common.realtime import Notifier, NullNotifier

logger = get_logger(__name__)

Record = Dict[str, Any]


class JsonFileStore:
    """A single JSON file holding an array of objects."""

    def __init__(self, path):
        self.path = Path(path)

    def read(self) -> List[Record]:
        # FileNotFoundError and json.JSONDecodeError propagate to the caller
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{self.path} does not contain a JSON array")
        if not all(isinstance(item, dict) for item in data):
            raise ValueError(f"{self.path} contains items that are not JSON objects")
        return data

    def write(self, records: List[Record]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageIOError(str(self.path), f"Could not write {self.path}: {e}") from e


class JsonCollectionManager:
    """
    Base for a manager owning one JSON-file-backed collection with integer ids.

    Mutations run under a per-manager lock, persist the whole collection and
    then publish an event through the injected notifier. With
    strict_persistence a failed write restores the collection to its state
    before the mutation and raises StorageIOError; otherwise the failure is
    only logged and the in-memory change is kept.
    """

    entity_name = "record"
    not_found_message = "Not found"

    def __init__(self, path, notifier: Optional[Notifier] = None, strict_persistence: bool = True):
        self._store = JsonFileStore(path)
        self._notifier = notifier or NullNotifier()
        self._lock = asyncio.Lock()
        self.strict_persistence = strict_persistence
        self.records: List[Record] = []
        self.load()

    @property
    def path(self) -> Path:
        return self._store.path

    def load(self) -> bool:
        """Replace the collection with the backing file contents. Never raises."""
        try:
            data = self._store.read()
        except FileNotFoundError:
            logger.warning(
                f"Backing file {self.path} not found, keeping {len(self.records)} {self.entity_name}(s) in memory"
            )
            return False
        except (OSError, ValueError) as e:
            logger.warning(f"Error loading {self.entity_name}s from {self.path}: {e}")
            return False

        self.records = data
        logger.info(f"Loaded {len(self.records)} {self.entity_name}(s) from {self.path}")
        return True

    def save(self) -> bool:
        """Write the collection to the backing file. Returns False on failure, never raises."""
        try:
            self._store.write(self.records)
        except StorageIOError as e:
            logger.error(f"Error saving {self.entity_name}s: {e.message}")
            return False
        return True

    def next_id(self) -> int:
        # Ids freed by deleting the highest record are handed out again
        ids = [r.get("id") for r in self.records if isinstance(r.get("id"), int)]
        return max(ids, default=0) + 1

    def _find(self, record_id: int) -> Optional[Record]:
        for record in self.records:
            if record.get("id") == record_id:
                return record
        return None

    def get_by_id(self, record_id: int) -> Record:
        record = self._find(record_id)
        if record is None:
            raise NotFoundError(self.not_found_message)
        return record

    def _snapshot(self) -> List[Record]:
        return copy.deepcopy(self.records)

    async def _persist(self, snapshot: List[Record]) -> bool:
        """Write the collection out; must be called with the lock held."""
        try:
            await asyncio.to_thread(self._store.write, self.records)
        except StorageIOError as e:
            if self.strict_persistence:
                self.records = snapshot
                logger.error(f"Error saving {self.entity_name}s, change rolled back: {e.message}")
                raise
            logger.error(f"Error saving {self.entity_name}s, keeping unsaved change: {e.message}")
            return False
        return True

    async def _publish(self, event: str, data: Any) -> None:
        try:
            await self._notifier.publish(event, copy.deepcopy(data))
        except Exception as e:
            logger.warning(f"Failed to publish {event}: {e}", exc_info=True)
