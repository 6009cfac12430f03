"""
Key-value persistence used by the repository and the scheduling engine.

Values are JSON documents. Every backend raises StorageUnavailableError
when a read or write cannot be completed; callers decide whether to degrade.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_calltracker.core.exceptions import StorageUnavailableError
from hr_calltracker.models.key_value import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the decoded value stored under key, or None."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise StorageUnavailableError(f"Value for '{key}' is not JSON-serializable: {e}", key=key) from e


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise StorageUnavailableError(f"Stored value for '{key}' is not valid JSON", key=key) from e


class InMemoryStore(KeyValueStore):
    """Process-local store for headless runs and tests."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return None if raw is None else _decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqlKeyValueStore(KeyValueStore):
    """Stores each key as one row of the key_value_entries table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[Any]:
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            return None if entry is None else _decode(key, entry.value)
        except SQLAlchemyError as e:
            logger.error(f"Storage read failed for '{key}': {e}")
            raise StorageUnavailableError(f"Could not read '{key}'", key=key) from e
        finally:
            db.close()

    def set(self, key: str, value: Any) -> None:
        payload = _encode(key, value)
        db = self.session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=payload))
            else:
                entry.value = payload
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Storage write failed for '{key}': {e}")
            raise StorageUnavailableError(f"Could not write '{key}'", key=key) from e
        finally:
            db.close()

    def delete(self, key: str) -> None:
        db = self.session_factory()
        try:
            db.query(KeyValueEntry).filter(KeyValueEntry.key == key).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageUnavailableError(f"Could not delete '{key}'", key=key) from e
        finally:
            db.close()
