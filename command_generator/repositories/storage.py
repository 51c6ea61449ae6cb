import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..infrastructure.database.tables import KeyValueDBModel
from ..infrastructure.database.connection import engine as default_engine, init_db
from ..state.models import utcnow

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Whole-value storage addressed by fixed slot names.
    Records are opaque strings; serialization belongs to the repositories.
    This allows us change where data lives (Memory -> SQL) later without
    changing the repositories.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Returns the stored value, or None when the slot is empty."""
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        """Overwrites the slot."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Empties the slot. Returns True if something was removed."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """
    Uses in-memory dictionary for storage for testing/dev purposes.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._store: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str):
        self._store[key] = value

    def delete(self, key: str) -> bool:
        if key in self._store:
            del self._store[key]
            return True
        return False


class SQLKeyValueStore(KeyValueStore):
    """
    SQL table storage (SQLite by default, see settings.DATABASE_URL).
    """

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or default_engine
        init_db(self.engine)

    def get(self, key: str) -> Optional[str]:
        with Session(self.engine) as db:
            result = db.get(KeyValueDBModel, key)
            return result.value if result else None

    def set(self, key: str, value: str):
        with Session(self.engine) as db:
            result = db.get(KeyValueDBModel, key)
            if result:
                result.value = value
                result.updated_at = utcnow()
            else:
                result = KeyValueDBModel(key=key, value=value)
            db.add(result)
            db.commit()

    def delete(self, key: str) -> bool:
        with Session(self.engine) as db:
            result = db.get(KeyValueDBModel, key)
            if result:
                db.delete(result)
                db.commit()
                return True
            return False


class SlotRepository:
    """
    Base for repositories that mirror one record into one named slot.

    Persistence is best-effort: a failing store is logged and treated as an
    empty slot on read or a dropped write, so the in-memory state stays
    authoritative.
    """

    key: str = ""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _read(self) -> Optional[str]:
        try:
            return self.store.get(self.key)
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Reading slot '{self.key}' failed: {e}")
            return None

    def _write(self, value: str) -> bool:
        try:
            self.store.set(self.key, value)
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Writing slot '{self.key}' failed: {e}")
            return False

    def clear(self) -> bool:
        try:
            return self.store.delete(self.key)
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Clearing slot '{self.key}' failed: {e}")
            return False
