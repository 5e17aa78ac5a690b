# crud/local_store.py
import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

import models
from errors import CorruptedCache

logger = logging.getLogger("local_store")


class LocalStore:
    """
    Key/value access to the installation-local store. Every write commits
    immediately so a crash never loses an acknowledged value.
    """
    def __init__(self, db: Session):
        self.db = db

    def get_raw(self, key: str) -> Optional[str]:
        entry = self.db.get(models.LocalStoreEntry, key)
        return entry.value if entry else None

    def get(self, key: str, default: Any = None) -> Any:
        """
        Returns the decoded JSON value for key, or default when missing.
        Raises CorruptedCache when the stored text is not valid JSON.
        """
        raw = self.get_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CorruptedCache(key, str(e)) from e

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        entry = self.db.get(models.LocalStoreEntry, key)
        if entry:
            entry.value = payload
        else:
            self.db.add(models.LocalStoreEntry(key=key, value=payload))
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Commit failed writing key=%s", key)
            raise

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        (self.db.query(models.LocalStoreEntry)
            .filter(models.LocalStoreEntry.key.in_(keys))
            .delete(synchronize_session="fetch"))
        self.db.commit()

    def get_or_clear(self, key: str, default: Any = None, *also_clear: str) -> Any:
        """Like get(), but a corrupted value is logged, deleted and read as default."""
        try:
            return self.get(key, default)
        except CorruptedCache as e:
            logger.warning("Corrupted local store entry %s, clearing: %s", key, e.message)
            self.delete(key, *also_clear)
            return default
