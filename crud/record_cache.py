# crud/record_cache.py
import logging
from typing import Generic, List, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from crud.local_store import LocalStore

logger = logging.getLogger("record_cache")

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordListCache(Generic[RecordT]):
    """
    Persists a whole merged record list plus a "has loaded at least once"
    flag, so an empty list can be told apart from a list never fetched.
    """
    def __init__(self, store: LocalStore, namespace: str, model: Type[RecordT]):
        self.store = store
        self.model = model
        self.list_key = f"{namespace}.list"
        self.loaded_key = f"{namespace}.loaded"

    def has_loaded(self) -> bool:
        return self.store.get_or_clear(self.loaded_key, False) is True

    def load(self) -> List[RecordT]:
        if not self.has_loaded():
            return []
        raw = self.store.get_or_clear(self.list_key, None, self.loaded_key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Cached %s is not a list, clearing", self.list_key)
            self.clear()
            return []
        try:
            return [self.model.model_validate(item) for item in raw]
        except ValidationError as e:
            logger.warning("Cached %s failed validation, clearing: %s", self.list_key, e)
            self.clear()
            return []

    def save(self, records: Sequence[RecordT]) -> None:
        self.store.set(self.list_key, [r.model_dump(mode="json") for r in records])
        self.store.set(self.loaded_key, True)
        logger.debug("Cached %d records under %s", len(records), self.list_key)

    def clear(self) -> None:
        self.store.delete(self.list_key, self.loaded_key)
