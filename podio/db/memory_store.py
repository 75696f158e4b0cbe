import copy
import threading

from podio.db.store import Document, DocumentStore, WriteBatch


class MemoryWriteBatch(WriteBatch):

    def __init__(self, store: "MemoryStore"):
        super().__init__()
        self._store = store

    def _apply(self, ops):
        # Todo el batch bajo el mismo lock: ningún lector ve medio batch
        with self._store._lock:
            for op, collection, key, data in ops:
                docs = self._store._data.setdefault(collection, {})
                if op == "set":
                    docs[key] = copy.deepcopy(data)
                else:
                    docs.pop(key, None)


class MemoryStore(DocumentStore):
    """Almacén en memoria. Se usa en tests y en desarrollo."""

    def __init__(self):
        self._data: dict[str, dict[str, Document]] = {}
        self._lock = threading.RLock()

    def get(self, collection, key):
        with self._lock:
            doc = self._data.get(collection, {}).get(key)
            return copy.deepcopy(doc) if doc is not None else None

    def set(self, collection, key, data):
        with self._lock:
            self._data.setdefault(collection, {})[key] = copy.deepcopy(dict(data))

    def delete(self, collection, key):
        with self._lock:
            return self._data.get(collection, {}).pop(key, None) is not None

    def all(self, collection):
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._data.get(collection, {}).values()]

    def keys(self, collection: str) -> list[str]:
        with self._lock:
            return sorted(self._data.get(collection, {}))

    def batch(self):
        return MemoryWriteBatch(self)
