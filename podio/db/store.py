"""
Interfaz del almacén de documentos.

Cada registro vive en una colección y se identifica por una clave string.
Las escrituras de varios registros que deben verse juntas van en un
WriteBatch: o se aplican todas con commit() o ninguna.
"""
from abc import ABC, abstractmethod
from typing import Any

Document = dict[str, Any]


class StoreError(Exception):
    """Fallo de lectura o escritura en el almacén."""


class BatchClosedError(StoreError):
    """Se ha intentado usar un batch ya confirmado o abortado."""


class WriteBatch(ABC):

    def __init__(self):
        self._ops: list[tuple[str, str, str, Document | None]] = []
        self._closed = False

    def _check_open(self):
        if self._closed:
            raise BatchClosedError("El batch ya está cerrado")

    def set(self, collection: str, key: str, data: Document) -> "WriteBatch":
        self._check_open()
        self._ops.append(("set", collection, key, dict(data)))
        return self

    def delete(self, collection: str, key: str) -> "WriteBatch":
        self._check_open()
        self._ops.append(("delete", collection, key, None))
        return self

    def __len__(self):
        return len(self._ops)

    def commit(self) -> None:
        """Aplica todas las operaciones de forma atómica."""
        self._check_open()
        try:
            self._apply(self._ops)
        finally:
            self._closed = True
            self._ops = []

    def abort(self) -> None:
        """Descarta las operaciones pendientes. Abortar dos veces no falla."""
        self._closed = True
        self._ops = []

    @abstractmethod
    def _apply(self, ops: list[tuple[str, str, str, Document | None]]) -> None:
        ...


class DocumentStore(ABC):

    @abstractmethod
    def get(self, collection: str, key: str) -> Document | None:
        ...

    @abstractmethod
    def set(self, collection: str, key: str, data: Document) -> None:
        ...

    @abstractmethod
    def delete(self, collection: str, key: str) -> bool:
        """Devuelve True si el documento existía."""

    @abstractmethod
    def all(self, collection: str) -> list[Document]:
        ...

    @abstractmethod
    def batch(self) -> WriteBatch:
        ...

    def query(self, collection: str, **equals: Any) -> list[Document]:
        """Documentos cuyos campos coinciden exactamente con `equals`."""
        return [
            doc for doc in self.all(collection)
            if all(doc.get(field) == value for field, value in equals.items())
        ]

    def close(self) -> None:
        pass
