import logging

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from podio.db.models.document import DocumentRow
from podio.db.session import Base, make_engine, make_session_factory
from podio.db.store import DocumentStore, StoreError, WriteBatch

logger = logging.getLogger(__name__)

# INSERT ... ON CONFLICT DO UPDATE por dialecto
DIALECT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


def _find(db: Session, collection: str, key: str):
    return (
        db.query(DocumentRow)
        .filter(DocumentRow.collection == collection, DocumentRow.key == key)
        .first()
    )


def _upsert_fallback(db: Session, collection: str, key: str, data: dict):
    row = _find(db, collection, key)
    if not row:
        try:
            with db.begin_nested():
                db.add(DocumentRow(collection=collection, key=key, data=dict(data)))
            return
        except IntegrityError:
            # Otra transacción la ha insertado entre medias
            row = _find(db, collection, key)
    # Asignamos un dict nuevo para que SQLAlchemy detecte el cambio en el JSON
    row.data = dict(data)
    db.flush()


def _upsert(db: Session, collection: str, key: str, data: dict):
    insert = DIALECT_INSERTS.get(db.get_bind().dialect.name)
    if insert is None:
        _upsert_fallback(db, collection, key, data)
        return

    # Escritura atómica en la base de datos: dos entregas a la vez no chocan con la UniqueConstraint
    stmt = insert(DocumentRow).values(collection=collection, key=key, data=dict(data))
    stmt = stmt.on_conflict_do_update(
        index_elements=["collection", "key"],
        set_={"data": stmt.excluded.data, "updated_at": func.now()},
    )
    db.execute(stmt)


def _json_equals(field: str, value):
    """Condición SQL sobre un campo del JSON, o None si el tipo no se puede comparar en SQL."""
    element = DocumentRow.data[field]
    # bool antes que int: True también es int
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    if isinstance(value, str):
        return element.as_string() == value
    return None


class SqlWriteBatch(WriteBatch):

    def __init__(self, store: "SqlStore"):
        super().__init__()
        self._store = store

    def _apply(self, ops):
        db = self._store.SessionLocal()
        try:
            for op, collection, key, data in ops:
                if op == "set":
                    _upsert(db, collection, key, data)
                else:
                    db.query(DocumentRow).filter(
                        DocumentRow.collection == collection,
                        DocumentRow.key == key
                    ).delete()
            # Una sola transacción: si algo falla no queda nada escrito
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Error confirmando batch de {len(ops)} operaciones: {e}") from e
        finally:
            db.close()


class SqlStore(DocumentStore):
    """Almacén de documentos sobre SQLAlchemy (una tabla `documents`)."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = make_engine(database_url)
        self.SessionLocal = make_session_factory(self.engine)

    def create_tables(self):
        Base.metadata.create_all(bind=self.engine)

    def get(self, collection, key):
        db = self.SessionLocal()
        try:
            row = _find(db, collection, key)
            return dict(row.data) if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"Error leyendo {collection}/{key}: {e}") from e
        finally:
            db.close()

    def set(self, collection, key, data):
        db = self.SessionLocal()
        try:
            _upsert(db, collection, key, data)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Error escribiendo {collection}/{key}: {e}") from e
        finally:
            db.close()

    def delete(self, collection, key):
        db = self.SessionLocal()
        try:
            deleted = (
                db.query(DocumentRow)
                .filter(DocumentRow.collection == collection, DocumentRow.key == key)
                .delete()
            )
            db.commit()
            return deleted > 0
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Error borrando {collection}/{key}: {e}") from e
        finally:
            db.close()

    def all(self, collection):
        db = self.SessionLocal()
        try:
            rows = (
                db.query(DocumentRow)
                .filter(DocumentRow.collection == collection)
                .order_by(DocumentRow.key)
                .all()
            )
            return [dict(row.data) for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"Error leyendo la colección {collection}: {e}") from e
        finally:
            db.close()

    def query(self, collection, **equals):
        filters = [DocumentRow.collection == collection]
        in_python = {}
        for field, value in equals.items():
            clause = _json_equals(field, value)
            if clause is None:
                in_python[field] = value
            else:
                filters.append(clause)

        db = self.SessionLocal()
        try:
            rows = (
                db.query(DocumentRow)
                .filter(*filters)
                .order_by(DocumentRow.key)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Error consultando {collection} {equals}: {e}") from e
        finally:
            db.close()

        docs = [dict(row.data) for row in rows]
        return [
            doc for doc in docs
            if all(doc.get(field) == value for field, value in in_python.items())
        ]

    def batch(self):
        return SqlWriteBatch(self)

    def close(self):
        logger.info("Cerrando conexiones con %s", self.engine.url.render_as_string(hide_password=True))
        self.engine.dispose()
