from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str):
    connect_args = {}
    # SQLite + FastAPI: las peticiones pueden llegar desde otro hilo
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        # Escritores concurrentes esperan al lock en vez de fallar
        connect_args["timeout"] = 30
    return create_engine(database_url, connect_args=connect_args)


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
