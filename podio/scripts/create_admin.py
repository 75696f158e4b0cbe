import logging
from typing import Optional
import typer
from fastapi import HTTPException
from podio.api.auth import create_user, find_user
from podio.core.config import get_settings
from podio.core.logging import setup_logging
from podio.db.store import DocumentStore, StoreError
from podio.db.sql_store import SqlStore

logger = logging.getLogger(__name__)


def create_admin_user(store: DocumentStore, email: str, username: str, password: str):
    # Comprobar si ya existe
    existing_user = find_user(store, email) or find_user(store, username)
    if existing_user:
        logger.warning(
            "Ya existe un usuario con ese email o username: %s (%s, rol %s)",
            existing_user["username"], existing_user["email"], existing_user["role"],
        )
        return None

    try:
        admin_user = create_user(store, email, username, password, role="admin")
    except HTTPException as e:
        logger.error("Error creando el usuario administrador: %s", e.detail)
        return None

    logger.info("Usuario administrador creado: %s / %s", email, username)
    return admin_user


app = typer.Typer(help="Crea el usuario administrador.")


@app.command()
def main(
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Contraseña del admin."),
    email: str = typer.Option("administrador@example.com", help="Email del admin."),
    username: str = typer.Option("ADMINISTRADOR", help="Nombre de usuario del admin."),
    database_url: Optional[str] = typer.Option(None, help="URL de la base de datos (por defecto PODIO_DATABASE_URL)."),
) -> None:
    settings = get_settings()
    setup_logging(settings.log_level)

    store = SqlStore(database_url or settings.database_url)
    try:
        store.create_tables()
        admin_user = create_admin_user(store, email, username, password)
    except StoreError:
        logger.exception("No se pudo acceder a la base de datos")
        raise
    finally:
        store.close()

    if admin_user is None:
        raise typer.Exit(code=1)
    typer.echo(f"Admin creado: {admin_user.email} / {admin_user.username}")


if __name__ == "__main__":
    app()
