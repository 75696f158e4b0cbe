import logging
import uuid
from fastapi import APIRouter, HTTPException, Depends
from podio.schemas.user import UserCreate, UserLogin, UserOut, UserRecord
from podio.core.config import Settings
from podio.core.security import hash_password, verify_password, create_access_token
from podio.core.deps import get_current_user, get_settings, get_store
from podio.db import collections
from podio.db.store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def find_user(store: DocumentStore, identifier: str) -> dict | None:
    """Busca por email o por username."""
    for field in ("email", "username"):
        matches = store.query(collections.USERS, **{field: identifier})
        if matches:
            return matches[0]
    return None


def create_user(store: DocumentStore, email: str, username: str, password: str, role: str = "user") -> UserRecord:
    # 1. Validar que no exista email o username
    if store.query(collections.USERS, email=email) or store.query(collections.USERS, username=username):
        raise HTTPException(status_code=400, detail="El email o usuario ya está registrado")

    # 2. Crear identidad
    user = UserRecord(
        uid=uuid.uuid4().hex,
        email=email,
        username=username,
        hashed_password=hash_password(password),
        role=role,
    )
    store.set(collections.USERS, user.uid, user.model_dump(mode="json"))
    logger.info("Usuario %s creado (%s)", user.username, user.uid)
    return user


@router.post("/register", status_code=201)
def register(user: UserCreate, store: DocumentStore = Depends(get_store)):
    new_user = create_user(store, user.email, user.username, user.password)
    return {"message": "Usuario creado", "uid": new_user.uid}


@router.post("/login")
def login(
    user: UserLogin,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    db_user = find_user(store, user.identifier)
    if not db_user or not verify_password(user.password, db_user["hashed_password"]):
        raise HTTPException(status_code=401, detail="Credenciales incorrectas")

    token = create_access_token({
        "sub": db_user["uid"],
        "role": db_user["role"],
        "username": db_user["username"],
    }, settings)

    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
def get_current_user_data(current_user: UserRecord = Depends(get_current_user)):
    return current_user
