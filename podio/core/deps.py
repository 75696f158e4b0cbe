from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from podio.core.config import Settings
from podio.core.security import decode_access_token
from podio.db import collections
from podio.db.store import DocumentStore
from podio.schemas.user import UserRecord
from podio.services.aggregation import ScoreAggregationJob
from podio.services.leaderboard import LeaderboardBuilder

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

# El almacén y los servicios los construye create_app y viven en app.state

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_store(request: Request) -> DocumentStore:
    return request.app.state.store

def get_scoring_job(request: Request) -> ScoreAggregationJob:
    return request.app.state.scoring_job

def get_leaderboard_builder(request: Request) -> LeaderboardBuilder:
    return request.app.state.leaderboard

def get_current_user(
    token: str = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_store),
) -> UserRecord:
    try:
        payload = decode_access_token(token, settings)
        uid = payload.get("sub")
    except JWTError:
        raise HTTPException(status_code=401, detail="Token inválido")

    if not uid:
        raise HTTPException(status_code=401, detail="Token inválido")

    user = store.get(collections.USERS, uid)
    if not user:
        raise HTTPException(status_code=401, detail="Usuario no encontrado")

    return UserRecord.model_validate(user)

def require_admin(
    current_user: UserRecord = Depends(get_current_user),
):
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
