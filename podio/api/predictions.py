from fastapi import APIRouter, HTTPException, Depends
from podio.core.config import Settings
from podio.core.deps import get_current_user, get_settings, get_store
from podio.db import collections
from podio.db.store import DocumentStore
from podio.schemas.race import PositionsIn, Prediction
from podio.schemas.user import UserRecord
from podio.services.scoring import missing_positions

router = APIRouter(prefix="/predictions", tags=["Predictions"])

@router.post("/{race_id}")
def upsert_prediction(
    race_id: str,
    payload: PositionsIn,   # {"positions": {"p1": "VER", "p2": "LEC", "p3": "NOR"}}
    current_user: UserRecord = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    missing = missing_positions(payload.positions, settings.tracked_positions)
    if missing:
        raise HTTPException(status_code=400, detail=f"Faltan posiciones: {', '.join(missing)}")

    prediction = Prediction(
        uid=current_user.uid,
        race_id=race_id,
        positions=payload.positions,
    )

    # Clave determinista: si ya había predicción se sobrescribe
    store.set(
        collections.PREDICTIONS,
        collections.prediction_key(race_id, current_user.uid),
        prediction.model_dump(mode="json"),
    )

    return {"message": "Predicción guardada"}

@router.get("/{race_id}/me")
def get_my_prediction(
    race_id: str,
    current_user: UserRecord = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    doc = store.get(collections.PREDICTIONS, collections.prediction_key(race_id, current_user.uid))
    if not doc:
        return None
    return Prediction.model_validate(doc)
