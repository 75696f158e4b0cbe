import logging
from fastapi import APIRouter, HTTPException, Depends
from podio.core.config import Settings
from podio.core.deps import get_scoring_job, get_settings, get_store, require_admin
from podio.db import collections
from podio.db.store import DocumentStore, StoreError
from podio.schemas.race import PositionsIn, RaceResult
from podio.services.aggregation import ResultWritten, ScoreAggregationJob
from podio.services.scoring import missing_positions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/results", tags=["Race Results"])


def dispatch(job: ScoreAggregationJob, event: ResultWritten):
    """Entrega el evento al cálculo de puntuaciones. Si falla, no se ha escrito ninguna puntuación."""
    try:
        return job.handle_result_written(event)
    except StoreError:
        raise HTTPException(status_code=503, detail="No se pudieron calcular las puntuaciones, reintenta")


@router.post("/{race_id}")
def upsert_race_result(
    race_id: str,
    payload: PositionsIn,
    current_user = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
    job: ScoreAggregationJob = Depends(get_scoring_job),
):
    missing = missing_positions(payload.positions, settings.tracked_positions)
    if missing:
        raise HTTPException(status_code=400, detail=f"Faltan posiciones: {', '.join(missing)}")

    result = RaceResult(race_id=race_id, positions=payload.positions)
    store.set(collections.RESULTS, race_id, result.model_dump(mode="json"))

    # 🔥 PUNTUAR AUTOMÁTICAMENTE
    report = dispatch(job, ResultWritten(race_id=race_id, result=result))

    return {
        "message": "Resultado guardado y puntuaciones calculadas",
        "scored": report.scored,
        "scores": report.scores,
    }


@router.get("/{race_id}")
def get_race_result(race_id: str, store: DocumentStore = Depends(get_store)):
    doc = store.get(collections.RESULTS, race_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Resultados no disponibles aún")
    return RaceResult.model_validate(doc)


@router.delete("/{race_id}")
def delete_race_result(
    race_id: str,
    current_user = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    job: ScoreAggregationJob = Depends(get_scoring_job),
):
    if not store.delete(collections.RESULTS, race_id):
        raise HTTPException(status_code=404, detail="Resultado no encontrado")

    # Las puntuaciones ya calculadas se mantienen
    dispatch(job, ResultWritten(race_id=race_id, result=None))

    return {"message": "Resultado eliminado"}
