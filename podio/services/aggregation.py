"""
Cálculo de puntuaciones de una carrera.

Se dispara cada vez que se escribe el resultado oficial de una carrera: el
host (la API de resultados) llama a `handle_result_written` con el evento.
Todas las puntuaciones de la carrera se escriben en un único batch, así que
la clasificación nunca ve una carrera a medio puntuar. Repetir el mismo
evento deja exactamente el mismo estado (las claves son deterministas).
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable

from pydantic import ValidationError

from podio.db import collections
from podio.db.store import DocumentStore, StoreError
from podio.schemas.race import Prediction, RaceResult, Score, utcnow
from podio.services.scoring import TRACKED_POSITIONS, score_prediction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResultWritten:
    """Evento 'resultado escrito'. result=None significa que se ha borrado."""
    race_id: str
    result: RaceResult | None = None


@dataclass
class AggregationReport:
    race_id: str
    scores: dict[str, int] = field(default_factory=dict)  # {uid: puntos}

    @property
    def scored(self) -> int:
        return len(self.scores)


def latest_per_user(predictions: Iterable[Prediction]) -> list[Prediction]:
    """
    Una predicción por usuario. Si hay varias (datos antiguos que se
    añadían en vez de sobrescribir) gana la más reciente.
    """
    latest: dict[str, Prediction] = {}
    for p in predictions:
        current = latest.get(p.uid)
        if current is None or p.submitted_at >= current.submitted_at:
            latest[p.uid] = p
    return [latest[uid] for uid in sorted(latest)]


class ScoreAggregationJob:

    def __init__(
        self,
        store: DocumentStore,
        positions: Iterable[str] = TRACKED_POSITIONS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.positions = tuple(positions)
        self.clock = clock

    def load_predictions(self, race_id: str) -> list[Prediction]:
        docs = self.store.query(collections.PREDICTIONS, race_id=race_id)
        try:
            return latest_per_user(Prediction.model_validate(doc) for doc in docs)
        except ValidationError as e:
            # Un documento corrupto es un fallo de lectura: no se puntúa nada de la carrera
            raise StoreError(f"Predicción corrupta en la carrera {race_id}: {e}") from e

    def handle_result_written(self, event: ResultWritten) -> AggregationReport | None:
        if event.result is None:
            # Borrado: no se toca nada de lo ya puntuado
            logger.info("Resultado de %s borrado, no se recalcula", event.race_id)
            return None

        actual = event.result.positions

        try:
            predictions = self.load_predictions(event.race_id)
        except Exception:
            logger.exception("No se pudieron leer las predicciones de %s", event.race_id)
            raise

        computed_at = self.clock()
        report = AggregationReport(race_id=event.race_id)
        batch = self.store.batch()

        try:
            for prediction in predictions:
                points = score_prediction(prediction.positions, actual, self.positions)
                score = Score(
                    uid=prediction.uid,
                    race_id=event.race_id,
                    score=points,
                    computed_at=computed_at,
                )
                batch.set(
                    collections.SCORES,
                    collections.score_key(prediction.uid, event.race_id),
                    score.model_dump(mode="json"),
                )
                report.scores[prediction.uid] = points

            batch.commit()
        except Exception:
            batch.abort()
            logger.exception("Fallo guardando puntuaciones de %s, no se ha escrito nada", event.race_id)
            raise

        logger.info("Carrera %s puntuada: %d predicciones", event.race_id, report.scored)
        return report
