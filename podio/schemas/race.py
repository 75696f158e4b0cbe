from pydantic import BaseModel, Field
from datetime import datetime, timezone

# {"p1": "VER", "p2": "LEC", "p3": "NOR"}
PositionMap = dict[str, str]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Entrada de la API
class PositionsIn(BaseModel):
    positions: PositionMap


# Documentos guardados
class RaceResult(BaseModel):
    race_id: str
    positions: PositionMap
    updated_at: datetime = Field(default_factory=utcnow)


class Prediction(BaseModel):
    uid: str
    race_id: str
    positions: PositionMap
    submitted_at: datetime = Field(default_factory=utcnow)


class Score(BaseModel):
    uid: str
    race_id: str
    score: int = Field(ge=0)
    computed_at: datetime = Field(default_factory=utcnow)
