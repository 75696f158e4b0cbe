from pydantic import BaseModel, ConfigDict, Field


class LeaderboardEntry(BaseModel):
    """Fila de la clasificación. Se calcula en cada consulta, no se guarda."""
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    username: str
    total_score: int = Field(alias="totalScore")
