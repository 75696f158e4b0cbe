from fastapi import APIRouter, Depends
from podio.core.deps import get_leaderboard_builder
from podio.schemas.leaderboard import LeaderboardEntry
from podio.services.leaderboard import LeaderboardBuilder

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])

@router.get("/", response_model=list[LeaderboardEntry])
def leaderboard(builder: LeaderboardBuilder = Depends(get_leaderboard_builder)):
    """Clasificación general: [{uid, username, totalScore}] de más a menos puntos."""
    return builder.build()

@router.get("/race/{race_id}", response_model=list[LeaderboardEntry])
def race_standings(race_id: str, builder: LeaderboardBuilder = Depends(get_leaderboard_builder)):
    return builder.build_race(race_id)
