import logging
from collections import defaultdict

from podio.db import collections
from podio.db.store import DocumentStore, StoreError
from podio.schemas.leaderboard import LeaderboardEntry
from podio.schemas.race import Score

logger = logging.getLogger(__name__)


def sort_entries(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    # Más puntos primero; empates por uid para que el orden sea estable
    return sorted(entries, key=lambda e: (-e.total_score, e.uid))


class LeaderboardBuilder:

    def __init__(self, store: DocumentStore):
        self.store = store

    def resolve_username(self, uid: str) -> str:
        """Nombre visible del usuario. Si no hay identidad, el propio uid."""
        try:
            user = self.store.get(collections.USERS, uid)
        except StoreError:
            logger.warning("No se pudo resolver el usuario %s, se usa el uid", uid, exc_info=True)
            return uid

        if not user or not user.get("username"):
            return uid
        return user["username"]

    def _entries(self, totals: dict[str, int]) -> list[LeaderboardEntry]:
        entries = [
            LeaderboardEntry(uid=uid, username=self.resolve_username(uid), total_score=total)
            for uid, total in totals.items()
        ]
        return sort_entries(entries)

    def build(self) -> list[LeaderboardEntry]:
        """Clasificación histórica: suma de todas las puntuaciones por usuario."""
        totals: dict[str, int] = defaultdict(int)

        for doc in self.store.all(collections.SCORES):
            score = Score.model_validate(doc)
            totals[score.uid] += score.score

        return self._entries(totals)

    def build_race(self, race_id: str) -> list[LeaderboardEntry]:
        totals = {
            doc["uid"]: Score.model_validate(doc).score
            for doc in self.store.query(collections.SCORES, race_id=race_id)
        }
        return self._entries(totals)
