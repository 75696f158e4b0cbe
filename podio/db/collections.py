RESULTS = "results"
PREDICTIONS = "predictions"
SCORES = "scores"
USERS = "users"


def prediction_key(race_id: str, uid: str) -> str:
    # Una predicción por usuario y carrera: reenviar sobrescribe
    return f"{race_id}_{uid}"


def score_key(uid: str, race_id: str) -> str:
    return f"{uid}_{race_id}"
