from typing import Iterable, Mapping

TRACKED_POSITIONS = ("p1", "p2", "p3")

EXACT_POINTS = 3
PARTIAL_POINTS = 1


def calculate_position_points(
    predicted: Mapping[str, str],
    actual: Mapping[str, str],
    positions: Iterable[str] = TRACKED_POSITIONS,
) -> dict[str, int]:
    """
    Devuelve: {etiqueta: puntos} para cada posición puntuable.
    - Piloto en la misma posición: 3
    - Piloto en cualquier posición del resultado, pero no en esta: 1
    - Resto (o posición que no está en el resultado): 0
    """
    positions = list(positions)

    # Cualquier piloto del resultado, aunque su posición no se puntúe (p4, p5...)
    real_drivers = set(actual.values())

    points = {}
    for label in positions:
        driver = predicted.get(label)
        if label not in actual or driver is None:
            points[label] = 0
        elif driver == actual[label]:
            points[label] = EXACT_POINTS
        elif driver in real_drivers:
            points[label] = PARTIAL_POINTS
        else:
            points[label] = 0

    return points


def score_prediction(
    predicted: Mapping[str, str],
    actual: Mapping[str, str],
    positions: Iterable[str] = TRACKED_POSITIONS,
) -> int:
    return sum(calculate_position_points(predicted, actual, positions).values())


def max_score(positions: Iterable[str] = TRACKED_POSITIONS) -> int:
    return EXACT_POINTS * len(list(positions))


def missing_positions(positions: Mapping[str, str], required: Iterable[str] = TRACKED_POSITIONS) -> list[str]:
    """Etiquetas obligatorias que faltan o vienen vacías."""
    return [label for label in required if not str(positions.get(label) or "").strip()]
