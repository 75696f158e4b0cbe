"""
Tests for duplicate / concurrent deliveries of the same result event.
"""

import threading

from conftest import add_prediction
from podio.db import collections
from podio.schemas.race import RaceResult
from podio.services.aggregation import ResultWritten, ScoreAggregationJob
from podio.services.leaderboard import LeaderboardBuilder

N_PREDICTIONS = 30
DELIVERIES = 4

PODIUM = {"p1": "A", "p2": "B", "p3": "C"}
ROTATED = {"p1": "B", "p2": "C", "p3": "A"}
NOBODY = {"p1": "X", "p2": "Y", "p3": "Z"}


def event(positions=PODIUM):
    return ResultWritten(race_id="r1", result=RaceResult(race_id="r1", positions=positions))


def seed(store, positions_for=lambda i: PODIUM if i % 2 == 0 else ROTATED):
    for i in range(N_PREDICTIONS):
        add_prediction(store, f"u{i:02d}", "r1", positions_for(i))


def run_concurrently(target, times):
    barrier = threading.Barrier(times)
    errors = []

    def worker():
        barrier.wait()
        try:
            target()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(times)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return errors


class TestDuplicateDeliveries:

    def test_same_event_at_once_converges(self, any_store):
        seed(any_store)
        job = ScoreAggregationJob(any_store)

        errors = run_concurrently(lambda: job.handle_result_written(event()), DELIVERIES)

        assert errors == []
        scores = any_store.query(collections.SCORES, race_id="r1")
        assert len(scores) == N_PREDICTIONS
        assert len({doc["uid"] for doc in scores}) == N_PREDICTIONS
        by_uid = {doc["uid"]: doc["score"] for doc in scores}
        assert by_uid["u00"] == 9
        assert by_uid["u01"] == 3

    def test_other_races_run_in_parallel(self, any_store):
        for race_id in ("r1", "r2", "r3"):
            add_prediction(any_store, "u1", race_id, PODIUM)
        job = ScoreAggregationJob(any_store)

        def deliver_all():
            for race_id in ("r1", "r2", "r3"):
                job.handle_result_written(
                    ResultWritten(race_id=race_id, result=RaceResult(race_id=race_id, positions=PODIUM))
                )

        assert run_concurrently(deliver_all, 3) == []
        assert [e.total_score for e in LeaderboardBuilder(any_store).build()] == [27]


class TestReadsDuringAggregation:

    def test_leaderboard_never_sees_half_a_race(self, any_store):
        # Todas iguales: en cada momento la carrera entera vale 9 o entera vale 0
        seed(any_store, positions_for=lambda i: PODIUM)
        job = ScoreAggregationJob(any_store)
        job.handle_result_written(event(PODIUM))
        builder = LeaderboardBuilder(any_store)

        done = threading.Event()
        writer_errors = []

        def writer():
            try:
                for i in range(10):
                    job.handle_result_written(event(NOBODY if i % 2 == 0 else PODIUM))
            except Exception as e:
                writer_errors.append(e)
            finally:
                done.set()

        thread = threading.Thread(target=writer)
        thread.start()

        snapshots = []
        while not done.is_set():
            board = builder.build_race("r1")
            snapshots.append((len(board), {e.total_score for e in board}))
        thread.join()

        assert writer_errors == []
        for size, totals in snapshots:
            assert size == N_PREDICTIONS
            assert totals in ({0}, {9})
