"""Tests for the local progress cache."""
from simtrack.engine.cache import LocalProgressCache, LocalProgressSnapshot
from simtrack.engine.storage import SharedStorage

from tests.conftest import ATTEMPT_ID, SIM_ID, TOTAL, BrokenStorage


def make_snapshot(indices=(0, 1)):
    return LocalProgressSnapshot(
        simulation_id=SIM_ID,
        attempt_id=ATTEMPT_ID,
        completed_task_indices=list(indices),
        total_task_count=TOTAL,
    )


class TestLocalProgressCache:
    def test_key_uses_prefix(self, cache: LocalProgressCache):
        assert cache.key_for(SIM_ID) == f"simulation_progress_{SIM_ID}"

    def test_round_trip(self, cache: LocalProgressCache):
        snap = make_snapshot((0, 1, 3))
        cache.write(snap)
        read = cache.read(SIM_ID)
        assert read == snap
        assert read.completed_task_indices == [0, 1, 3]

    def test_missing_entry_is_absent(self, cache: LocalProgressCache):
        assert cache.read(SIM_ID) is None

    def test_malformed_entry_is_absent(self, cache: LocalProgressCache, tab):
        tab.set_item(cache.key_for(SIM_ID), "{not json")
        assert cache.read(SIM_ID) is None

    def test_wrong_shape_is_absent(self, cache: LocalProgressCache, tab):
        tab.set_item(cache.key_for(SIM_ID), '{"attemptId": "x", "completedTasks": [0]}')
        assert cache.read(SIM_ID) is None

    def test_entry_for_other_simulation_is_absent(self, cache: LocalProgressCache, tab):
        other = make_snapshot().model_copy(update={"simulation_id": "data-analyst"})
        tab.set_item(cache.key_for(SIM_ID), other.model_dump_json())
        assert cache.read(SIM_ID) is None

    def test_clear(self, cache: LocalProgressCache):
        cache.write(make_snapshot())
        cache.clear(SIM_ID)
        assert cache.read(SIM_ID) is None

    def test_overwrite_is_unconditional(self, cache: LocalProgressCache):
        cache.write(make_snapshot((0, 1, 2)))
        cache.write(make_snapshot((0,)))
        assert cache.read(SIM_ID).completed_task_indices == [0]


class TestUnavailableStorage:
    def test_every_operation_is_a_no_op(self):
        cache = LocalProgressCache(BrokenStorage())
        cache.write(make_snapshot())
        assert cache.read(SIM_ID) is None
        cache.clear(SIM_ID)

    def test_no_storage_at_all(self):
        cache = LocalProgressCache(None)
        cache.write(make_snapshot())
        assert cache.read(SIM_ID) is None

    def test_quota_exceeded_keeps_previous_entry(self):
        shared = SharedStorage(quota_bytes=400)
        cache = LocalProgressCache(shared.area())
        cache.write(make_snapshot((0,)))
        cache.write(make_snapshot(tuple(range(TOTAL))).model_copy(update={"attempt_id": "x" * 500}))
        assert cache.read(SIM_ID).completed_task_indices == [0]
