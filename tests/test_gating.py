"""Tests for linear task gating."""
import itertools

import pytest

from simtrack.engine.gating import TaskStatus, all_completed, task_status, task_statuses


class TestTaskStatus:
    def test_empty_set_opens_only_first_task(self):
        assert task_statuses(set(), 5) == [
            TaskStatus.AVAILABLE,
            TaskStatus.LOCKED,
            TaskStatus.LOCKED,
            TaskStatus.LOCKED,
            TaskStatus.LOCKED,
        ]

    def test_completing_first_unlocks_second(self):
        statuses = task_statuses({0}, 5)
        assert statuses[0] is TaskStatus.COMPLETED
        assert statuses[1] is TaskStatus.AVAILABLE
        assert statuses[2:] == [TaskStatus.LOCKED] * 3

    def test_membership_wins_over_sequencing(self):
        """An out-of-order completion (admin override) still reports completed."""
        assert task_status(3, {0, 3}) is TaskStatus.COMPLETED
        assert task_status(1, {0, 3}) is TaskStatus.AVAILABLE
        assert task_status(2, {0, 3}) is TaskStatus.LOCKED
        assert task_status(4, {0, 3}) is TaskStatus.AVAILABLE

    def test_status_values_are_strings(self):
        assert TaskStatus.AVAILABLE.value == "available"
        assert TaskStatus.AVAILABLE == "available"

    @pytest.mark.parametrize("total", [1, 3, 5])
    def test_linear_gating_holds_for_every_subset(self, total):
        for size in range(total + 1):
            for combo in itertools.combinations(range(total), size):
                completed = set(combo)
                statuses = task_statuses(completed, total)
                assert statuses[0] in (TaskStatus.AVAILABLE, TaskStatus.COMPLETED)
                for i in range(1, total):
                    if statuses[i] is TaskStatus.AVAILABLE:
                        assert (i - 1) in completed
                    if statuses[i] is TaskStatus.COMPLETED:
                        assert i in completed


class TestAllCompleted:
    def test_all_completed(self):
        assert all_completed({0, 1, 2}, 3) is True

    def test_partial(self):
        assert all_completed({0, 1}, 5) is False

    def test_extra_indices_do_not_count(self):
        assert all_completed({0, 1, 7}, 3) is False

    def test_empty_simulation_is_never_completed(self):
        assert all_completed(set(), 0) is False
