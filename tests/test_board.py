"""Tests for kanban drop resolution and column grouping."""

from app.modules.tasks.board import DropTarget, compute_drop_position, find_column, group_by_status


def _tasks():
    return [
        {"id": "a", "status": "not_started", "position": 0},
        {"id": "b", "status": "not_started", "position": 1},
        {"id": "c", "status": "in_progress", "position": 0},
        {"id": "d", "status": "in_progress", "position": 1},
        {"id": "e", "status": "in_progress", "position": 2},
    ]


class TestFindColumn:
    def test_column_id_is_its_own_column(self):
        assert find_column("review", _tasks()) == "review"

    def test_task_id_resolves_to_its_status(self):
        assert find_column("d", _tasks()) == "in_progress"

    def test_unknown_id(self):
        assert find_column("zzz", _tasks()) is None


class TestComputeDropPosition:
    def test_drop_on_empty_column_lands_at_top(self):
        assert compute_drop_position(_tasks(), "a", "review") == DropTarget("review", 0)

    def test_drop_on_column_appends_to_bottom(self):
        assert compute_drop_position(_tasks(), "a", "in_progress") == DropTarget("in_progress", 3)

    def test_drop_on_task_takes_its_index(self):
        assert compute_drop_position(_tasks(), "a", "d") == DropTarget("in_progress", 1)

    def test_reorder_within_column_ignores_the_dragged_task(self):
        # Without "c" the column is [d, e]; dropping on "e" lands at index 1
        assert compute_drop_position(_tasks(), "c", "e") == DropTarget("in_progress", 1)

    def test_drop_on_own_column_moves_to_bottom(self):
        assert compute_drop_position(_tasks(), "a", "not_started") == DropTarget("not_started", 1)

    def test_nothing_under_pointer_reverts(self):
        assert compute_drop_position(_tasks(), "a", None) is None

    def test_unknown_target_reverts(self):
        assert compute_drop_position(_tasks(), "a", "missing") is None

    def test_unknown_dragged_task_reverts(self):
        assert compute_drop_position(_tasks(), "ghost", "review") is None

    def test_positions_are_sorted_before_indexing(self):
        tasks = [
            {"id": "x", "status": "review", "position": 5},
            {"id": "y", "status": "review", "position": 2},
            {"id": "z", "status": "not_started", "position": 0},
        ]
        assert compute_drop_position(tasks, "z", "x") == DropTarget("review", 1)


class TestGroupByStatus:
    def test_every_column_present_and_sorted(self):
        tasks = [
            {"id": "2", "status": "completed", "position": 3},
            {"id": "1", "status": "completed", "position": 1},
            {"id": "3", "status": "archived", "position": 0},
        ]
        grouped = group_by_status(tasks)
        assert list(grouped) == ["not_started", "in_progress", "review", "completed"]
        assert [t["id"] for t in grouped["completed"]] == ["1", "2"]
        assert grouped["review"] == []
