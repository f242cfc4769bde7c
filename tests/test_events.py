"""
Tests for the board event bridge: repository and column view stay in step.
"""
import pytest

from pkg.taskboard.events import BoardEventBridge
from pkg.taskboard.reducer import build_columns
from pkg.taskboard.schema import TaskStatus
from pkg.taskboard.store import NotFound


@pytest.fixture
def bridge(repo):
    board = repo.create_board("Bridge")
    b = BoardEventBridge(repo, board.id)
    b.load()
    return b


def assert_in_sync(bridge):
    """Column view equals what a fresh load from the repository would build."""
    stored = bridge.repository.get_tasks(bridge.board_id)
    assert bridge.columns == build_columns(stored)
    for col in bridge.columns:
        assert all(t.status.value == col.id for t in col.tasks)


def test_load_default_board(repo):
    bridge = BoardEventBridge(repo)
    cols = bridge.load()
    assert [len(c.tasks) for c in cols] == [1, 0, 0]


def test_add_task(bridge):
    events = []
    bridge.subscribe("task_added", lambda task: events.append(task.id))
    task = bridge.add_task({"title": "New", "status": "in-progress"})
    assert bridge.columns[1].tasks == (task,)
    assert events == [task.id]
    assert_in_sync(bridge)


def test_move_task_updates_both_sides(bridge):
    """Test moving todo → done changes counts and status in store and view"""
    task = bridge.add_task({"title": "Move me"})
    moves = []
    bridge.subscribe("task_moved", lambda task, from_status: moves.append((task.id, from_status)))

    moved = bridge.move_task(task.id, "done")
    assert [len(c.tasks) for c in bridge.columns] == [0, 0, 1]
    assert moved.status == TaskStatus.DONE
    assert bridge.repository.get_task(task.id, bridge.board_id).status == TaskStatus.DONE
    assert bridge.find(task.id).updated_at == moved.updated_at
    assert moves == [(task.id, TaskStatus.TODO)]
    assert_in_sync(bridge)


def test_edit_status_change_moves_card(bridge):
    task = bridge.add_task({"title": "Edit me"})
    bridge.edit_task(task.id, {"status": "in-progress", "title": "Edited"})
    assert [t.title for t in bridge.columns[1].tasks] == ["Edited"]
    assert bridge.columns[0].tasks == ()
    assert_in_sync(bridge)


def test_edit_without_status_change(bridge):
    task = bridge.add_task({"title": "Edit me"})
    updated = bridge.edit_task(task.id, {"priority": "high"})
    assert bridge.columns[0].tasks == (updated,)
    assert_in_sync(bridge)


def test_delete_task(bridge):
    task = bridge.add_task({"title": "Bye"})
    bridge.delete_task(task.id)
    bridge.delete_task(task.id)
    assert all(c.tasks == () for c in bridge.columns)
    assert_in_sync(bridge)


def test_add_comment_refreshes_view(bridge):
    task = bridge.add_task({"title": "Talk"})
    comment = bridge.add_comment(task.id, "first!", "ann")
    assert bridge.find(task.id).comments == [comment]
    assert_in_sync(bridge)


def test_failed_persist_leaves_view_untouched(bridge):
    before = list(bridge.columns)
    with pytest.raises(NotFound):
        bridge.move_task("missing", "done")
    assert bridge.columns == before


def test_failing_subscriber_does_not_break_bridge(bridge, caplog):
    def broken(**kwargs):
        raise RuntimeError("boom")

    bridge.subscribe("columns_changed", broken)
    with caplog.at_level("ERROR"):
        task = bridge.add_task({"title": "Still works"})
    assert bridge.find(task.id) is not None
    assert "Error in columns_changed callback" in caplog.text


def test_visible_columns_and_stats(bridge):
    bridge.add_task({"title": "Fix login", "priority": "high"})
    bridge.add_task({"title": "Write docs", "status": "done"})

    visible = bridge.visible_columns("login")
    assert [len(c.tasks) for c in visible] == [1, 0, 0]
    assert [len(c.tasks) for c in bridge.visible_columns(priority="high")] == [1, 0, 0]

    stats = bridge.stats()
    assert stats["total"] == 2
    assert stats["high_priority"] == 1
    assert stats["completion_rate"] == 50
    assert stats == bridge.repository.get_stats(bridge.board_id)
