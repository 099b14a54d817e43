"""Tests for the rebase state machine."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from gitsandbox.git import rebase
from gitsandbox.git.compare import compare
from gitsandbox.git.errors import (
    InvalidSessionStateError,
    InvalidSquashPositionError,
    InvalidTodoError,
)
from gitsandbox.git.models import Head, RebaseTodoItem
from gitsandbox.git.rebase import RebaseStatus
from gitsandbox.git.snapshot import Snapshot

SnapshotFactory = Callable[..., Snapshot]


@pytest.fixture
def topic(snapshot_factory: SnapshotFactory) -> Snapshot:
    """feature carries A, B, C on top of O; main moved on to D.

    O <- D (main)
     \\
      A <- B <- C (feature, HEAD)
    """
    return snapshot_factory(
        [
            ("O", [], "root"),
            ("D", ["O"], "D"),
            ("A", ["O"], "A", ["a"]),
            ("B", ["A"], "B", ["b"]),
            ("C", ["B"], "C", ["c"]),
        ],
        {"main": "D", "feature": "C"},
        head="feature",
    )


def todo(*items: tuple[str, str] | tuple[str, str, str]) -> list[RebaseTodoItem]:
    """Todo items from (operation, commit id[, new message]) tuples."""
    return [
        RebaseTodoItem(item[0], item[1], item[1], order, item[2] if len(item) > 2 else None)  # type: ignore[arg-type]
        for order, item in enumerate(items)
    ]


def messages_from_tip(snapshot: Snapshot) -> list[str]:
    graph = snapshot.graph
    return [graph.get(c).message for c in graph.first_parent_walk(snapshot.head_target())]


class TestPlanning:
    """Todo list generation."""

    def test_given_branch_when_plan_todo_then_all_picks_oldest_first(self, topic: Snapshot) -> None:
        items = rebase.plan_todo(topic, "main")

        assert [(i.operation, i.commit_id, i.order) for i in items] == [
            ("pick", "A", 0),
            ("pick", "B", 1),
            ("pick", "C", 2),
        ]
        assert items[0].message == "A"

    def test_given_merge_in_range_when_replay_range_then_skipped(self, snapshot_factory: SnapshotFactory) -> None:
        snapshot = snapshot_factory(
            [
                ("O", [], "root"),
                ("D", ["O"], "D"),
                ("A", ["O"], "A"),
                ("S", ["O"], "side"),
                ("M", ["A", "S"], "merge"),
                ("B", ["M"], "B"),
            ],
            {"main": "D", "feature": "B"},
            head="feature",
        )

        assert rebase.replay_range(snapshot, "main") == ("A", "B")

    def test_given_session_when_to_dict_then_camel_case_todo(self, topic: Snapshot) -> None:
        data = rebase.prepare(topic, "main").to_dict()

        assert data["status"] == "not_started"
        assert data["todo"][0] == {
            "operation": "pick",
            "commitId": "A",
            "message": "A",
            "order": 0,
            "newMessage": None,
        }


class TestReplay:
    """Running todo lists to completion."""

    def test_given_pick_drop_pick_when_run_then_dropped_commit_absent(self, topic: Snapshot) -> None:
        """[pick A, drop B, pick C] onto D gives D <- A' <- C'."""
        # Given
        session = rebase.start(topic, todo(("pick", "A"), ("drop", "B"), ("pick", "C")), "main")

        # When
        result = rebase.run(session)

        # Then
        assert result.state == "done"
        assert result.session.status is RebaseStatus.COMPLETED
        assert result.snapshot is not None
        assert messages_from_tip(result.snapshot) == ["C", "A", "D", "root"]
        assert len(result.session.rewritten) == 2
        assert result.snapshot.branches["main"] == "D"
        assert result.snapshot.current_branch == "feature"

    def test_given_all_picks_when_planned_and_run_then_matches_branch_on_new_base(
        self, topic: Snapshot, snapshot_factory: SnapshotFactory
    ) -> None:
        """plan_todo -> start -> run replays A, B, C on top of D."""
        # Given
        goal = snapshot_factory(
            [
                ("O", [], "root"),
                ("D", ["O"], "D"),
                ("A2", ["D"], "A", ["a"]),
                ("B2", ["A2"], "B", ["b"]),
                ("C2", ["B2"], "C", ["c"]),
            ],
            {"main": "D", "feature": "C2"},
            head="feature",
        )
        session = rebase.start(topic, rebase.plan_todo(topic, "main"), "main")

        # When
        result = rebase.run(session)

        # Then
        assert result.state == "done"
        assert result.snapshot is not None
        assert compare(result.snapshot, goal) == []

    def test_given_rewritten_commits_when_done_then_new_ids_and_changes_kept(self, topic: Snapshot) -> None:
        result = rebase.run(rebase.start(topic, rebase.plan_todo(topic, "main"), "main"))

        assert result.snapshot is not None
        tip = result.snapshot.head_commit()
        assert tip.id != "C"
        assert tip.changes == {"c"}
        # Originals are still in the graph, just unreachable from feature
        assert "C" in result.snapshot.graph

    def test_given_reword_when_run_then_new_message(self, topic: Snapshot) -> None:
        session = rebase.start(topic, todo(("pick", "A"), ("reword", "B", "B, better"), ("pick", "C")), "main")

        result = rebase.run(session)

        assert result.snapshot is not None
        assert messages_from_tip(result.snapshot)[:3] == ["C", "B, better", "A"]

    def test_given_squash_when_run_then_combined_message_and_changes(self, topic: Snapshot) -> None:
        session = rebase.start(topic, todo(("pick", "A"), ("squash", "B"), ("pick", "C")), "main")

        result = rebase.run(session)

        assert result.snapshot is not None
        graph = result.snapshot.graph
        squashed = graph.get(result.session.rewritten[0])
        assert squashed.message == "A\n\nB"
        assert squashed.changes == {"a", "b"}
        assert squashed.parents == ("D",)
        assert len(result.session.rewritten) == 2

    def test_given_fixup_when_run_then_previous_message_kept(self, topic: Snapshot) -> None:
        session = rebase.start(topic, todo(("pick", "A"), ("fixup", "B"), ("fixup", "C")), "main")

        result = rebase.run(session)

        assert result.snapshot is not None
        assert messages_from_tip(result.snapshot) == ["A", "D", "root"]
        assert result.snapshot.head_commit().changes == {"a", "b", "c"}

    def test_given_squash_first_when_step_then_invalid_position(self, topic: Snapshot) -> None:
        session = rebase.start(topic, todo(("squash", "A"), ("pick", "B")), "main")

        with pytest.raises(InvalidSquashPositionError):
            rebase.run(session)

    def test_given_drop_all_when_run_then_branch_at_onto(self, topic: Snapshot) -> None:
        result = rebase.run(rebase.start(topic, todo(("drop", "A"), ("drop", "B"), ("drop", "C")), "main"))

        assert result.snapshot is not None
        assert result.snapshot.branches["feature"] == "D"

    def test_given_empty_todo_when_step_then_done_at_onto(self, topic: Snapshot) -> None:
        result = rebase.step(rebase.start(topic, [], "main"))

        assert result.state == "done"
        assert result.snapshot is not None
        assert result.snapshot.branches["feature"] == "D"

    def test_given_detached_head_when_rebase_then_head_stays_detached(self, topic: Snapshot) -> None:
        detached = topic.with_refs(topic.refs.with_head(Head.detached("C")))

        result = rebase.run(rebase.start(detached, rebase.plan_todo(detached, "main"), "main"))

        assert result.snapshot is not None
        assert result.snapshot.head.is_detached
        assert result.snapshot.branches["feature"] == "C"


class TestEditPause:
    """edit stops the replay until the caller steps again."""

    def test_given_edit_when_run_then_pauses_after_applying(self, topic: Snapshot) -> None:
        # Given
        session = rebase.start(topic, todo(("pick", "A"), ("edit", "B"), ("pick", "C")), "main")

        # When
        paused = rebase.run(session)

        # Then
        assert paused.state == "edit_pause"
        assert paused.snapshot is None
        assert paused.session.current is not None
        assert paused.session.current.commit_id == "B"
        assert len(paused.session.rewritten) == 2

        # When resumed
        done = rebase.run(paused.session)

        # Then
        assert done.state == "done"
        assert done.snapshot is not None
        assert messages_from_tip(done.snapshot)[:3] == ["C", "B", "A"]

    def test_given_paused_session_when_abort_then_original(self, topic: Snapshot) -> None:
        paused = rebase.run(rebase.start(topic, todo(("edit", "A"), ("pick", "B")), "main"))

        result = rebase.abort(paused.session)

        assert result.state == "aborted"
        assert result.snapshot is topic


class TestValidation:
    """Todo lists are checked when the rebase starts."""

    def test_given_commit_off_branch_when_start_then_invalid_todo(self, topic: Snapshot) -> None:
        with pytest.raises(InvalidTodoError, match="not part of the current branch"):
            rebase.start(topic, todo(("pick", "D")), "main")

    def test_given_repeated_commit_when_start_then_invalid_todo(self, topic: Snapshot) -> None:
        with pytest.raises(InvalidTodoError, match="more than once"):
            rebase.start(topic, todo(("pick", "A"), ("pick", "A")), "main")

    def test_given_unknown_commit_when_start_then_invalid_todo(self, topic: Snapshot) -> None:
        with pytest.raises(InvalidTodoError, match="unknown commit"):
            rebase.start(topic, todo(("pick", "Z")), "main")

    def test_given_unknown_operation_when_start_then_invalid_todo(self, topic: Snapshot) -> None:
        with pytest.raises(InvalidTodoError, match="unknown operation 'exec'"):
            rebase.start(topic, todo(("exec", "A")), "main")

    def test_given_reword_without_message_when_start_then_invalid_todo(self, topic: Snapshot) -> None:
        # Given
        items = todo(("pick", "A"), ("reword", "B"), ("pick", "C"))

        # When
        with pytest.raises(InvalidTodoError) as exc_info:
            rebase.start(topic, items, "main")

        # Then
        assert exc_info.value.reason == "reword requires a message"
        assert exc_info.value.commit == "B"

    def test_given_commit_already_in_onto_when_start_then_invalid_todo(self, topic: Snapshot) -> None:
        """The shared root is reachable from both HEAD and onto; replaying it would duplicate it."""
        # Given
        items = todo(("pick", "O"), ("pick", "A"), ("pick", "B"), ("pick", "C"))

        # When
        with pytest.raises(InvalidTodoError) as exc_info:
            rebase.start(topic, items, "main")

        # Then
        assert exc_info.value.reason == "commit is already contained in the new base"
        assert exc_info.value.commit == "O"


class TestLifecycle:
    """NOT_STARTED -> IN_PROGRESS -> COMPLETED / ABORTED."""

    def test_given_started_session_when_abort_then_original_snapshot(self, topic: Snapshot) -> None:
        """abort(start(s)).snapshot == s."""
        session = rebase.start(topic, rebase.plan_todo(topic, "main"), "main")

        result = rebase.abort(session)

        assert result.snapshot == topic
        assert result.session.status is RebaseStatus.ABORTED

    def test_given_prepared_session_when_confirm_then_runs(self, topic: Snapshot) -> None:
        # Given
        session = rebase.prepare(topic, "main")
        assert session.status is RebaseStatus.NOT_STARTED

        # When
        result = rebase.confirm(session, todo(("pick", "C")))

        # Then
        assert result.state == "done"
        assert result.snapshot is not None
        assert messages_from_tip(result.snapshot) == ["C", "D", "root"]

    def test_given_not_started_session_when_step_then_invalid_state(self, topic: Snapshot) -> None:
        with pytest.raises(InvalidSessionStateError):
            rebase.step(rebase.prepare(topic, "main"))

    def test_given_completed_session_when_abort_or_step_then_invalid_state(self, topic: Snapshot) -> None:
        done = rebase.run(rebase.start(topic, rebase.plan_todo(topic, "main"), "main"))

        with pytest.raises(InvalidSessionStateError):
            rebase.abort(done.session)
        with pytest.raises(InvalidSessionStateError):
            rebase.step(done.session)

    def test_given_started_session_when_confirm_then_invalid_state(self, topic: Snapshot) -> None:
        session = rebase.start(topic, rebase.plan_todo(topic, "main"), "main")

        with pytest.raises(InvalidSessionStateError):
            rebase.confirm(session)

    def test_given_aborted_session_when_abort_again_then_invalid_state(self, topic: Snapshot) -> None:
        aborted = rebase.abort(rebase.prepare(topic, "main"))

        with pytest.raises(InvalidSessionStateError):
            rebase.abort(aborted.session)
