"""Tests for goal-state validation."""

from __future__ import annotations

from typing import Any

from gitsandbox.git.interpreter import apply
from gitsandbox.git.snapshot import Snapshot
from gitsandbox.tutorial.levels import Level
from gitsandbox.tutorial.validator import validate_solution


def play(level: Level, *commands: str) -> Snapshot:
    snapshot = level.initial_snapshot()
    for command in commands:
        snapshot = apply(snapshot, command).snapshot
    return snapshot


class TestValidateSolution:
    """Comparing the sandbox state to the level goal."""

    def test_given_goal_reached_when_validate_then_completed_with_score(self, level: Level) -> None:
        # Given
        snapshot = play(level, "commit", "commit")

        # When
        result = validate_solution(snapshot, level, 2)

        # Then
        assert result.valid
        assert result.message == "Level completed! You used 2 commands."
        assert result.differences == ()
        assert result.score is not None
        assert result.score.efficiency == 100

    def test_given_extra_commands_when_validate_then_lower_efficiency(self, level: Level) -> None:
        snapshot = play(level, "commit", "commit")

        result = validate_solution(snapshot, level, 4)

        assert result.score is not None
        assert result.score.efficiency == 50
        assert result.score.optimal_commands == 2

    def test_given_goal_not_reached_when_validate_then_differences(self, level: Level) -> None:
        snapshot = play(level, "commit")

        result = validate_solution(snapshot, level, 1)

        assert not result.valid
        assert result.message == "Solution is not correct yet. Keep trying!"
        assert result.differences
        assert result.score is None

    def test_given_single_command_when_completed_then_singular_message(self, level_dict: dict[str, Any]) -> None:
        level_dict["flags"] = {"allowAnySolution": True}
        level = Level.model_validate(level_dict)

        result = validate_solution(level.initial_snapshot(), level, 1)

        assert result.message == "Level completed! You used 1 command."


class TestFlags:
    """Level flags relax the comparison."""

    def test_given_compare_only_main_when_extra_branch_then_valid(self, level_dict: dict[str, Any]) -> None:
        # Given
        level_dict["flags"] = {"compareOnlyMain": True}
        level = Level.model_validate(level_dict)
        snapshot = play(level, "branch scratch C0", "commit", "commit")

        # When
        result = validate_solution(snapshot, level, 3)

        # Then
        assert result.valid

    def test_given_full_comparison_when_extra_branch_then_invalid(self, level: Level) -> None:
        snapshot = play(level, "branch scratch C0", "commit", "commit")

        result = validate_solution(snapshot, level, 3)

        assert not result.valid
        assert [d.dimension for d in result.differences] == ["branches"]

    def test_given_allow_any_solution_when_untouched_then_valid(self, level_dict: dict[str, Any]) -> None:
        level_dict["flags"] = {"allowAnySolution": True}
        level = Level.model_validate(level_dict)

        result = validate_solution(level.initial_snapshot(), level, 0)

        assert result.valid
        assert result.score is not None
        assert result.score.efficiency == 200


class TestValidationResult:
    def test_given_result_when_to_dict_then_camel_case_score(self, level: Level) -> None:
        result = validate_solution(play(level, "commit", "commit"), level, 2)

        assert result.to_dict() == {
            "valid": True,
            "message": "Level completed! You used 2 commands.",
            "differences": [],
            "score": {"commandsUsed": 2, "optimalCommands": 2, "efficiency": 100},
        }
