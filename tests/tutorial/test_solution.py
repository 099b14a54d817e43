"""Tests for reference solution replay and level checks."""

from __future__ import annotations

from typing import Any

from gitsandbox.tutorial.levels import Level
from gitsandbox.tutorial.solution import check_level, run_solution


class TestRunSolution:
    """Replaying commands from the initial state."""

    def test_given_reference_solution_when_run_then_success(self, level: Level) -> None:
        run = run_solution(level)

        assert run.success
        assert [o.command for o in run.outcomes] == ["commit", "commit"]
        assert run.final.head_commit().message == "Commit 3"

    def test_given_failing_command_when_run_then_continues_and_reports(self, level: Level) -> None:
        """Execution continues past failures so every outcome is recorded."""
        # Given
        commands = ["checkout nowhere", "commit", "commit"]

        # When
        run = run_solution(level, commands)

        # Then
        assert not run.success
        assert run.outcomes[0].success is False
        assert run.outcomes[0].error == "UNKNOWN_REF"
        assert all(o.success for o in run.outcomes[1:])
        assert run.differences == ()

    def test_given_short_solution_when_run_then_differences(self, level: Level) -> None:
        run = run_solution(level, ["commit"])

        assert not run.success
        assert run.differences


class TestCheckLevel:
    """Integrity checks for level authors."""

    def test_given_valid_level_when_check_then_no_issues(self, level: Level) -> None:
        check = check_level(level)

        assert check.valid
        assert check.errors == ()
        assert check.warnings == ()

    def test_given_no_hints_or_english_when_check_then_warnings(self, level_dict: dict[str, Any]) -> None:
        level_dict["hints"] = []
        level_dict["description"] = {"de_DE": "Zwei Commits"}

        check = check_level(Level.model_validate(level_dict))

        assert check.valid
        assert {w.field for w in check.warnings} == {"hints", "description"}

    def test_given_no_solution_when_check_then_warning_only(self, level_dict: dict[str, Any]) -> None:
        level_dict["solutionCommands"] = []

        check = check_level(Level.model_validate(level_dict))

        assert check.valid
        assert [w.field for w in check.warnings] == ["solutionCommands"]

    def test_given_no_tutorial_steps_when_check_then_error(self, level_dict: dict[str, Any]) -> None:
        level_dict["tutorialSteps"] = []

        check = check_level(Level.model_validate(level_dict))

        assert not check.valid
        assert check.errors[0].field == "tutorialSteps"

    def test_given_unparsable_command_when_check_then_indexed_error(self, level_dict: dict[str, Any]) -> None:
        level_dict["solutionCommands"] = ["commit", "frobnicate"]

        check = check_level(Level.model_validate(level_dict))

        assert [e.field for e in check.errors] == ["solutionCommands[1]"]

    def test_given_solution_short_of_goal_when_check_then_goal_errors(self, level_dict: dict[str, Any]) -> None:
        level_dict["solutionCommands"] = ["commit"]

        check = check_level(Level.model_validate(level_dict))

        assert not check.valid
        assert all(e.field == "goalState" for e in check.errors)
        assert check.errors[0].message.startswith("Solution does not reach the goal:")

    def test_given_invalid_goal_state_when_check_then_state_error(self, level_dict: dict[str, Any]) -> None:
        level_dict["goalState"]["head"] = {"type": "branch", "name": "ghost"}

        check = check_level(Level.model_validate(level_dict))

        assert [e.field for e in check.errors] == ["goalState"]
        assert check.errors[0].severity == "error"
