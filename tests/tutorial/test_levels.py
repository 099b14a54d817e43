"""Tests for level fixture models and loading."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from gitsandbox.core.errors import ErrorCode, FixtureError
from gitsandbox.git.interpreter import apply
from gitsandbox.tutorial.levels import (
    ChallengeStep,
    DialogStep,
    Level,
    SerializedHead,
    StateFixture,
    load_level,
)


class TestLevelModel:
    """Schema validation and camelCase aliases."""

    def test_given_camel_case_data_when_validate_then_snake_case_fields(self, level: Level) -> None:
        assert level.id == "intro-commits"
        assert level.solution_commands == ["commit", "commit"]
        assert level.initial_state.commits[1].parents == ["C0"]
        assert level.flags.compare_only_main is False

    def test_given_steps_when_validate_then_discriminated_by_type(self, level: Level) -> None:
        assert isinstance(level.tutorial_steps[0], DialogStep)
        assert isinstance(level.tutorial_steps[1], ChallengeStep)

    def test_given_unknown_step_type_when_validate_then_error(self, level_dict: dict[str, Any]) -> None:
        level_dict["tutorialSteps"] = [{"type": "quiz", "id": "q"}]

        with pytest.raises(ValidationError):
            Level.model_validate(level_dict)

    def test_given_bad_id_when_validate_then_error(self, level_dict: dict[str, Any]) -> None:
        level_dict["id"] = "has spaces"

        with pytest.raises(ValidationError):
            Level.model_validate(level_dict)

    def test_given_locale_when_title_then_localized_or_fallback(self, level: Level) -> None:
        assert level.title() == "Committing"
        assert level.title("de_DE") == "Committen"
        assert level.title("fr_FR") == "Committing"

    def test_given_flags_when_validate_then_parsed(self, level_dict: dict[str, Any]) -> None:
        level_dict["flags"] = {"compareOnlyMain": True, "timeLimit": 60}
        level = Level.model_validate(level_dict)

        assert level.flags.compare_only_main is True
        assert level.flags.time_limit == 60


class TestSerializedHead:
    """HEAD fixtures must name their target."""

    def test_given_branch_without_name_when_validate_then_error(self) -> None:
        with pytest.raises(ValidationError, match="requires 'name'"):
            SerializedHead.model_validate({"type": "branch"})

    def test_given_detached_without_commit_when_validate_then_error(self) -> None:
        with pytest.raises(ValidationError, match="requires 'commit'"):
            SerializedHead.model_validate({"type": "detached"})

    def test_given_detached_when_to_head_then_detached_head(self) -> None:
        head = SerializedHead.model_validate({"type": "detached", "commit": "C1"}).to_head()

        assert head.is_detached
        assert head.commit == "C1"


class TestStateFixture:
    """Conversion between fixtures and snapshots."""

    def test_given_initial_state_when_snapshot_then_refs_and_commits(self, level: Level) -> None:
        snapshot = level.initial_snapshot()

        assert snapshot.branches == {"main": "C1"}
        assert snapshot.current_branch == "main"
        assert snapshot.head_commit().message == "Commit 1"

    def test_given_dangling_branch_when_snapshot_then_invalid_state(self, level_dict: dict[str, Any]) -> None:
        level_dict["goalState"]["branches"] = [{"name": "main", "target": "C9"}]
        level = Level.model_validate(level_dict)

        with pytest.raises(FixtureError) as exc_info:
            level.goal_snapshot()

        assert exc_info.value.code == ErrorCode.FIXTURE_INVALID_STATE
        assert exc_info.value.details["field"] == "goalState"

    def test_given_missing_parent_when_snapshot_then_invalid_state(self, level_dict: dict[str, Any]) -> None:
        level_dict["initialState"]["commits"].append({"id": "C5", "parents": ["C4"], "message": "orphan"})
        level = Level.model_validate(level_dict)

        with pytest.raises(FixtureError, match="initialState"):
            level.initial_snapshot()

    def test_given_duplicate_branch_when_snapshot_then_invalid_state(self, level_dict: dict[str, Any]) -> None:
        level_dict["initialState"]["branches"].append({"name": "main", "target": "C0"})
        level = Level.model_validate(level_dict)

        with pytest.raises(FixtureError, match="duplicate branch main"):
            level.initial_snapshot()

    def test_given_snapshot_when_from_snapshot_then_same_state(self, level: Level) -> None:
        """Serializing a sandbox state yields an equivalent fixture."""
        # Given
        snapshot = apply(apply(level.initial_snapshot(), "branch topic").snapshot, "tag v1").snapshot

        # When
        fixture = StateFixture.from_snapshot(snapshot)
        rebuilt = fixture.to_snapshot()

        # Then
        assert rebuilt.branches == snapshot.branches
        assert rebuilt.tags == snapshot.tags
        assert rebuilt.head == snapshot.head
        assert {c.id for c in rebuilt.graph} == {c.id for c in snapshot.graph}


class TestLoadLevel:
    """Reading level files from disk."""

    def test_given_json_file_when_load_then_level(self, write_level: Callable[..., Path]) -> None:
        level = load_level(write_level())

        assert level.id == "intro-commits"

    def test_given_yaml_file_when_load_then_level(self, tmp_path: Path, level_dict: dict[str, Any]) -> None:
        level_dict["id"] = "yaml-level"
        path = tmp_path / "level.yaml"
        path.write_text(yaml.safe_dump(level_dict))

        level = load_level(path)

        assert level.id == "yaml-level"
        assert level.goal_state.branches[0].target == "C3"

    def test_given_missing_file_when_load_then_parse_error(self, tmp_path: Path) -> None:
        with pytest.raises(FixtureError) as exc_info:
            load_level(tmp_path / "missing.json")

        assert exc_info.value.code == ErrorCode.FIXTURE_PARSE_ERROR

    def test_given_invalid_json_when_load_then_parse_error(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(FixtureError, match="Failed to parse level"):
            load_level(path)

    def test_given_schema_violation_when_load_then_location_in_reason(
        self, write_level: Callable[..., Path]
    ) -> None:
        path = write_level(difficulty="impossible")

        with pytest.raises(FixtureError) as exc_info:
            load_level(path)

        assert exc_info.value.details["reason"].startswith("difficulty:")
