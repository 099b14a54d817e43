"""Level fixtures for tutorial tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from gitsandbox.tutorial.levels import Level


def _level_data(**overrides: Any) -> dict[str, Any]:
    """A valid two-commit level: start at C1 on main, make two commits."""
    data: dict[str, Any] = {
        "id": "intro-commits",
        "name": {"en_US": "Committing", "de_DE": "Committen"},
        "description": {"en_US": "Make two commits"},
        "difficulty": "intro",
        "order": 1,
        "initialState": {
            "commits": [
                {"id": "C0", "parents": [], "message": "Initial commit", "timestamp": 1},
                {"id": "C1", "parents": ["C0"], "message": "Commit 1", "timestamp": 2},
            ],
            "branches": [{"name": "main", "target": "C1"}],
            "tags": [],
            "head": {"type": "branch", "name": "main"},
        },
        "goalState": {
            "commits": [
                {"id": "C0", "parents": [], "message": "Initial commit"},
                {"id": "C1", "parents": ["C0"], "message": "Commit 1"},
                {"id": "C2", "parents": ["C1"], "message": "Commit 2"},
                {"id": "C3", "parents": ["C2"], "message": "Commit 3"},
            ],
            "branches": [{"name": "main", "target": "C3"}],
            "tags": [],
            "head": {"type": "branch", "name": "main"},
        },
        "tutorialSteps": [
            {
                "type": "dialog",
                "id": "welcome",
                "title": {"en_US": "Commits"},
                "content": {"en_US": ["A commit records a snapshot."]},
            },
            {
                "type": "challenge",
                "id": "do-it",
                "instructions": {"en_US": ["Make two commits."]},
            },
        ],
        "solutionCommands": ["commit", "commit"],
        "hints": [{"en_US": ["Use git commit twice"]}],
    }
    data.update(overrides)
    return data


@pytest.fixture
def level() -> Level:
    return Level.model_validate(_level_data())


@pytest.fixture
def write_level(tmp_path: Path) -> Callable[..., Path]:
    """Write a level JSON file with the given overrides and return its path."""

    def write(name: str = "level.json", **overrides: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(_level_data(**overrides)))
        return path

    return write


@pytest.fixture
def level_dict() -> dict[str, Any]:
    """Fresh raw level data, safe to mutate."""
    return _level_data()
