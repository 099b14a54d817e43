"""Fixtures for CLI tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def level_file(tmp_path: Path) -> Path:
    """A level starting at C1 on main whose goal is two more commits."""
    root = [
        {"id": "C0", "parents": [], "message": "Initial commit", "timestamp": 1},
        {"id": "C1", "parents": ["C0"], "message": "Commit 1", "timestamp": 2},
    ]
    goal = [
        *root,
        {"id": "C2", "parents": ["C1"], "message": "Commit 2"},
        {"id": "C3", "parents": ["C2"], "message": "Commit 3"},
    ]
    data: dict[str, Any] = {
        "id": "intro-commits",
        "name": {"en_US": "Committing"},
        "description": {"en_US": "Make two commits"},
        "difficulty": "intro",
        "order": 1,
        "initialState": {
            "commits": root,
            "branches": [{"name": "main", "target": "C1"}],
            "head": {"type": "branch", "name": "main"},
        },
        "goalState": {
            "commits": goal,
            "branches": [{"name": "main", "target": "C3"}],
            "head": {"type": "branch", "name": "main"},
        },
        "tutorialSteps": [
            {"type": "dialog", "id": "welcome", "title": {"en_US": "Commits"}, "content": {"en_US": ["Hi"]}},
        ],
        "solutionCommands": ["commit", "commit"],
        "hints": [{"en_US": ["Use git commit twice"]}],
    }
    path = tmp_path / "level.json"
    path.write_text(json.dumps(data))
    return path
