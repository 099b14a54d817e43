"""Tutorial levels: fixtures, goal validation and solution replay."""

from gitsandbox.tutorial.levels import Level, LevelFlags, StateFixture, load_level
from gitsandbox.tutorial.solution import (
    CommandOutcome,
    LevelCheck,
    LevelIssue,
    SolutionRun,
    check_level,
    run_solution,
)
from gitsandbox.tutorial.validator import Score, ValidationResult, validate_solution

__all__ = [
    "Level",
    "LevelFlags",
    "StateFixture",
    "load_level",
    "validate_solution",
    "ValidationResult",
    "Score",
    "run_solution",
    "SolutionRun",
    "CommandOutcome",
    "check_level",
    "LevelCheck",
    "LevelIssue",
]
