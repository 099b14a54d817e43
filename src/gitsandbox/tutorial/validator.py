"""Goal-state validation of a user's solution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gitsandbox.git.compare import compare
from gitsandbox.git.models import Difference
from gitsandbox.git.snapshot import Snapshot
from gitsandbox.tutorial.levels import Level

MAIN_BRANCH = "main"


@dataclass(frozen=True, slots=True)
class Score:
    commands_used: int
    optimal_commands: int
    efficiency: int  # percent of optimal; above 100 when beating the reference solution


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    message: str
    differences: tuple[Difference, ...] = field(default_factory=tuple)
    score: Score | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "message": self.message,
            "differences": [{"dimension": d.dimension, "description": d.description} for d in self.differences],
            "score": None
            if self.score is None
            else {
                "commandsUsed": self.score.commands_used,
                "optimalCommands": self.score.optimal_commands,
                "efficiency": self.score.efficiency,
            },
        }


def validate_solution(snapshot: Snapshot, level: Level, commands_used: int) -> ValidationResult:
    """Check ``snapshot`` against the level's goal state.

    With ``compareOnlyMain`` only the main branch (and commits reachable from
    it or HEAD) is compared. ``allowAnySolution`` accepts any state.
    """
    differences: tuple[Difference, ...] = ()
    if not level.flags.allow_any_solution:
        only = (MAIN_BRANCH,) if level.flags.compare_only_main else None
        differences = tuple(compare(snapshot, level.goal_snapshot(), only_branches=only))

    if differences:
        return ValidationResult(False, "Solution is not correct yet. Keep trying!", differences)

    optimal = len(level.solution_commands)
    used = max(commands_used, 1)
    plural = "" if commands_used == 1 else "s"
    return ValidationResult(
        True,
        f"Level completed! You used {commands_used} command{plural}.",
        score=Score(commands_used, optimal, round(optimal / used * 100)),
    )
