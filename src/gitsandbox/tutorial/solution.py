"""Replay a level's reference solution and check level integrity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from gitsandbox.config.models import EngineConfig
from gitsandbox.core.errors import FixtureError
from gitsandbox.core.logging import get_logger
from gitsandbox.git.compare import compare
from gitsandbox.git.errors import CommandParseError
from gitsandbox.git.interpreter import apply
from gitsandbox.git.models import Difference
from gitsandbox.git.parser import parse_command
from gitsandbox.git.snapshot import Snapshot
from gitsandbox.tutorial.levels import Level
from gitsandbox.tutorial.validator import MAIN_BRANCH

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    command: str
    success: bool
    output: str = ""
    error: str | None = None  # GitError code


@dataclass(frozen=True, slots=True)
class SolutionRun:
    """Result of replaying solution commands from a level's initial state.

    ``success`` requires every command to succeed and the final state to match
    the goal.
    """

    final: Snapshot
    outcomes: tuple[CommandOutcome, ...]
    differences: tuple[Difference, ...]

    @property
    def success(self) -> bool:
        return not self.differences and all(o.success for o in self.outcomes)


def run_solution(
    level: Level,
    commands: list[str] | None = None,
    *,
    config: EngineConfig | None = None,
) -> SolutionRun:
    """Apply ``commands`` (default: the level's solution) from its initial state.

    Execution continues past failed commands so every failure is reported.
    """
    snapshot = level.initial_snapshot()
    outcomes: list[CommandOutcome] = []
    for command in level.solution_commands if commands is None else commands:
        result = apply(snapshot, command, config=config)
        snapshot = result.snapshot
        outcomes.append(
            CommandOutcome(
                command,
                result.success,
                result.message,
                result.error.code if result.error else None,
            )
        )
    only = (MAIN_BRANCH,) if level.flags.compare_only_main else None
    differences = tuple(compare(snapshot, level.goal_snapshot(), only_branches=only))
    log.debug("solution_replayed", level=level.id, commands=len(outcomes), differences=len(differences))
    return SolutionRun(snapshot, tuple(outcomes), differences)


# =============================================================================
# Level Checks
# =============================================================================


@dataclass(frozen=True, slots=True)
class LevelIssue:
    field: str
    message: str
    severity: Literal["error", "warning"]


@dataclass(frozen=True, slots=True)
class LevelCheck:
    errors: tuple[LevelIssue, ...] = field(default_factory=tuple)
    warnings: tuple[LevelIssue, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.errors


def check_level(level: Level, *, config: EngineConfig | None = None) -> LevelCheck:
    """Integrity checks beyond schema validation.

    Errors: invalid initial/goal states, missing tutorial steps, unparsable
    solution commands, or a solution that does not reach the goal.
    Warnings: missing en_US text, no solution, no hints.
    """
    errors: list[LevelIssue] = []
    warnings: list[LevelIssue] = []

    def error(where: str, message: str) -> None:
        errors.append(LevelIssue(where, message, "error"))

    def warning(where: str, message: str) -> None:
        warnings.append(LevelIssue(where, message, "warning"))

    for where, text in (("name", level.name), ("description", level.description)):
        if not text:
            error(where, f"Level {where} must have at least one locale")
        elif "en_US" not in text:
            warning(where, f"Level {where} should have an English (en_US) translation")

    states_ok = True
    for build in (level.initial_snapshot, level.goal_snapshot):
        try:
            build()
        except FixtureError as e:
            states_ok = False
            error(e.details.get("field", "state"), e.message)

    if not level.tutorial_steps:
        error("tutorialSteps", "At least one tutorial step is required")
    if not level.hints:
        warning("hints", "Hints are recommended to help users")

    if not level.solution_commands:
        warning("solutionCommands", "Solution commands are recommended for proper scoring")
        return LevelCheck(tuple(errors), tuple(warnings))

    parsed_ok = True
    for index, command in enumerate(level.solution_commands):
        try:
            parse_command(command)
        except CommandParseError as e:
            parsed_ok = False
            error(f"solutionCommands[{index}]", e.reason)

    if states_ok and parsed_ok:
        run = run_solution(level, config=config)
        for index, outcome in enumerate(run.outcomes):
            if not outcome.success:
                error(f"solutionCommands[{index}]", f"'{outcome.command}' failed: {outcome.output}")
        if not level.flags.allow_any_solution:
            for diff in run.differences:
                error("goalState", f"Solution does not reach the goal: {diff.description}")

    return LevelCheck(tuple(errors), tuple(warnings))
