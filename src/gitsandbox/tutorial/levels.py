"""Level fixture models and conversion to/from snapshots.

Level files are JSON (or YAML) documents with camelCase keys:

    {
      "id": "intro-1",
      "name": {"en_US": "Committing"},
      "description": {"en_US": "Make two commits"},
      "difficulty": "intro",
      "order": 1,
      "initialState": {"commits": [...], "branches": [...], "tags": [], "head": {...}},
      "goalState": {...},
      "tutorialSteps": [{"type": "dialog", ...}],
      "solutionCommands": ["commit", "commit"],
      "hints": [{"en_US": ["Use git commit"]}]
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from gitsandbox.core.errors import FixtureError
from gitsandbox.git.errors import GitError
from gitsandbox.git.models import Commit, Head
from gitsandbox.git.snapshot import Snapshot

LocalizedText = dict[str, str]
LocalizedParagraphs = dict[str, list[str]]
Difficulty = Literal["intro", "beginner", "intermediate", "advanced"]


class _FixtureModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Repository State
# =============================================================================


class SerializedCommit(_FixtureModel):
    id: str = Field(min_length=1)
    parents: list[str] = Field(default_factory=list)
    message: str
    author: str | None = None
    timestamp: int = 0
    changes: list[str] | None = Field(
        default=None,
        description="Synthetic fields touched by the commit, used for merge conflict checks.",
    )


class SerializedBranch(_FixtureModel):
    name: str = Field(min_length=1)
    target: str


class SerializedTag(_FixtureModel):
    name: str = Field(min_length=1)
    target: str
    message: str | None = None


class SerializedRemote(_FixtureModel):
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)


class SerializedHead(_FixtureModel):
    type: Literal["branch", "detached"]
    name: str | None = None
    commit: str | None = None

    @model_validator(mode="after")
    def check_target(self) -> SerializedHead:
        if self.type == "branch" and not self.name:
            raise ValueError("HEAD of type 'branch' requires 'name'")
        if self.type == "detached" and not self.commit:
            raise ValueError("HEAD of type 'detached' requires 'commit'")
        return self

    def to_head(self) -> Head:
        if self.type == "branch":
            assert self.name is not None
            return Head.attached(self.name)
        assert self.commit is not None
        return Head.detached(self.commit)


class StateFixture(_FixtureModel):
    """Snapshot-shaped repository state."""

    commits: list[SerializedCommit] = Field(min_length=1)
    branches: list[SerializedBranch] = Field(default_factory=list)
    tags: list[SerializedTag] = Field(default_factory=list)
    remotes: list[SerializedRemote] = Field(default_factory=list)
    remote_branches: list[SerializedBranch] = Field(
        default_factory=list,
        description="Remote-tracking refs named <remote>/<branch>.",
    )
    head: SerializedHead

    def to_snapshot(self, field: str = "state") -> Snapshot:
        """Build a validated snapshot.

        Raises:
            FixtureError: Duplicate names, dangling parents, cycles, or refs
                pointing at missing commits.
        """
        for kind, names in (
            ("commit", [c.id for c in self.commits]),
            ("branch", [b.name for b in self.branches]),
            ("tag", [t.name for t in self.tags]),
            ("remote", [r.name for r in self.remotes]),
            ("remote-tracking ref", [b.name for b in self.remote_branches]),
        ):
            dupes = sorted({n for n in names if names.count(n) > 1})
            if dupes:
                raise FixtureError.invalid_state(field, f"duplicate {kind} {', '.join(dupes)}")

        commits = [
            Commit(
                c.id,
                tuple(c.parents),
                c.message,
                c.timestamp,
                c.author,
                frozenset(c.changes) if c.changes is not None else None,
            )
            for c in self.commits
        ]
        try:
            return Snapshot.from_parts(
                commits,
                {b.name: b.target for b in self.branches},
                self.head.to_head(),
                {t.name: t.target for t in self.tags},
                remotes={r.name: r.url for r in self.remotes},
                remote_branches={b.name: b.target for b in self.remote_branches},
            )
        except GitError as e:
            raise FixtureError.invalid_state(field, str(e)) from e

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> StateFixture:
        return cls.model_validate(snapshot.to_dict())


# =============================================================================
# Tutorial Steps
# =============================================================================


class DialogStep(_FixtureModel):
    type: Literal["dialog"]
    id: str
    title: LocalizedText = Field(min_length=1)
    content: LocalizedParagraphs = Field(min_length=1)


class DemonstrationStep(_FixtureModel):
    type: Literal["demonstration"]
    id: str
    before_text: LocalizedParagraphs
    setup_commands: list[str] = Field(default_factory=list)
    demonstration_command: str = Field(min_length=1)
    after_text: LocalizedParagraphs


class ChallengeStep(_FixtureModel):
    type: Literal["challenge"]
    id: str
    instructions: LocalizedParagraphs
    hints: list[LocalizedParagraphs] = Field(default_factory=list)


TutorialStep = Annotated[DialogStep | DemonstrationStep | ChallengeStep, Field(discriminator="type")]


# =============================================================================
# Level
# =============================================================================


class LevelFlags(_FixtureModel):
    compare_only_main: bool = False
    allow_any_solution: bool = False
    disable_hints: bool = False
    time_limit: int | None = Field(default=None, ge=1, description="Seconds")


class Level(_FixtureModel):
    id: str = Field(pattern=r"^[A-Za-z0-9_-]+$")
    name: LocalizedText
    description: LocalizedText
    difficulty: Difficulty
    order: int = Field(ge=0)
    initial_state: StateFixture
    goal_state: StateFixture
    tutorial_steps: list[TutorialStep] = Field(default_factory=list)
    solution_commands: list[str] = Field(default_factory=list)
    hints: list[LocalizedParagraphs] = Field(default_factory=list)
    flags: LevelFlags = Field(default_factory=LevelFlags)

    def initial_snapshot(self) -> Snapshot:
        return self.initial_state.to_snapshot("initialState")

    def goal_snapshot(self) -> Snapshot:
        return self.goal_state.to_snapshot("goalState")

    def title(self, locale: str = "en_US") -> str:
        return self.name.get(locale) or next(iter(self.name.values()), self.id)


def load_level(path: Path) -> Level:
    """Load a level fixture from a JSON or YAML file.

    Raises:
        FixtureError: The file is missing, unparsable, or fails validation.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FixtureError.parse_error(str(path), e.strerror or str(e)) from e
    try:
        data = yaml.safe_load(text) if path.suffix in (".yaml", ".yml") else json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise FixtureError.parse_error(str(path), str(e)) from e
    try:
        return Level.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        where = ".".join(str(loc) for loc in err["loc"])
        raise FixtureError.parse_error(str(path), f"{where}: {err['msg']}") from e
