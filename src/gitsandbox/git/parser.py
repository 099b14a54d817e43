"""Parse command strings into structured ``Command`` values."""

from __future__ import annotations

import shlex
from collections.abc import Callable

from gitsandbox.git import commands as cmd
from gitsandbox.git.errors import CommandParseError

ALIASES: dict[str, str] = {"co": "checkout", "br": "branch", "ci": "commit", "st": "status"}

# Options that always consume the following token as their value, even one
# starting with a dash
VALUE_OPTIONS = frozenset(("m", "message", "onto"))

Options = dict[str, str | bool]


def tokenize(text: str) -> tuple[str, list[str], Options]:
    """Split a command line into (command name, positional args, options).

    Quotes follow shell rules. A leading ``git`` is ignored. Short flags may be
    grouped (``-fd``); long options accept ``--opt=value``.

    Raises:
        CommandParseError: Empty input or unbalanced quotes.
    """
    try:
        tokens = shlex.split(text)
    except ValueError as e:
        raise CommandParseError(text, f"Cannot parse command: {e}") from e
    if tokens and tokens[0] == "git":
        tokens = tokens[1:]
    if not tokens:
        raise CommandParseError(text, "Empty command")

    name = tokens[0].lower()
    name = ALIASES.get(name, name)
    args: list[str] = []
    options: Options = {}

    i = 1
    while i < len(tokens):
        token = tokens[i]
        has_value_after = i + 1 < len(tokens)
        if token == "--":
            args.extend(tokens[i + 1 :])
            break
        if token.startswith("--"):
            opt, eq, value = token[2:].partition("=")
            if eq:
                options[opt] = value
            elif opt in VALUE_OPTIONS and has_value_after:
                options[opt] = tokens[i + 1]
                i += 1
            else:
                options[opt] = True
        elif token.startswith("-") and len(token) > 1:
            flags = token[1:]
            opt, eq, value = flags.partition("=")
            if eq:
                options[opt] = value
            elif flags in VALUE_OPTIONS and has_value_after:
                options[flags] = tokens[i + 1]
                i += 1
            elif len(flags) > 1 and flags[0] in VALUE_OPTIONS:
                # -mMessage
                options[flags[0]] = flags[1:]
            else:
                for flag in flags:
                    options[flag] = True
        else:
            args.append(token)
        i += 1
    return name, args, options


def parse_command(text: str) -> cmd.Command:
    """Parse ``text`` into a ``Command``.

    Raises:
        CommandParseError: Unknown command, bad arguments, or unsupported options.
    """
    name, args, options = tokenize(text)
    builder = _BUILDERS.get(name)
    if builder is None:
        raise CommandParseError(text, f"Unknown command: '{name}'")
    return builder(_Parsed(text, name, args, options))


class _Parsed:
    """Tokenized command with validation helpers for the builders."""

    def __init__(self, text: str, name: str, args: list[str], options: Options) -> None:
        self.text = text
        self.name = name
        self.args = args
        self.options = options

    def fail(self, reason: str) -> CommandParseError:
        return CommandParseError(self.text, reason)

    def allow(self, *names: str) -> None:
        unknown = sorted(set(self.options) - set(names))
        if unknown:
            opt = unknown[0]
            dashes = "-" if len(opt) == 1 else "--"
            raise self.fail(f"{self.name}: unknown option '{dashes}{opt}'")

    def flag(self, *names: str) -> bool:
        return any(self.options.get(n) is True for n in names)

    def value(self, *names: str) -> str | None:
        for n in names:
            v = self.options.get(n)
            if isinstance(v, str):
                return v
            if v is True:
                raise self.fail(f"{self.name}: option '{n}' requires a value")
        return None

    def arity(self, low: int, high: int, usage: str) -> None:
        if not low <= len(self.args) <= high:
            raise self.fail(f"usage: {usage}")

    def arg(self, index: int) -> str | None:
        return self.args[index] if index < len(self.args) else None


# =============================================================================
# Builders
# =============================================================================


def _commit(p: _Parsed) -> cmd.Command:
    p.allow("m", "message", "amend")
    p.arity(0, 0, "commit [-m <message>] [--amend]")
    return cmd.Commit(message=p.value("m", "message"), amend=p.flag("amend"))


def _branch(p: _Parsed) -> cmd.Command:
    p.allow("d", "D", "delete", "f", "force")
    if p.flag("d", "D", "delete"):
        p.arity(1, 1, "branch -d <name>")
        return cmd.DeleteBranch(p.args[0], force=p.flag("D", "f", "force"))
    if not p.args:
        if p.options:
            raise p.fail("usage: branch [-f] <name> [<start-point>]")
        return cmd.ListBranches()
    p.arity(1, 2, "branch [-f] <name> [<start-point>]")
    return cmd.CreateBranch(p.args[0], p.arg(1), force=p.flag("f", "force"))


def _checkout(p: _Parsed) -> cmd.Command:
    p.allow("b", "B")
    if p.flag("b", "B"):
        p.arity(1, 2, "checkout -b <name> [<start-point>]")
        return cmd.Checkout(p.args[0], create=True, force_create=p.flag("B"), start_point=p.arg(1))
    p.arity(1, 1, "checkout <ref>")
    return cmd.Checkout(p.args[0])


def _switch(p: _Parsed) -> cmd.Command:
    p.allow("c", "C", "create", "force-create")
    if p.flag("c", "C", "create", "force-create"):
        p.arity(1, 2, "switch -c <name> [<start-point>]")
        return cmd.Switch(
            p.args[0],
            create=True,
            force_create=p.flag("C", "force-create"),
            start_point=p.arg(1),
        )
    p.arity(1, 1, "switch <branch>")
    return cmd.Switch(p.args[0])


def _merge(p: _Parsed) -> cmd.Command:
    p.allow("no-ff", "m", "message")
    p.arity(1, 1, "merge [--no-ff] [-m <message>] <ref>")
    return cmd.Merge(p.args[0], no_ff=p.flag("no-ff"), message=p.value("m", "message"))


def _rebase(p: _Parsed) -> cmd.Command:
    p.allow("i", "interactive", "continue", "abort", "onto")
    if p.flag("continue"):
        p.arity(0, 0, "rebase --continue")
        return cmd.RebaseContinue()
    if p.flag("abort"):
        p.arity(0, 0, "rebase --abort")
        return cmd.RebaseAbort()
    onto = p.value("onto") or p.arg(0)
    if onto is None or len(p.args) > (0 if p.value("onto") else 1):
        raise p.fail("usage: rebase [-i] <upstream>")
    if p.flag("i", "interactive"):
        return cmd.InteractiveRebase(onto)
    return cmd.Rebase(onto)


def _cherry_pick(p: _Parsed) -> cmd.Command:
    p.allow()
    p.arity(1, 1, "cherry-pick <commit>")
    return cmd.CherryPick(p.args[0])


def _revert(p: _Parsed) -> cmd.Command:
    p.allow()
    p.arity(1, 1, "revert <commit>")
    return cmd.Revert(p.args[0])


def _reset(p: _Parsed) -> cmd.Command:
    p.allow("soft", "mixed", "hard")
    modes: list[cmd.ResetMode] = [m for m in ("soft", "mixed", "hard") if p.flag(m)]
    if len(modes) > 1:
        raise p.fail("reset: --soft, --mixed and --hard are mutually exclusive")
    p.arity(0, 1, "reset [--soft | --mixed | --hard] [<commit>]")
    return cmd.Reset(p.arg(0) or "HEAD", modes[0] if modes else "mixed")


def _tag(p: _Parsed) -> cmd.Command:
    p.allow()
    if not p.args:
        return cmd.ListTags()
    p.arity(1, 2, "tag <name> [<commit>]")
    return cmd.CreateTag(p.args[0], p.arg(1))


def _remote(p: _Parsed) -> cmd.Command:
    p.allow("v", "verbose")
    if not p.args:
        return cmd.ListRemotes()
    if p.args[0] != "add" or len(p.args) != 3 or p.options:
        raise p.fail("usage: remote add <name> <url>")
    return cmd.AddRemote(p.args[1], p.args[2])


def _fetch(p: _Parsed) -> cmd.Command:
    p.allow()
    p.arity(0, 1, "fetch [<remote>]")
    return cmd.Fetch(p.arg(0) or "origin")


def _pull(p: _Parsed) -> cmd.Command:
    p.allow()
    p.arity(0, 2, "pull [<remote> [<branch>]]")
    return cmd.Pull(p.arg(0) or "origin", p.arg(1))


def _push(p: _Parsed) -> cmd.Command:
    p.allow("f", "force")
    p.arity(0, 2, "push [-f] [<remote> [<branch>]]")
    return cmd.Push(p.arg(0) or "origin", p.arg(1), force=p.flag("f", "force"))


def _log(p: _Parsed) -> cmd.Command:
    p.allow("first-parent", "oneline")
    p.arity(0, 1, "log [--first-parent] [<ref>]")
    return cmd.Log(p.arg(0), first_parent=p.flag("first-parent"))


def _no_args(factory: Callable[[], cmd.Command], usage: str) -> Callable[[_Parsed], cmd.Command]:
    def build(p: _Parsed) -> cmd.Command:
        p.allow()
        p.arity(0, 0, usage)
        return factory()

    return build


_BUILDERS: dict[str, Callable[[_Parsed], cmd.Command]] = {
    "commit": _commit,
    "branch": _branch,
    "checkout": _checkout,
    "switch": _switch,
    "merge": _merge,
    "rebase": _rebase,
    "cherry-pick": _cherry_pick,
    "revert": _revert,
    "reset": _reset,
    "tag": _tag,
    "remote": _remote,
    "fetch": _fetch,
    "pull": _pull,
    "push": _push,
    "log": _log,
    "status": _no_args(cmd.Status, "status"),
    "undo": _no_args(cmd.Undo, "undo"),
    "redo": _no_args(cmd.Redo, "redo"),
}
