"""Tests for command-line parsing."""

from __future__ import annotations

import pytest

from gitsandbox.git import commands as cmd
from gitsandbox.git.errors import CommandParseError
from gitsandbox.git.parser import parse_command, tokenize


class TestTokenize:
    """Shell-style splitting into name, args and options."""

    def test_given_git_prefix_when_tokenize_then_stripped(self) -> None:
        assert tokenize("git commit") == ("commit", [], {})

    def test_given_alias_when_tokenize_then_expanded(self) -> None:
        assert tokenize("co main")[0] == "checkout"

    def test_given_quoted_message_when_tokenize_then_single_value(self) -> None:
        assert tokenize('commit -m "fix the bug"') == ("commit", [], {"m": "fix the bug"})

    def test_given_attached_short_value_when_tokenize_then_split(self) -> None:
        """-mMessage binds the rest of the token to -m."""
        assert tokenize("commit -mhello")[2] == {"m": "hello"}

    def test_given_long_option_with_equals_when_tokenize_then_value(self) -> None:
        assert tokenize("merge --message=done topic") == ("merge", ["topic"], {"message": "done"})

    def test_given_grouped_flags_when_tokenize_then_each_set(self) -> None:
        assert tokenize("branch -fD topic")[2] == {"f": True, "D": True}

    def test_given_message_starting_with_dash_when_tokenize_then_consumed_as_value(self) -> None:
        assert tokenize('commit -m "-fix typo"') == ("commit", [], {"m": "-fix typo"})
        assert tokenize("merge --message --oops topic")[1:] == (["topic"], {"message": "--oops"})

    def test_given_double_dash_when_tokenize_then_rest_are_args(self) -> None:
        assert tokenize("checkout -- -weird")[1] == ["-weird"]

    @pytest.mark.parametrize("text", ["", "   ", "git", 'commit -m "unclosed'])
    def test_given_empty_or_unbalanced_when_tokenize_then_raises(self, text: str) -> None:
        with pytest.raises(CommandParseError):
            tokenize(text)


class TestParseCommand:
    """Structured commands from command lines."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("commit", cmd.Commit()),
            ("commit -m first", cmd.Commit(message="first")),
            ("commit --amend", cmd.Commit(amend=True)),
            ("commit --amend -m again", cmd.Commit(message="again", amend=True)),
            ('commit -m "-fix typo"', cmd.Commit(message="-fix typo")),
            ("branch", cmd.ListBranches()),
            ("branch topic", cmd.CreateBranch("topic")),
            ("branch topic HEAD~1", cmd.CreateBranch("topic", "HEAD~1")),
            ("branch -f topic C0", cmd.CreateBranch("topic", "C0", force=True)),
            ("branch -d topic", cmd.DeleteBranch("topic")),
            ("branch -D topic", cmd.DeleteBranch("topic", force=True)),
            ("checkout main", cmd.Checkout("main")),
            ("checkout -b topic", cmd.Checkout("topic", create=True)),
            ("checkout -B topic C1", cmd.Checkout("topic", create=True, force_create=True, start_point="C1")),
            ("switch main", cmd.Switch("main")),
            ("switch -c topic", cmd.Switch("topic", create=True)),
            ("merge topic", cmd.Merge("topic")),
            ("merge --no-ff topic", cmd.Merge("topic", no_ff=True)),
            ("rebase main", cmd.Rebase("main")),
            ("rebase --onto main", cmd.Rebase("main")),
            ("rebase -i main", cmd.InteractiveRebase("main")),
            ("rebase --interactive HEAD~2", cmd.InteractiveRebase("HEAD~2")),
            ("rebase --continue", cmd.RebaseContinue()),
            ("rebase --abort", cmd.RebaseAbort()),
            ("cherry-pick C2", cmd.CherryPick("C2")),
            ("revert HEAD", cmd.Revert("HEAD")),
            ("reset", cmd.Reset()),
            ("reset --hard HEAD~1", cmd.Reset("HEAD~1", "hard")),
            ("reset --soft C0", cmd.Reset("C0", "soft")),
            ("tag", cmd.ListTags()),
            ("tag v1", cmd.CreateTag("v1")),
            ("tag v1 C0", cmd.CreateTag("v1", "C0")),
            ("log", cmd.Log()),
            ("log --oneline --first-parent main", cmd.Log("main", first_parent=True)),
            ("status", cmd.Status()),
            ("st", cmd.Status()),
            ("undo", cmd.Undo()),
            ("redo", cmd.Redo()),
        ],
    )
    def test_given_command_line_when_parse_then_structured_command(self, text: str, expected: cmd.Command) -> None:
        assert parse_command(text) == expected

    @pytest.mark.parametrize(
        ("text", "reason"),
        [
            ("stash", "Unknown command: 'stash'"),
            ("commit extra", "usage: commit"),
            ("commit --bogus", "commit: unknown option '--bogus'"),
            ("checkout", "usage: checkout"),
            ("checkout a b", "usage: checkout"),
            ("reset --soft --hard", "mutually exclusive"),
            ("rebase", "usage: rebase"),
            ("branch -d", "usage: branch -d"),
            ("status now", "usage: status"),
            ("commit -m", "option 'm' requires a value"),
        ],
    )
    def test_given_bad_command_line_when_parse_then_raises_with_reason(self, text: str, reason: str) -> None:
        with pytest.raises(CommandParseError) as exc_info:
            parse_command(text)
        assert reason in exc_info.value.reason
        assert exc_info.value.command == text

    def test_given_session_commands_when_checked_then_recognized(self) -> None:
        """undo, redo and rebase -i/--continue/--abort need a sandbox session."""
        assert cmd.is_session_command(parse_command("undo"))
        assert cmd.is_session_command(parse_command("rebase -i main"))
        assert not cmd.is_session_command(parse_command("rebase main"))
