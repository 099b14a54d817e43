"""Sandbox sessions with undo/redo and interactive rebase."""

from gitsandbox.sandbox.session import HistoryEntry, SandboxSession

__all__ = ["SandboxSession", "HistoryEntry"]
