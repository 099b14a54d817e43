"""Parity harness against the reference git executable."""

from gitsandbox.parity.harness import (
    GitOracle,
    ParityCheck,
    ParityReport,
    load_repository,
    run_parity,
)

__all__ = ["GitOracle", "ParityCheck", "ParityReport", "load_repository", "run_parity"]
