#!/usr/bin/env python3
# =============================================================================
# SESSIONGUARD v1.0.0 -- CI CHECKS RUNNER
# File:   scripts/run_ci_checks.py
# =============================================================================
#
# PURPOSE
# -------
# Runs full CI gate in two sequential stages:
#   Stage 1: pytest (all tests + coverage enforcement >= 90%)
#   Stage 2: usage example smoke run (end-to-end session round)
#
# Exit codes:
#   0 -- All stages passed.
#   1 -- Stage 1 (pytest) failed.
#   2 -- Stage 2 (usage example) failed.
#
# Usage:
#   python scripts/run_ci_checks.py
#
# Requires the package installed with its test extra:
#   pip install -e .[test]
# =============================================================================

from __future__ import annotations

import pathlib
import subprocess
import sys

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
_REPO_ROOT = pathlib.Path(__file__).parent.parent
_PYTHON    = sys.executable

_COVERAGE_FLOOR = 90


def _separator(char: str = "=", width: int = 72) -> str:
    return char * width


def _run(cmd: list[str], label: str) -> int:
    """
    Run a subprocess command, stream stdout/stderr live, return exit code.
    """
    print(_separator())
    print(f"CI STAGE: {label}")
    print(f"CMD:      {' '.join(cmd)}")
    print(_separator("-"))
    sys.stdout.flush()

    proc = subprocess.run(
        cmd,
        cwd=str(_REPO_ROOT),
    )
    return proc.returncode


def _fail(stage: str, rc: int) -> None:
    print(_separator())
    print(f"CI RESULT: FAIL  [stage={stage}  exit_code={rc}]")
    print(f"Merge BLOCKED: {stage} stage did not pass.")
    print(_separator())
    sys.stdout.flush()


def main() -> int:
    print(_separator())
    print("SESSIONGUARD CI GATE -- starting")
    print(_separator())
    sys.stdout.flush()

    # ------------------------------------------------------------------
    # Stage 1: pytest
    # A non-zero exit code here means either tests failed or coverage
    # fell below the floor.
    # ------------------------------------------------------------------
    pytest_rc = _run(
        [
            _PYTHON, "-m", "pytest",
            "--cov=sessionguard",
            "--cov-report=term-missing",
            f"--cov-fail-under={_COVERAGE_FLOOR}",
        ],
        f"pytest (tests + coverage >= {_COVERAGE_FLOOR}%)",
    )
    if pytest_rc != 0:
        _fail("pytest", pytest_rc)
        return 1

    print(_separator("-"))
    print("CI STAGE pytest: PASS")
    sys.stdout.flush()

    # ------------------------------------------------------------------
    # Stage 2: usage example
    # The example asserts its own expected outcomes; any exception is a
    # non-zero exit.
    # ------------------------------------------------------------------
    example_rc = _run(
        [_PYTHON, "usage_example.py"],
        "usage example (session round smoke run)",
    )
    if example_rc != 0:
        _fail("example", example_rc)
        return 2

    print(_separator("-"))
    print("CI STAGE example: PASS")

    print(_separator())
    print("CI RESULT: PASS  [stages=pytest,example]")
    print("Merge permitted.")
    print(_separator())
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
