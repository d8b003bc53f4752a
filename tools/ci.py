#!/usr/bin/env python3
# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the CI checks locally: format, lint, tests with coverage, and build.

Pass step names (e.g. ``lint tests``) to run a subset; ``--fail-fast`` stops
at the first failing step.
"""

import argparse
import subprocess
import sys
import time
from pathlib import Path

from yachalk import chalk

# ###############
# Public Interface
# ###############

STEPS: dict[str, list[str]] = {
    "format": ["uv", "run", "ruff", "format", "--check", "src/", "tests/", "tools/"],
    "lint": ["uv", "run", "ruff", "check", "src/", "tests/", "tools/"],
    "tests": ["uv", "run", "pytest", "--cov=protowire", "--cov-report=term-missing"],
    "build": ["uv", "build"],
}


def main() -> int:
    """Run the selected CI steps and report results."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("steps", nargs="*", help=f"Steps to run: {', '.join(STEPS)} (default: all)")
    parser.add_argument("--fail-fast", action="store_true", help="Stop after the first failing step")
    args = parser.parse_args()
    unknown = [s for s in args.steps if s not in STEPS]
    if unknown:
        parser.error(f"unknown step(s): {', '.join(unknown)}")

    selected = args.steps or list(STEPS)
    results: list[tuple[str, bool, float]] = []
    for name in selected:
        _banner(name.capitalize())
        start = time.monotonic()
        proc = subprocess.run(STEPS[name], cwd=_REPO_ROOT)
        passed = proc.returncode == 0
        results.append((name, passed, time.monotonic() - start))
        if not passed and args.fail_fast:
            break

    _banner("Summary")
    for name, passed, elapsed in results:
        colour = chalk.green if passed else chalk.red
        print(colour(f"  {'PASS' if passed else 'FAIL'}  {name} ({elapsed:.1f}s)"))
    skipped = [name for name in selected if name not in {r[0] for r in results}]
    for name in skipped:
        print(chalk.yellow(f"  SKIP  {name}"))
    print()
    return 0 if all(passed for _, passed, _ in results) and not skipped else 1


# ################
# Implementation
# ################

_REPO_ROOT = Path(__file__).resolve().parent.parent


def _banner(title: str) -> None:
    sep = chalk.blue("=" * 60)
    print(f"\n{sep}")
    print(chalk.blue(f"  {title}"))
    print(sep)


if __name__ == "__main__":
    sys.exit(main())
