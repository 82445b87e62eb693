"""Developer entry points exposed as `uv run check` and `uv run live_check`.

'why': one place that knows which tools gate a change and how to reach a live server
"""
from __future__ import annotations

import logging
import subprocess
import sys
import time
from collections.abc import Iterable
from typing import Final, NamedTuple


_LOGGER = logging.getLogger("labmanager_client.scripts")


class _Step(NamedTuple):
    label: str
    command: tuple[str, ...]


_CHECK_STEPS: Final[tuple[_Step, ...]] = (
    _Step("tests", ("pytest", "-q")),
    _Step("lint", ("ruff", "check", "src")),
    _Step("types", ("basedpyright", "src")),
)
_LIVE_STEPS: Final[tuple[_Step, ...]] = (
    _Step("live scenario", (sys.executable, "-m", "labmanager_client.live_test.test")),
)


def check() -> None:
    """Run tests, lint, and type checks, stopping at the first failing step."""

    _run_steps(_CHECK_STEPS)


def live_check() -> None:
    """Run the checkout/deploy/teardown scenario against the server in live_test/.env."""

    _run_steps(_LIVE_STEPS)


def _run_steps(steps: Iterable[_Step]) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    for step in steps:
        started = time.monotonic()
        _LOGGER.info("[%s] %s", step.label, " ".join(step.command))
        returncode = subprocess.run(step.command, check=False).returncode
        elapsed = time.monotonic() - started
        if returncode != 0:
            _LOGGER.error("[%s] failed with exit status %d after %.1fs", step.label, returncode, elapsed)
            raise SystemExit(returncode)
        _LOGGER.info("[%s] passed in %.1fs", step.label, elapsed)
