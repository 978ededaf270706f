"""GitHub Actions workflow commands.

Outside of Actions these lines are harmless plain text, so they are always
emitted rather than gated on the ``GITHUB_ACTIONS`` variable.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console

# Workflow commands must reach the runner unwrapped and without markup.
console = Console(soft_wrap=True, highlight=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False)


def _escape(message: str) -> str:
    # Workflow command data must not contain raw newlines.
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


@contextmanager
def log_group(title: str) -> Iterator[None]:
    console.print(f"::group::{title}", markup=False)
    try:
        yield
    finally:
        console.print("::endgroup::", markup=False)


def warning(message: str) -> None:
    console.print(f"::warning::{_escape(message)}", markup=False)


def error(message: str) -> None:
    err_console.print(f"::error::{_escape(message)}", markup=False)
