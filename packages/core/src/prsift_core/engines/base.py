"""Base engine adapter implementing the Template Method pattern.

Every engine is run the same way:
    run() → clear stale artifact → _build_command() → subprocess
          → write log → EngineSuccess | EngineFailure

Subclasses implement one thing only:
  - _build_command: the argv that starts a non-interactive review

The adapter never interprets what the engine did. Success is decided by the
process exit status alone; reading the artifact is the findings validator's
job.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class EngineSuccess:
    artifact_path: str
    log: str


@dataclass(frozen=True)
class EngineFailure:
    exit_code: int
    log: str


EngineResult = EngineSuccess | EngineFailure


class BaseEngine(ABC):
    def __init__(self, artifact_path: str, log_path: str | None = None, workdir: str = "."):
        self.artifact_path = artifact_path
        self.log_path = log_path
        self.workdir = workdir

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def run(self, prompt: str, model: str) -> EngineResult:
        """Run the engine to completion and report how the process exited.

        No timeout: the surrounding CI job bounds the run time.
        """
        self._clear_artifact()
        command = self._build_command(model)
        logger.debug("Running engine: %s", " ".join(command))
        try:
            proc = subprocess.run(
                command,
                input=prompt,
                cwd=self.workdir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            log = f"{command[0]}: command not found ({e})"
            self._write_log(log)
            return EngineFailure(exit_code=COMMAND_NOT_FOUND, log=log)

        log = proc.stdout or ""
        self._write_log(log)
        if proc.returncode != 0:
            return EngineFailure(exit_code=proc.returncode, log=log)
        return EngineSuccess(artifact_path=self.artifact_path, log=log)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each engine                                   #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _build_command(self, model: str) -> list[str]:
        """Return the argv for a non-interactive run. The prompt arrives on stdin."""

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _clear_artifact(self) -> None:
        # A leftover artifact from an earlier run must never be mistaken for this one's output.
        Path(self.artifact_path).unlink(missing_ok=True)

    def _write_log(self, log: str) -> None:
        if not self.log_path:
            return
        try:
            Path(self.log_path).write_text(log, encoding="utf-8")
        except OSError as e:
            logger.warning("Could not write engine log to %s: %s", self.log_path, e)
