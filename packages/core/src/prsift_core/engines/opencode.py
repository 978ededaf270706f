from __future__ import annotations

from prsift_core.engines.base import BaseEngine


class OpenCodeEngine(BaseEngine):
    """Runs ``opencode run`` inside the checkout.

    The prompt is piped on stdin rather than passed as an argument: Linux caps a
    single argv string at 128 KiB, which a full-size diff plus context exceeds.
    """

    def __init__(self, artifact_path: str, log_path: str | None = None, workdir: str = ".", command: str = "opencode"):
        super().__init__(artifact_path, log_path=log_path, workdir=workdir)
        self.command = command

    def _build_command(self, model: str) -> list[str]:
        return [self.command, "run", "--model", model]
