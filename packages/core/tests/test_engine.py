"""Tests for the review engine adapter.

Shared behaviour (artifact clearing, log capture, exit classification) lives
in BaseEngine and is tested once via a stub. OpenCodeEngine is only checked
for the command it builds.
"""

import subprocess
from unittest.mock import MagicMock

from prsift_core.engines.base import BaseEngine, EngineFailure, EngineSuccess
from prsift_core.engines.opencode import OpenCodeEngine


class _StubEngine(BaseEngine):
    def _build_command(self, model: str) -> list[str]:
        return ["stub-engine", model]


def _proc(returncode=0, stdout="engine output"):
    return MagicMock(returncode=returncode, stdout=stdout)


class TestBaseEngineRun:
    def test_success_returns_artifact_path(self, mocker, tmp_path):
        mocker.patch("prsift_core.engines.base.subprocess.run", return_value=_proc())
        engine = _StubEngine(str(tmp_path / "out.json"))
        result = engine.run("prompt", "m")
        assert result == EngineSuccess(artifact_path=str(tmp_path / "out.json"), log="engine output")

    def test_non_zero_exit_is_failure_with_log(self, mocker, tmp_path):
        mocker.patch("prsift_core.engines.base.subprocess.run", return_value=_proc(returncode=1, stdout="boom"))
        result = _StubEngine(str(tmp_path / "out.json")).run("prompt", "m")
        assert result == EngineFailure(exit_code=1, log="boom")

    def test_missing_executable_is_failure(self, mocker, tmp_path):
        mocker.patch("prsift_core.engines.base.subprocess.run", side_effect=FileNotFoundError("stub-engine"))
        result = _StubEngine(str(tmp_path / "out.json")).run("prompt", "m")
        assert isinstance(result, EngineFailure)
        assert result.exit_code == 127

    def test_prompt_fed_on_stdin_with_merged_output(self, mocker, tmp_path):
        run = mocker.patch("prsift_core.engines.base.subprocess.run", return_value=_proc())
        _StubEngine(str(tmp_path / "out.json"), workdir=str(tmp_path)).run("the prompt", "m")
        kwargs = run.call_args.kwargs
        assert kwargs["input"] == "the prompt"
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["cwd"] == str(tmp_path)
        assert "timeout" not in kwargs

    def test_prompt_encoded_as_utf8_regardless_of_locale(self, mocker, tmp_path):
        run = mocker.patch("prsift_core.engines.base.subprocess.run", return_value=_proc())
        _StubEngine(str(tmp_path / "out.json")).run("caf\u00e9 \u2192 \u65e5\u672c", "m")
        kwargs = run.call_args.kwargs
        assert kwargs["encoding"] == "utf-8"
        assert kwargs["errors"] == "replace"

    def test_stale_artifact_removed_before_run(self, mocker, tmp_path):
        artifact = tmp_path / "out.json"
        artifact.write_text("{}")
        seen = {}

        def fake_run(*args, **kwargs):
            seen["exists"] = artifact.exists()
            return _proc()

        mocker.patch("prsift_core.engines.base.subprocess.run", side_effect=fake_run)
        _StubEngine(str(artifact)).run("prompt", "m")
        assert seen["exists"] is False

    def test_log_written_to_file(self, mocker, tmp_path):
        mocker.patch("prsift_core.engines.base.subprocess.run", return_value=_proc(stdout="captured"))
        log_path = tmp_path / "engine.log"
        _StubEngine(str(tmp_path / "out.json"), log_path=str(log_path)).run("prompt", "m")
        assert log_path.read_text() == "captured"


class TestOpenCodeEngine:
    def test_command(self):
        engine = OpenCodeEngine("/tmp/out.json")
        assert engine._build_command("anthropic/claude") == ["opencode", "run", "--model", "anthropic/claude"]

    def test_custom_command_name(self):
        engine = OpenCodeEngine("/tmp/out.json", command="/opt/bin/opencode")
        assert engine._build_command("m")[0] == "/opt/bin/opencode"
