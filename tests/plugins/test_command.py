"""Tests for CommandRunner."""

from __future__ import annotations

import subprocess

import pytest

from machinecode.core.exceptions import CollectionError
from machinecode.plugins.command import CommandRunner, require_value


def _completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
    def fake_run(args, **kwargs):
        fake_run.calls.append((args, kwargs))
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)

    fake_run.calls = []
    return fake_run


def _raising(exc: Exception):
    def fake_run(args, **kwargs):
        raise exc

    return fake_run


class TestCommandRunner:
    """Running introspection tools."""

    def test_returns_trimmed_stdout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = _completed(stdout="  Alice's Mac\n")
        monkeypatch.setattr(subprocess, "run", fake)
        assert CommandRunner().run(["scutil", "--get", "ComputerName"], "deviceName") == \
            "Alice's Mac"

    def test_runs_without_shell_and_with_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = _completed(stdout="ok")
        monkeypatch.setattr(subprocess, "run", fake)
        CommandRunner(timeout=3).run(("ioreg", "-l"), "platformUuid")

        args, kwargs = fake.calls[0]
        assert args == ["ioreg", "-l"]
        assert kwargs["timeout"] == 3
        assert kwargs["capture_output"] is True
        assert "shell" not in kwargs

    def test_missing_tool(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(subprocess, "run", _raising(FileNotFoundError("ioreg")))
        with pytest.raises(CollectionError) as exc_info:
            CommandRunner().run(["ioreg"], "platformUuid")
        assert exc_info.value.component == "platformUuid"
        assert "not available" in exc_info.value.reason

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            subprocess, "run", _raising(subprocess.TimeoutExpired(["ioreg"], 1.0))
        )
        with pytest.raises(CollectionError, match="timed out"):
            CommandRunner(timeout=1.0).run(["ioreg"], "platformUuid")

    def test_permission_denied(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(subprocess, "run", _raising(PermissionError("denied")))
        with pytest.raises(CollectionError, match="could not run"):
            CommandRunner().run(["ioreg"], "platformUuid")

    def test_non_zero_exit_uses_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(subprocess, "run", _completed(returncode=1, stderr="no access\n"))
        with pytest.raises(CollectionError, match="no access"):
            CommandRunner().run(["powershell"], "biosSerialNumber")

    def test_non_zero_exit_without_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(subprocess, "run", _completed(returncode=5))
        with pytest.raises(CollectionError, match="exit status 5"):
            CommandRunner().run(["powershell"], "biosSerialNumber")

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_timeout_must_be_positive(self, timeout: float) -> None:
        with pytest.raises(ValueError):
            CommandRunner(timeout=timeout)


class TestRequireValue:
    """Trimming collected values."""

    def test_trims(self) -> None:
        assert require_value("userName", "  alice \n") == "alice"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_is_a_collection_error(self, value) -> None:
        with pytest.raises(CollectionError, match="userName"):
            require_value("userName", value)
