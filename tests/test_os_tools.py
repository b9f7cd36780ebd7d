"""
Tests for OS tools functionality.
"""

import os
import subprocess
from unittest.mock import MagicMock, patch

import httpx
import pytest

from selenium_setup.os_tools import (
    CommandRunner,
    FallbackResult,
    ToolResult,
    VirtualEnv,
    write_atomic,
)
from selenium_setup.tool_schemas import DownloadRequest, RunCommandRequest


class TestCommandRunnerExecute:
    """Tests for running commands."""

    @pytest.fixture
    def runner(self):
        return CommandRunner()

    def test_exec_simple_command(self, runner):
        """Test executing a simple command with captured output."""
        result = runner.run(["echo", "hello"], capture_output=True)

        assert result.success is True
        assert result.returncode == 0
        assert "hello" in result.stdout

    def test_exec_failing_command(self, runner):
        result = runner.run(["false"])

        assert result.success is False
        assert result.returncode == 1
        assert "exit code 1" in result.message

    def test_exec_command_not_found(self, runner):
        """Test error when command doesn't exist."""
        result = runner.run(["nonexistent_command_xyz"])

        assert result.success is False
        assert "not found" in result.message.lower()

    def test_exec_custom_cwd(self, runner, tmp_path):
        result = runner.run(["pwd"], cwd=str(tmp_path), capture_output=True)

        assert result.success is True
        assert str(tmp_path.resolve()) in result.stdout

    def test_exec_nonexistent_cwd(self, runner):
        """Test error when cwd doesn't exist."""
        result = runner.run(["ls"], cwd="/nonexistent/path")

        assert result.success is False
        assert "does not exist" in result.message

    def test_exec_custom_env(self, runner):
        result = runner.run(
            ["sh", "-c", "echo $SELENIUM_SETUP_MARKER"],
            env={**os.environ, "SELENIUM_SETUP_MARKER": "marker-value"},
            capture_output=True,
        )

        assert "marker-value" in result.stdout

    def test_sudo_prefix(self, runner):
        with patch("selenium_setup.os_tools.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
            result = runner.run(["apt-get", "update"], sudo=True)

        assert mock_run.call_args.args[0] == ["sudo", "apt-get", "update"]
        assert result.data["argv"] == ["sudo", "apt-get", "update"]

    def test_output_not_captured_by_default(self, runner):
        with patch("selenium_setup.os_tools.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
            result = runner.run(["apt-get", "update"])

        assert mock_run.call_args.kwargs["capture_output"] is False
        assert result.stdout == ""

    def test_permission_denied(self, runner):
        with patch("selenium_setup.os_tools.subprocess.run", side_effect=PermissionError):
            result = runner.run(["/etc/passwd"])

        assert result.success is False
        assert "permission denied" in result.message.lower()

    def test_command_exists(self):
        assert CommandRunner.command_exists("sh") is True
        assert CommandRunner.command_exists("nonexistent_command_xyz") is False


class TestRunWithFallback:
    """Tests for the primary-then-recovery helper."""

    @pytest.fixture
    def runner(self):
        runner = CommandRunner()
        runner.execute = MagicMock()
        return runner

    def _ok(self):
        return ToolResult(success=True, message="ok", data={"returncode": 0})

    def _fail(self):
        return ToolResult(success=False, message="failed", data={"returncode": 1})

    def test_primary_success_skips_fallback(self, runner):
        runner.execute.side_effect = [self._ok()]

        outcome = runner.run_with_fallback(
            RunCommandRequest(argv=["dpkg", "-i", "x.deb"]),
            RunCommandRequest(argv=["apt-get", "install", "-f", "-y"]),
        )

        assert outcome.success is True
        assert outcome.used_fallback is False
        assert runner.execute.call_count == 1

    def test_primary_failure_runs_fallback_once(self, runner):
        runner.execute.side_effect = [self._fail(), self._ok()]

        outcome = runner.run_with_fallback(
            RunCommandRequest(argv=["dpkg", "-i", "x.deb"]),
            RunCommandRequest(argv=["apt-get", "install", "-f", "-y"]),
        )

        assert outcome.success is True
        assert outcome.used_fallback is True
        assert runner.execute.call_count == 2
        assert runner.execute.call_args.args[0].argv == ["apt-get", "install", "-f", "-y"]

    def test_both_fail(self, runner):
        runner.execute.side_effect = [self._fail(), self._fail()]

        outcome = runner.run_with_fallback(
            RunCommandRequest(argv=["dpkg", "-i", "x.deb"]),
            RunCommandRequest(argv=["apt-get", "install", "-f", "-y"]),
        )

        assert outcome.success is False
        assert outcome.final is outcome.fallback
        assert runner.execute.call_count == 2

    def test_final_is_primary_without_fallback(self):
        primary = ToolResult(success=True, message="ok")

        assert FallbackResult(primary=primary).final is primary


class TestToolResult:

    def test_to_dict_omits_missing_data(self):
        assert ToolResult(success=False, message="Command not found: x").to_dict() == {
            "success": False,
            "message": "Command not found: x",
        }

    def test_to_dict_includes_data(self):
        result = ToolResult(success=True, message="ok", data={"returncode": 0, "argv": ["true"]})

        assert result.to_dict()["data"] == {"returncode": 0, "argv": ["true"]}


class TestDownload:
    """Tests for HTTP downloads (no network)."""

    @pytest.fixture
    def mock_transport(self):
        real_client = httpx.Client

        def install(handler):
            def factory(**kwargs):
                return real_client(transport=httpx.MockTransport(handler), **kwargs)
            return patch("selenium_setup.os_tools.httpx.Client", side_effect=factory)

        return install

    def test_download_writes_file(self, tmp_path, mock_transport):
        def handler(request):
            return httpx.Response(200, content=b"deb-bytes")

        destination = tmp_path / "chrome.deb"
        with mock_transport(handler):
            result = CommandRunner().download(
                DownloadRequest(url="https://example.com/chrome.deb", destination=str(destination))
            )

        assert result.success is True
        assert destination.read_bytes() == b"deb-bytes"
        assert result.data["bytes"] == 9
        assert not (tmp_path / "chrome.deb.part").exists()

    def test_download_follows_redirects(self, tmp_path, mock_transport):
        def handler(request):
            if request.url.path == "/start":
                return httpx.Response(302, headers={"Location": "https://example.com/final"})
            return httpx.Response(200, content=b"final")

        destination = tmp_path / "chrome.deb"
        with mock_transport(handler):
            result = CommandRunner().download(
                DownloadRequest(url="https://example.com/start", destination=str(destination))
            )

        assert result.success is True
        assert destination.read_bytes() == b"final"

    def test_download_http_error(self, tmp_path, mock_transport):
        def handler(request):
            return httpx.Response(404)

        destination = tmp_path / "chrome.deb"
        with mock_transport(handler):
            result = CommandRunner().download(
                DownloadRequest(url="https://example.com/missing", destination=str(destination))
            )

        assert result.success is False
        assert "HTTP 404" in result.message
        assert not destination.exists()
        assert not (tmp_path / "chrome.deb.part").exists()

    def test_download_network_error(self, tmp_path, mock_transport):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with mock_transport(handler):
            result = CommandRunner().download(
                DownloadRequest(url="https://example.com/x", destination=str(tmp_path / "x.deb"))
            )

        assert result.success is False
        assert "Download failed" in result.message


class TestWriteAtomic:
    """Tests for atomic file writes."""

    def test_creates_file(self, tmp_path):
        path = write_atomic(tmp_path / "a.txt", "hello\n")

        assert path.read_text() == "hello\n"

    def test_overwrites_existing(self, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("old")

        write_atomic(target, "new")

        assert target.read_text() == "new"

    def test_executable_flag(self, tmp_path):
        script = write_atomic(tmp_path / "run.sh", "#!/bin/sh\n", executable=True)
        plain = write_atomic(tmp_path / "plain.txt", "x")

        assert os.access(script, os.X_OK)
        assert not os.access(plain, os.X_OK)

    def test_no_temp_files_left(self, tmp_path):
        write_atomic(tmp_path / "a.txt", "one")
        write_atomic(tmp_path / "a.txt", "two")

        assert os.listdir(tmp_path) == ["a.txt"]

    def test_failed_write_keeps_original(self, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("original")

        with patch("selenium_setup.os_tools.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_atomic(target, "replacement")

        assert target.read_text() == "original"
        assert os.listdir(tmp_path) == ["a.txt"]


class TestVirtualEnv:
    """Tests for venv activation bookkeeping."""

    def test_create_request(self, tmp_path):
        venv = VirtualEnv(tmp_path / "env")

        assert venv.create_request().argv == ["python3", "-m", "venv", str(tmp_path / "env")]

    def test_activate_sets_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin")
        monkeypatch.setenv("PYTHONHOME", "/somewhere")
        venv = VirtualEnv(tmp_path / "env")

        env = venv.activate()

        assert venv.is_active is True
        assert env["VIRTUAL_ENV"] == str(tmp_path / "env")
        assert env["PATH"] == f"{tmp_path / 'env' / 'bin'}{os.pathsep}/usr/bin"
        assert "PYTHONHOME" not in env
        assert os.environ["PATH"] == "/usr/bin"

    def test_environ_requires_activation(self, tmp_path):
        with pytest.raises(RuntimeError, match="not active"):
            VirtualEnv(tmp_path / "env").environ()

    def test_deactivate(self, tmp_path):
        venv = VirtualEnv(tmp_path / "env")
        venv.activate()

        venv.deactivate()

        assert venv.is_active is False

    def test_deactivate_inactive_raises(self, tmp_path):
        with pytest.raises(RuntimeError):
            VirtualEnv(tmp_path / "env").deactivate()
