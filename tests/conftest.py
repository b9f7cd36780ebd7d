"""
Shared fixtures: a recording command runner that never touches the system.
"""

import io
from pathlib import Path

import pytest
from rich.console import Console

from selenium_setup.config import SetupConfig
from selenium_setup.logger import SetupLogger
from selenium_setup.os_tools import CommandRunner, ToolResult
from selenium_setup.tool_schemas import DownloadRequest, RunCommandRequest


CHROME_VERSION_OUTPUT = "Google Chrome 120.0.6099.109 \n"


class FakeRunner(CommandRunner):
    """CommandRunner that records requests and simulates their effects.

    ``failures`` holds command prefixes (e.g. ``"dpkg -i"``) that should
    exit with status 1.
    """

    def __init__(
        self,
        failures: tuple[str, ...] = (),
        version_output: str = CHROME_VERSION_OUTPUT,
        download_ok: bool = True,
    ):
        self.failures = failures
        self.version_output = version_output
        self.download_ok = download_ok
        self.requests: list[RunCommandRequest] = []
        self.downloads: list[DownloadRequest] = []

    @staticmethod
    def command_exists(name: str) -> bool:
        return True

    def commands(self) -> list[str]:
        return [" ".join(r.argv) for r in self.requests]

    def count(self, prefix: str) -> int:
        return sum(1 for c in self.commands() if c.startswith(prefix))

    def execute(self, request: RunCommandRequest) -> ToolResult:
        self.requests.append(request)
        command = " ".join(request.argv)
        data = {"argv": request.full_argv, "stdout": None, "stderr": None}

        if any(command.startswith(prefix) for prefix in self.failures):
            return ToolResult(
                success=False,
                message="Command failed (exit code 1)",
                data={**data, "returncode": 1},
            )

        if request.argv[1:3] == ["-m", "venv"]:
            Path(request.argv[3]).mkdir(parents=True, exist_ok=True)
        if request.argv[-1] == "--version":
            data["stdout"] = self.version_output

        return ToolResult(
            success=True,
            message="Command succeeded (exit code 0)",
            data={**data, "returncode": 0},
        )

    def download(self, request: DownloadRequest) -> ToolResult:
        self.downloads.append(request)
        if not self.download_ok:
            return ToolResult(success=False, message="Download failed: HTTP 404 for url")
        Path(request.destination).write_bytes(b"!<arch>\n")
        return ToolResult(success=True, message="Downloaded 8 bytes")


@pytest.fixture(autouse=True)
def non_root(monkeypatch):
    """Behave as a regular user even when the suite runs as root."""
    monkeypatch.setattr("selenium_setup.provisioner.os.geteuid", lambda: 1000)


@pytest.fixture
def config(tmp_path):
    return SetupConfig(project_dir=tmp_path / "selenium_project", log_dir=None)


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def setup_logger(output, tmp_path):
    console = Console(file=output, width=120, color_system=None)
    return SetupLogger(console=console, log_dir=tmp_path / "logs")


@pytest.fixture
def runner_factory():
    return FakeRunner
