"""
Provisioner for Selenium Setup.

Runs the setup procedure as one ordered, fail-fast sequence:

    1. refuse to run as root
    2. refresh the package index and install system packages
    3. download the Chrome .deb into a temporary directory
    4. install it (falling back once to ``apt-get install -f``)
    5. detect the installed Chrome version
    6. scaffold the project directory and its virtual environment
    7. install the Python requirements into the venv
    8. run the generated smoke test (never fatal)
    9. clean up and print a summary
"""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .config import SetupConfig
from .logger import SetupLogger
from .os_tools import CommandRunner, FallbackResult, ToolResult, VirtualEnv, write_atomic
from .templates import SMOKE_TEST_FILE, REQUIREMENTS_FILE, render_project_files
from .tool_schemas import DownloadRequest, RunCommandRequest


logger = logging.getLogger(__name__)


class ProvisionError(RuntimeError):
    """A step failed and the run was aborted."""


class PrivilegeError(ProvisionError):
    """The provisioner was started with root privileges."""


class DownloadError(ProvisionError):
    """The browser package could not be downloaded."""


class CommandError(ProvisionError):
    """An external command exited unsuccessfully."""

    def __init__(
        self,
        message: str,
        argv: Optional[list[str]] = None,
        returncode: Optional[int] = None,
    ):
        super().__init__(message)
        self.argv = argv or []
        self.returncode = returncode


@dataclass
class ChromeVersion:
    """Chrome version as reported by ``google-chrome --version``."""

    full: str
    major: str
    raw: str = ""

    @classmethod
    def parse(cls, output: str) -> "ChromeVersion":
        """Take the third whitespace token as the version.

        ``"Google Chrome 120.0.6099.109"`` gives ``full="120.0.6099.109"``
        and ``major="120"``. Output of another shape is not rejected; the
        result is simply whatever sits in those positions.
        """
        tokens = output.split()
        full = tokens[2] if len(tokens) > 2 else ""
        return cls(full=full, major=full.split(".")[0], raw=output)


@dataclass
class ProvisionResult:
    """Outcome of a completed run."""

    chrome_version: ChromeVersion
    project_dir: Path
    smoke_test_passed: bool
    files: list[Path] = field(default_factory=list)


class Provisioner:
    """Installs Chrome and scaffolds a Selenium project.

    Usage:
        provisioner = Provisioner(SetupConfig())
        result = provisioner.run()  # raises ProvisionError on abort
    """

    def __init__(
        self,
        config: SetupConfig,
        runner: Optional[CommandRunner] = None,
        setup_logger: Optional[SetupLogger] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the provisioner.

        Args:
            config: Setup configuration
            runner: Command runner (a real one when None)
            setup_logger: Console/step logger (console only when None)
            now: Clock used for the README timestamp
        """
        self.config = config
        self.runner = runner or CommandRunner()
        self.log = setup_logger or SetupLogger()
        self.now = now or datetime.now
        self.venv = VirtualEnv(config.venv_dir)

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def run(self) -> ProvisionResult:
        """Execute every step in order.

        Returns:
            ProvisionResult (the smoke test may still have failed)

        Raises:
            ProvisionError: When any step other than the smoke test fails
        """
        self.check_privileges()
        self.check_package_manager()

        self.log.print_header()
        self.install_system_packages()

        temp_dir = Path(tempfile.mkdtemp(prefix="selenium_setup_"))
        logger.debug(f"Using temporary directory {temp_dir}")

        try:
            deb_path = self.download_chrome(temp_dir)
            self.install_chrome(deb_path)
            version = self.detect_chrome_version()
            files = self.scaffold_project(version)
            self.install_python_packages()
            passed = self.run_smoke_test()
        except BaseException:
            self.cleanup(temp_dir, strict=False)
            raise

        self.cleanup(temp_dir)

        self.log.print_summary(
            chrome_version=version.full,
            project_path=self.config.display_project_dir,
            smoke_test_passed=passed,
        )
        return ProvisionResult(
            chrome_version=version,
            project_dir=self.config.project_dir,
            smoke_test_passed=passed,
            files=files,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def check_privileges(self) -> None:
        """Refuse to run with an effective UID of 0."""
        if os.geteuid() == 0:
            raise PrivilegeError("This script should not be run as root")

    def check_package_manager(self) -> None:
        if not self.runner.command_exists(self.config.package_manager):
            message = (
                f"{self.config.package_manager} not found; "
                "a Debian/Ubuntu system is required"
            )
            raise ProvisionError(message)

    def install_system_packages(self) -> None:
        pm = self.config.package_manager

        self.log.print_step("Updating package list...")
        self._require(
            self._system_command([pm, "update"]),
            "Package list update failed",
        )

        self.log.print_step("Installing required dependencies...")
        self._require(
            self._system_command([pm, "install", "-y", *self.config.system_packages]),
            "Dependency installation failed",
        )

    def download_chrome(self, temp_dir: Path) -> Path:
        """Download the Chrome package into ``temp_dir``.

        Returns:
            Path of the downloaded .deb
        """
        self.log.print_step("Downloading Chrome...")
        destination = temp_dir / self.config.chrome_deb_name

        try:
            request = DownloadRequest(
                url=self.config.chrome_url,
                destination=str(destination),
                timeout_s=self.config.download_timeout,
            )
        except ValueError as e:
            raise DownloadError(f"Invalid download request: {e}") from e

        result = self.runner.download(request)
        if not result.success:
            raise DownloadError(result.message)

        logger.debug(result.message)
        return destination

    def install_chrome(self, deb_path: Path) -> FallbackResult:
        """Install the .deb; on failure fix broken dependencies once."""
        self.log.print_step("Installing Chrome...")

        outcome = self.runner.run_with_fallback(
            RunCommandRequest(argv=["dpkg", "-i", str(deb_path)], sudo=self.config.use_sudo),
            RunCommandRequest(
                argv=[self.config.package_manager, "install", "-f", "-y"],
                sudo=self.config.use_sudo,
            ),
        )

        if outcome.used_fallback:
            logger.debug(f"dpkg failed ({outcome.primary.message}), ran dependency fix")
        self._require(outcome.final, "Chrome installation failed")
        return outcome

    def detect_chrome_version(self) -> ChromeVersion:
        """Read the version from ``<chrome> --version``.

        A failing or missing binary is not fatal; the version then comes
        out empty, the same as parsing blank output.
        """
        self.log.print_step("Detecting Chrome version...")

        result = self.runner.run(
            [self.config.chrome_binary, "--version"],
            capture_output=True,
        )
        if not result.success:
            logger.warning(f"{self.config.chrome_binary} --version: {result.message}")

        version = ChromeVersion.parse(result.stdout)
        self.log.print_detail(f"Detected Chrome version: {version.full}")
        self.log.print_detail(f"Major version: {version.major}")
        return version

    def scaffold_project(self, version: ChromeVersion) -> list[Path]:
        """Create the project directory, its venv and all generated files.

        Existing files are overwritten.

        Returns:
            Paths of the written files
        """
        self.log.print_step("Setting up Python environment...")

        project_dir = self.config.project_dir
        project_dir.mkdir(parents=True, exist_ok=True)

        self._require(
            self.runner.execute(self.venv.create_request()),
            "Virtual environment creation failed",
        )

        rendered = render_project_files(
            chrome_version=version.full,
            venv_name=self.config.venv_name,
            packages=self.config.python_packages,
            now=self.now(),
        )

        written = []
        for name, (content, executable) in rendered.items():
            written.append(write_atomic(project_dir / name, content, executable=executable))
            logger.debug(f"Wrote {project_dir / name}")
        return written

    def install_python_packages(self) -> None:
        self.log.print_step("Installing Python packages...")

        env = self.venv.activate()
        cwd = str(self.config.project_dir)

        self._require(
            self.runner.run(
                ["python", "-m", "pip", "install", "--upgrade", "pip"],
                env=env,
                cwd=cwd,
            ),
            "pip upgrade failed",
        )
        self._require(
            self.runner.run(
                ["python", "-m", "pip", "install", "-r", REQUIREMENTS_FILE],
                env=env,
                cwd=cwd,
            ),
            "Python package installation failed",
        )

    def run_smoke_test(self) -> bool:
        """Run test_selenium.py; report the outcome without raising."""
        self.log.print_info("Running Selenium test...")

        if not self.venv.is_active:
            self.venv.activate()

        result = self.runner.run(
            ["python", SMOKE_TEST_FILE],
            env=self.venv.environ(),
            cwd=str(self.config.project_dir),
        )
        if result.success:
            self.log.print_result(True, "Selenium test passed!")
        else:
            logger.debug(f"Smoke test: {result.message}")
            self.log.print_result(False, "Selenium test failed!")
        return result.success

    def cleanup(self, temp_dir: Path, strict: bool = True) -> None:
        """Remove the download directory and deactivate the venv.

        Args:
            temp_dir: Temporary download directory
            strict: Raise if the directory cannot be removed; when False
                (used while another error propagates) removal is best effort
        """
        self.log.print_info("Cleaning up temporary files...")

        if temp_dir.exists():
            shutil.rmtree(temp_dir, ignore_errors=not strict)

        try:
            self.venv.deactivate()
        except RuntimeError as e:
            logger.debug(f"Deactivate skipped: {e}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _system_command(self, argv: list[str]) -> ToolResult:
        return self.runner.run(argv, sudo=self.config.use_sudo)

    def _require(self, result: ToolResult, what: str) -> ToolResult:
        """Record ``result`` in the step log; raise CommandError unless it succeeded."""
        data = result.data if isinstance(result.data, dict) else {}
        title = " ".join(data.get("argv") or []) or what
        self.log.log_event(title, result.success, result.message, data=result.to_dict())
        if result.success:
            return result

        message = f"{what}: {result.message}"
        raise CommandError(message, argv=data.get("argv"), returncode=data.get("returncode"))
