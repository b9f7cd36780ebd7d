"""
OS tools for Selenium Setup.

Provides command execution, file downloads, atomic file writes and
virtual environment activation used by the provisioner.
"""

import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import httpx

from .tool_schemas import DownloadRequest, RunCommandRequest


logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Result of a tool execution."""

    success: bool
    message: str
    data: Optional[Any] = None

    @property
    def returncode(self) -> Optional[int]:
        if isinstance(self.data, dict):
            return self.data.get("returncode")
        return None

    @property
    def stdout(self) -> str:
        if isinstance(self.data, dict):
            return self.data.get("stdout") or ""
        return ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {
            "success": self.success,
            "message": self.message,
        }
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class FallbackResult:
    """Outcome of a primary action followed by at most one recovery action."""

    primary: ToolResult
    fallback: Optional[ToolResult] = None

    @property
    def used_fallback(self) -> bool:
        return self.fallback is not None

    @property
    def success(self) -> bool:
        if self.primary.success:
            return True
        return self.fallback is not None and self.fallback.success

    @property
    def final(self) -> ToolResult:
        """The result that decided the outcome."""
        return self.fallback if self.fallback is not None else self.primary


class CommandRunner:
    """Runs external commands and downloads for the provisioner.

    Commands inherit the terminal by default so package manager output
    stays visible; pass ``capture_output=True`` to collect it instead.
    """

    CHUNK_SIZE = 64 * 1024

    def execute(self, request: RunCommandRequest) -> ToolResult:
        """Run a command from a typed request.

        Args:
            request: Typed RunCommandRequest with argv list

        Returns:
            ToolResult with returncode (and stdout/stderr when captured)
        """
        argv = request.full_argv
        logger.debug(f"Running: {request.display()}")

        if request.cwd and not Path(request.cwd).exists():
            return ToolResult(
                success=False,
                message=f"Working directory does not exist: {request.cwd}",
            )

        try:
            result = subprocess.run(
                argv,
                capture_output=request.capture_output,
                text=True,
                cwd=request.cwd,
                env=request.env,
            )
        except FileNotFoundError:
            return ToolResult(
                success=False,
                message=f"Command not found: {argv[0]}",
            )
        except PermissionError:
            return ToolResult(
                success=False,
                message=f"Permission denied executing: {argv[0]}",
            )

        succeeded = result.returncode == 0
        return ToolResult(
            success=succeeded,
            message=f"Command {'succeeded' if succeeded else 'failed'} (exit code {result.returncode})",
            data={
                "returncode": result.returncode,
                "stdout": result.stdout if request.capture_output else None,
                "stderr": result.stderr if request.capture_output else None,
                "argv": argv,
            },
        )

    def run(self, argv: list[str], **kwargs: Any) -> ToolResult:
        """Shorthand for ``execute(RunCommandRequest(argv=argv, ...))``."""
        return self.execute(RunCommandRequest(argv=argv, **kwargs))

    def run_with_fallback(
        self,
        primary: RunCommandRequest,
        fallback: RunCommandRequest,
    ) -> FallbackResult:
        """Run ``primary``; if it fails, run ``fallback`` exactly once."""
        first = self.execute(primary)
        if first.success:
            return FallbackResult(primary=first)

        logger.debug(f"{primary.display()} failed, trying {fallback.display()}")
        return FallbackResult(primary=first, fallback=self.execute(fallback))

    def download(self, request: DownloadRequest) -> ToolResult:
        """Stream a URL to a file, following redirects.

        The file is written under a temporary name and renamed into place
        once the body has been fully received.
        """
        destination = Path(request.destination)
        partial = destination.with_name(destination.name + ".part")
        received = 0

        try:
            with httpx.Client(timeout=request.timeout_s, follow_redirects=True) as client:
                with client.stream("GET", request.url) as response:
                    response.raise_for_status()
                    with open(partial, "wb") as f:
                        for chunk in response.iter_bytes(self.CHUNK_SIZE):
                            f.write(chunk)
                            received += len(chunk)
            os.replace(partial, destination)
        except httpx.HTTPStatusError as e:
            partial.unlink(missing_ok=True)
            return ToolResult(
                success=False,
                message=f"Download failed: HTTP {e.response.status_code} for {request.url}",
            )
        except httpx.HTTPError as e:
            partial.unlink(missing_ok=True)
            return ToolResult(
                success=False,
                message=f"Download failed: {e}",
            )
        except OSError as e:
            partial.unlink(missing_ok=True)
            return ToolResult(
                success=False,
                message=f"Could not write {destination}: {e}",
            )

        return ToolResult(
            success=True,
            message=f"Downloaded {received} bytes to {destination}",
            data={"path": str(destination), "bytes": received},
        )

    @staticmethod
    def command_exists(name: str) -> bool:
        """Check if a program is available on PATH."""
        return shutil.which(name) is not None


def write_atomic(path: Path, content: str, executable: bool = False) -> Path:
    """Write text to ``path`` via a temp file in the same directory.

    Readers never observe a partially written file; an existing file is
    replaced unconditionally.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        mode = 0o755 if executable else 0o644
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


class VirtualEnv:
    """A project virtual environment.

    Activation builds the environment mapping that ``source bin/activate``
    would produce; commands run with ``environ()`` resolve ``python`` and
    ``pip`` to the venv. The current process is never modified.
    """

    def __init__(self, path: Path):
        self.path = path
        self._environ: Optional[dict[str, str]] = None

    @property
    def bin_dir(self) -> Path:
        return self.path / "bin"

    @property
    def is_active(self) -> bool:
        return self._environ is not None

    def create_request(self, python: str = "python3") -> RunCommandRequest:
        """Request that creates the venv (``python3 -m venv <path>``)."""
        return RunCommandRequest(argv=[python, "-m", "venv", str(self.path)])

    def activate(self) -> dict[str, str]:
        env = dict(os.environ)
        env.pop("PYTHONHOME", None)
        env["VIRTUAL_ENV"] = str(self.path)
        env["PATH"] = os.pathsep.join(filter(None, [str(self.bin_dir), env.get("PATH", "")]))
        self._environ = env
        logger.debug(f"Activated virtual environment {self.path}")
        return env

    def environ(self) -> dict[str, str]:
        if self._environ is None:
            raise RuntimeError(f"Virtual environment {self.path} is not active")
        return self._environ

    def deactivate(self) -> None:
        if self._environ is None:
            raise RuntimeError(f"Virtual environment {self.path} is not active")
        self._environ = None
        logger.debug(f"Deactivated virtual environment {self.path}")
