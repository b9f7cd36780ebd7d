"""
Typed tool schemas for Selenium Setup.

Provides Pydantic models for command and download arguments with validation.
Commands are always argv lists - never shell strings.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RunCommandRequest(BaseModel):
    """Request to run a command.

    IMPORTANT: Commands must be specified as argv list, NOT shell strings.

    Example:
        ✅ Correct: argv=["apt-get", "install", "-y", "wget"]
        ❌ Wrong: cmd="apt-get install -y wget"
    """

    argv: list[str] = Field(
        description="Command as list of arguments (NOT a shell string)"
    )
    cwd: Optional[str] = Field(
        default=None,
        description="Working directory for command execution"
    )
    env: Optional[dict[str, str]] = Field(
        default=None,
        description="Full environment for the child process (inherits when None)"
    )
    capture_output: bool = Field(
        default=False,
        description="Capture stdout/stderr instead of streaming to the terminal"
    )
    sudo: bool = Field(
        default=False,
        description="Prefix the command with sudo"
    )

    @field_validator("argv")
    @classmethod
    def validate_argv(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("argv cannot be empty")
        if not v[0]:
            raise ValueError("Program name cannot be empty")
        return v

    @field_validator("cwd")
    @classmethod
    def validate_cwd(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return str(Path(v).expanduser())

    @property
    def full_argv(self) -> list[str]:
        """The argv actually executed, including sudo when requested."""
        if self.sudo:
            return ["sudo", *self.argv]
        return list(self.argv)

    def display(self) -> str:
        return " ".join(self.full_argv)


class DownloadRequest(BaseModel):
    """Request to download a file over HTTP(S)."""

    url: str = Field(description="Source URL")
    destination: str = Field(description="File path to write")
    timeout_s: float = Field(
        default=60.0,
        gt=0,
        description="Network timeout in seconds"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Unsupported URL scheme: {v}")
        return v

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if not v:
            raise ValueError("Destination cannot be empty")
        return str(Path(v).expanduser())
