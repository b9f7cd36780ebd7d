"""
Configuration management for Selenium Setup.

Provides configuration dataclass and environment variable loading.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


CHROME_DOWNLOAD_URL = (
    "https://www.dropbox.com/scl/fi/ku84be0mhsr1j0rq5ij6m/"
    "google-chrome-stable_current_amd64.deb"
    "?rlkey=xgbyb269podvqtecaid19ix8q&st=id30yuc9&dl=1"
)

SYSTEM_PACKAGES = [
    "wget",
    "curl",
    "unzip",
    "python3",
    "python3-pip",
    "python3-venv",
]

PYTHON_PACKAGES = [
    "selenium",
    "webdriver-manager",
]


def get_base_dir() -> Path:
    """Get the base directory for selenium setup data."""
    return Path.home() / ".selenium_setup"


def get_runs_dir() -> Path:
    """Get the directory for run logs."""
    return get_base_dir() / "runs"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    return Path(value).expanduser() if value else None


@dataclass
class SetupConfig:
    """Configuration for a provisioning run."""

    # Project settings
    project_dir: Path = field(
        default_factory=lambda: _env_path("SELENIUM_SETUP_PROJECT_DIR")
        or Path.home() / "selenium_project"
    )
    venv_name: str = "selenium_env"

    # Browser settings
    chrome_url: str = field(
        default_factory=lambda: os.getenv("SELENIUM_SETUP_CHROME_URL", CHROME_DOWNLOAD_URL)
    )
    chrome_deb_name: str = "google-chrome-stable_current_amd64.deb"
    chrome_binary: str = "google-chrome"

    # Package settings
    package_manager: str = "apt-get"
    system_packages: list[str] = field(default_factory=lambda: list(SYSTEM_PACKAGES))
    python_packages: list[str] = field(default_factory=lambda: list(PYTHON_PACKAGES))
    use_sudo: bool = True

    # Download read timeout (seconds between chunks, not a total limit)
    download_timeout: float = 60.0

    # Debug mode - enables verbose logging (off by default)
    debug: bool = field(default_factory=lambda: _env_flag("SELENIUM_SETUP_DEBUG"))

    # Where steps.jsonl goes; None disables the file log
    log_dir: Optional[Path] = field(
        default_factory=lambda: _env_path("SELENIUM_SETUP_LOG_DIR")
    )

    @property
    def venv_dir(self) -> Path:
        """Get the path to the project's virtual environment."""
        return self.project_dir / self.venv_name

    @property
    def display_project_dir(self) -> str:
        """Project path with the home directory shortened to ``~``."""
        try:
            return "~/" + str(self.project_dir.relative_to(Path.home()))
        except ValueError:
            return str(self.project_dir)

    def new_run_log_dir(self) -> Path:
        """Get a fresh timestamped directory for this run's step log."""
        base = self.log_dir or get_runs_dir()
        return base / datetime.now().strftime("%Y%m%d_%H%M%S")

    @classmethod
    def from_cli_args(
        cls,
        project_dir: Optional[str] = None,
        debug: bool = False,
    ) -> "SetupConfig":
        """Create configuration from CLI arguments."""
        config = cls()
        if project_dir:
            config.project_dir = Path(project_dir).expanduser()
        config.debug = config.debug or debug
        return config


# Default configuration values for documentation
DEFAULTS = {
    "project_dir": "~/selenium_project",
}
