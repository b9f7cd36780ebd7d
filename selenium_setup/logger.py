"""
Logging for Selenium Setup.

Handles JSONL step logging and rich console output for a provisioning run.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table


def configure_logging(debug: bool = False) -> None:
    """Route module loggers through rich; verbose only in debug mode."""
    root = logging.getLogger("selenium_setup")
    root.handlers.clear()
    root.addHandler(RichHandler(show_path=False, markup=False))
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    root.propagate = False


class SetupLogger:
    """Manages console output and the step log for a single run."""

    TOTAL_STEPS = 7

    def __init__(
        self,
        enable_console: bool = True,
        log_dir: Optional[Path] = None,
        console: Optional[Console] = None,
    ):
        """Initialize the setup logger.

        Args:
            enable_console: Whether to print to console
            log_dir: Directory for steps.jsonl (no file log when None)
            console: Console to print to (a new one when None)
        """
        if enable_console:
            self.console = console or Console(highlight=False)
        else:
            self.console = None

        # Created on first write
        self.steps_file: Optional[Path] = log_dir / "steps.jsonl" if log_dir else None

        self.step_count = 0
        self.current_title = ""

    def log_event(
        self,
        title: str,
        success: bool,
        detail: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        """Append one event to the JSONL file.

        Args:
            title: What happened
            success: Whether it succeeded
            detail: Optional human-readable detail
            data: Optional extra fields
        """
        if self.steps_file is None:
            return

        record = {
            "step": self.step_count,
            "timestamp": datetime.now().isoformat(),
            "title": title,
            "success": success,
            "detail": detail,
        }
        if data:
            record["data"] = data

        self.steps_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.steps_file, "a") as f:
            f.write(json.dumps(record) + "\n")

    def print_header(self) -> None:
        """Print the run header to console."""
        if not self.console:
            return

        self.console.print("[green]======================================[/green]")
        self.console.print("[green]Chrome & Selenium Auto Setup Script[/green]")
        self.console.print("[green]======================================[/green]")

    def print_step(self, title: str) -> None:
        """Print a numbered step header, e.g. ``[3/7] Downloading Chrome...``."""
        self.step_count += 1
        self.current_title = title
        self.log_event(title, True, "started")

        if not self.console:
            return
        self.console.print()
        self.console.print(f"[yellow][{self.step_count}/{self.TOTAL_STEPS}] {title}[/yellow]")

    def print_info(self, message: str) -> None:
        """Print an unnumbered progress line."""
        if not self.console:
            return
        self.console.print()
        self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def print_detail(self, message: str) -> None:
        """Print a highlighted fact, e.g. the detected version."""
        if not self.console:
            return
        self.console.print(f"[green]{escape(message)}[/green]")

    def print_result(self, success: bool, message: str) -> None:
        """Print a pass/fail result line.

        Args:
            success: Whether the action succeeded
            message: Result message
        """
        self.log_event(self.current_title, success, message)

        if not self.console:
            return

        if success:
            self.console.print(f"[green]✓ {escape(message)}[/green]")
        else:
            self.console.print(f"[red]✗ {escape(message)}[/red]")

    def print_error(self, error: str) -> None:
        """Print a fatal error message to console.

        Args:
            error: Error message
        """
        self.log_event(self.current_title, False, error)

        if not self.console:
            return
        self.console.print(f"[bold red]Error:[/bold red] {escape(error)}")

    def print_summary(
        self,
        chrome_version: str,
        project_path: str,
        smoke_test_passed: bool,
    ) -> None:
        """Print the completion banner and next steps.

        Args:
            chrome_version: Detected Chrome version string
            project_path: Project directory as shown to the user
            smoke_test_passed: Result of the smoke test
        """
        self.log_event(
            "Setup complete",
            True,
            data={
                "chrome_version": chrome_version,
                "project_path": project_path,
                "smoke_test_passed": smoke_test_passed,
            },
        )

        if not self.console:
            return

        table = Table(show_header=False, box=None)
        table.add_column("Property", style="dim")
        table.add_column("Value")
        table.add_row("📦 Chrome Version", f"[green]{escape(chrome_version)}[/green]")
        table.add_row("📁 Project Location", f"[green]{escape(project_path)}[/green]")
        table.add_row(
            "🧪 Selenium Test",
            "[green]passed[/green]" if smoke_test_passed else "[red]failed[/red]",
        )

        shown_path = escape(project_path)
        next_steps = (
            f"[yellow]Next steps:[/yellow]\n"
            f"1. cd {shown_path}\n"
            f"2. source ./activate.sh\n"
            f"3. python test_selenium.py  # Verify setup\n"
            f"4. python example.py         # Run example\n"
            f"\n"
            f"[yellow]For help: cat {shown_path}/README.txt[/yellow]"
        )

        self.console.print()
        self.console.print(Panel(
            "[bold green]✅ SETUP COMPLETE![/bold green]",
            border_style="green",
        ))
        self.console.print(table)
        self.console.print()
        self.console.print(next_steps)
        self.console.print("[green]======================================[/green]")
