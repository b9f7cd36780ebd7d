"""
CLI for Selenium Setup.

Provides the command-line interface using argparse.
"""

import argparse
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import SetupConfig, DEFAULTS
from .logger import SetupLogger, configure_logging
from .provisioner import PrivilegeError, Provisioner, ProvisionError


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="selenium-setup",
        description="Install Google Chrome and scaffold a ready-to-run Selenium project (Debian/Ubuntu).",
        epilog="""
Examples:
  # Full setup into ~/selenium_project
  selenium-setup

  # Scaffold somewhere else, with verbose logging
  selenium-setup --project-dir ~/work/scraper --debug

Run as a regular user; package installation goes through sudo.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Selenium Setup {__version__}",
    )

    parser.add_argument(
        "--project-dir",
        type=str,
        default=None,
        help=f"Project directory to create (default: {DEFAULTS['project_dir']})",
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        default=False,
        help="Enable debug mode: log every command that is executed",
    )

    return parser


def run_command(args: argparse.Namespace, console: Optional[Console] = None) -> int:
    """Execute a provisioning run.

    Args:
        args: Parsed command line arguments
        console: Rich console for output

    Returns:
        Exit code (0 on completion, even if the smoke test failed)
    """
    console = console or Console(highlight=False)

    config = SetupConfig.from_cli_args(
        project_dir=args.project_dir,
        debug=args.debug,
    )
    configure_logging(config.debug)

    setup_logger = SetupLogger(console=console, log_dir=config.new_run_log_dir())
    provisioner = Provisioner(config, setup_logger=setup_logger)

    try:
        provisioner.run()
        return 0
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    except PrivilegeError as e:
        # Nothing has been touched yet, not even the run log
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1
    except ProvisionError as e:
        setup_logger.print_error(str(e))
        console.print("[bold red]Setup aborted.[/bold red]")
        return 1
    except Exception as e:
        console.print(f"[bold red]Fatal error: {escape(str(e))}[/bold red]")
        if config.debug:
            console.print_exception()
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_command(args)


if __name__ == "__main__":
    sys.exit(main())
