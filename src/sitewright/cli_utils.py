"""CLI utility functions for sitewright.

This module provides common utilities used across CLI commands including:
- Logging setup
- Changed-file path conversion for updates
- Error handling and formatting
- Path validation
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, List

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(quiet: bool = False, verbose: bool = False) -> None:
    """Setup console logging for the CLI.

    Args:
        quiet: Only show warnings and errors
        verbose: Show debug output (per-file actions)
    """
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING

    logger = logging.getLogger()
    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)


class ChangedFiles:
    """Converts changed-file arguments into site-relative paths."""

    @staticmethod
    def to_site_paths(files: Iterable[str], src_root: Path) -> List[str]:
        """Convert file arguments to ``/``-rooted paths relative to the source root.

        Args:
            files: Paths relative to the source root, or absolute paths inside it
            src_root: Absolute source root

        Returns:
            Site-relative paths

        Raises:
            ValueError: If an absolute path lies outside the source root
        """
        paths = []
        for file in files:
            path = Path(file)
            if path.is_absolute():
                try:
                    path = path.resolve().relative_to(src_root)
                except ValueError:
                    # A missing path outside the root is already site-relative
                    if path.exists():
                        raise ValueError(
                            f"{file} is not inside the source directory {src_root}"
                        ) from None
            paths.append("/" + path.as_posix().lstrip("/"))
        return paths


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Build failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        """Handle FileNotFoundError with standard formatting."""
        ErrorFormatter.print_error("Error: File not found", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_error(title: str, error: Exception, verbose: bool = False) -> None:
        """Handle a known error type: print it and exit with status 1.

        Args:
            title: Error title
            error: The exception to report
            verbose: Whether to print the traceback
        """
        ErrorFormatter.print_error(title, str(error))
        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())
        sys.exit(1)

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.handle_error("Unexpected error", Exception(message), verbose)


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path does not exist: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not project_dir.is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
