"""CLI utility functions for cipherbuild.

This module provides common utilities used across CLI commands including:
- Error handling and formatting
- Project directory validation
- Result summaries
"""

import sys
from pathlib import Path
from typing import Dict

from .build.pipeline import BuildResult, PipelineStage, StageState
from .config.ini_parser import CONFIG_FILE_NAME


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str, verbose: bool = False) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Configuration error", "Build failed")
            message: Error message details
            verbose: Whether to print verbose output (e.g., traceback)
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        """Print formatted success message.

        Args:
            message: Success message
        """
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        """Print formatted warning message.

        Args:
            message: Warning message
        """
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_permission_error(error: PermissionError) -> None:
        """Handle PermissionError with standard formatting.

        Args:
            error: The PermissionError to handle
        """
        ErrorFormatter.print_error("Error: Permission denied", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that the project directory exists and holds cipherbuild.ini.

        Args:
            project_dir: Path to validate

        Raises:
            SystemExit: If the path or its configuration file is missing
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
        if not (project_dir / CONFIG_FILE_NAME).exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: {CONFIG_FILE_NAME} not found in {project_dir}"
                + f"{ErrorFormatter.RESET}"
            )
            sys.exit(2)


def failed_stage(result: BuildResult) -> str:
    """Name of the stage a failed result stopped at, or "" if none failed."""
    for stage in PipelineStage:
        if result.stages.get(stage) is StageState.FAILED:
            return stage.value
    if result.dependency is not None and not result.dependency.success:
        return f"{result.dependency.library} {failed_stage(result.dependency)}".strip()
    return ""


def print_results(results: Dict[str, BuildResult]) -> None:
    """Print one summary line per target."""
    print()
    for target_id, result in results.items():
        if result.success:
            status = f"{ErrorFormatter.GREEN}ok{ErrorFormatter.RESET}"
            detail = str(result.output_dir)
        else:
            status = f"{ErrorFormatter.RED}failed{ErrorFormatter.RESET}"
            detail = failed_stage(result) or "skipped"
        print(f"  {target_id:<14} {status:<6} {detail}")
