"""Console output formatting utilities for cijobs."""

from __future__ import annotations

import sys
from typing import Mapping, Optional, Sequence, Union


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_plan_started(
        self,
        workflow: str,
        project_count: int,
        diff_source: str,
    ) -> None:
        """Print job planning start information."""
        print("\nPLAN STARTED", file=sys.stderr)
        print(f"Workflow: {workflow}", file=sys.stderr)
        print(f"Projects: {project_count}", file=sys.stderr)
        print(f"Changes: {diff_source}", file=sys.stderr)

    def print_changes(self, changes: Union[Mapping[str, Sequence[str]], bool]) -> None:
        """Print the per-project file attribution."""
        self.print_header("CHANGES")
        if changes is True:
            print("  all projects changed")
            return
        if not changes:
            print("  (none)")
            return
        for project, files in changes.items():
            print(f"  {project}")
            for f in files:
                print(f"    {f}")

    def print_job_summary(self, lint: Sequence[str], test: Sequence[str]) -> None:
        """Print the names of the jobs that were created (to stderr, stdout carries JSON)."""
        print(f"\nLINT JOBS: {len(lint)}", file=sys.stderr)
        for name in lint:
            print(f"  {name}", file=sys.stderr)
        print(f"TEST JOBS: {len(test)}", file=sys.stderr)
        for name in test:
            print(f"  {name}", file=sys.stderr)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        print(f"WARNING: {message}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message, file=sys.stderr)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
