"""Console output formatting utilities for stagerunner."""

from __future__ import annotations

import re
import sys
from typing import Optional, Sequence

_SECRET_EXPORT = re.compile(r"(export HAB_AUTH_TOKEN=)\S+")


def redact(command: str) -> str:
    """Mask token values exported by a command."""
    return _SECRET_EXPORT.sub(r"\1****", command)


class Console:
    """Centralized console output formatting.

    Everything goes to stdout/stderr, which Lambda ships to CloudWatch.
    """

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_job_received(
        self,
        job_id: str,
        action: Optional[str],
        instance_id: Optional[str],
    ) -> None:
        """Print job start information."""
        print("\nJOB RECEIVED")
        print(f"Job ID: {job_id}")
        print(f"Action: {action}")
        print(f"Instance: {instance_id}")

    def print_commands(self, commands: Sequence[str]) -> None:
        """Print the compiled command sequence, with secrets masked."""
        print(f"COMMANDS: {len(commands)}")
        for i, cmd in enumerate(commands, start=1):
            print(f"  {i}. {redact(cmd)}")

    def print_run_submitted(self, command_id: str, instance_id: str) -> None:
        """Print SSM submission message."""
        print(f"SUBMITTED: command {command_id} on {instance_id}")

    def print_status(self, command_id: str, status: str) -> None:
        """Print one status check."""
        print(f"SSM Command: {command_id} status {status}")

    def print_outcome(self, ok: bool, detail: str) -> None:
        """Print the final outcome of the job."""
        print(f"STATUS: {'success' if ok else 'failed'}")
        if not ok:
            if self.debug:
                print(f"Error details: {detail}")
            else:
                # first line only, traces can be long
                error_line = detail.split('\n')[0] if detail else "Unknown error"
                print(f"Error: {error_line}")

    def print_report_sent(self, job_id: str, ok: bool) -> None:
        """Print coordinator notification message."""
        result = "success" if ok else "failure"
        print(f"REPORTED: {result} for job {job_id}")

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
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (set by the handler or the CLI)
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
