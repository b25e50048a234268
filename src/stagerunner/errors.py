# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StageError(Exception):
    """
    Structured stage error with enough context for:
      - the failure message sent to CodePipeline
      - clean console output
      - debugging without full tracebacks
    """
    kind: str
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def describe(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class InvalidAction(StageError):
    def __init__(self, action: str | None):
        super().__init__(
            kind="invalid_action",
            message=f"Invalid Command: {action}",
            details={"action": action},
        )
        self.action = action


class InvalidParameters(StageError):
    def __init__(self, action: str, missing: list[str]):
        super().__init__(
            kind="invalid_parameters",
            message=f"{action} is missing required input: {', '.join(missing)}",
            details={"action": action, "missing": missing},
        )
        self.action = action
        self.missing = missing


class SubmissionError(StageError):
    def __init__(self, message: str, **details):
        super().__init__(kind="submission_error", message=message, details=details)


class QueryError(StageError):
    def __init__(self, message: str, **details):
        super().__init__(kind="query_error", message=message, details=details)


class RemoteFailure(StageError):
    """The run reached Failed, Cancelled or TimedOut on the instance."""

    def __init__(self, status: str, trace: str, command_id: str | None = None):
        super().__init__(
            kind="remote_failure",
            message=f"SSM {status}: {trace}",
            details={"status": status, "command_id": command_id},
        )
        self.status = status
        self.trace = trace


class PollLimitExceeded(StageError):
    def __init__(self, command_id: str, polls: int):
        super().__init__(
            kind="poll_limit",
            message=f"SSM command {command_id} still running after {polls} status checks",
            details={"command_id": command_id, "polls": polls},
        )


class ReportError(StageError):
    def __init__(self, message: str, **details):
        super().__init__(kind="report_error", message=message, details=details)


class InvalidEvent(StageError):
    def __init__(self, message: str, **details):
        super().__init__(kind="invalid_event", message=message, details=details)
