# model.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import parse_qsl

from .settings import EXECUTION_TIMEOUT, POLL_INTERVAL


@dataclass(frozen=True)
class ArtifactLocation:
    """Where a previous stage left its output (an S3 object)."""
    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


class ParameterSet(Mapping[str, str]):
    """
    User parameters of one pipeline action, decoded from the
    URL-query-encoded UserParameters string.

    Read-only. Keys the compiler does not consume are kept but ignored.
    """

    COMMAND = "command"
    INSTANCE_ID = "instanceId"
    HABITAT_TOKEN = "habitattoken"
    GITHUB_TOKEN = "githubToken"

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values = MappingProxyType(dict(values or {}))

    @classmethod
    def from_query(cls, query: Optional[str]) -> ParameterSet:
        # duplicate keys: last one wins
        return cls(dict(parse_qsl(query or "", keep_blank_values=True)))

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ParameterSet):
            return dict(self._values) == dict(other._values)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._values.items()))

    def __repr__(self) -> str:
        # keys only, values may be tokens
        return f"ParameterSet(keys={sorted(self._values)})"

    @property
    def command(self) -> Optional[str]:
        return self.get(self.COMMAND)

    @property
    def instance_id(self) -> Optional[str]:
        return self.get(self.INSTANCE_ID)

    @property
    def habitat_token(self) -> Optional[str]:
        return self.get(self.HABITAT_TOKEN)

    @property
    def github_token(self) -> Optional[str]:
        return self.get(self.GITHUB_TOKEN)


@dataclass(frozen=True)
class Job:
    """One CodePipeline job handed to this stage."""
    job_id: str
    parameters: ParameterSet = field(default_factory=ParameterSet)
    input_artifact: Optional[ArtifactLocation] = None
    invocation_context: Optional[str] = None

    @property
    def action(self) -> Optional[str]:
        return self.parameters.command


class InvocationStatus(str, Enum):
    IN_PROGRESS = "InProgress"
    PENDING = "Pending"
    DELAYED = "Delayed"
    CANCELLING = "Cancelling"
    SUCCESS = "Success"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    TIMED_OUT = "TimedOut"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> InvocationStatus:
        """Map an SSM status string to a member; unrecognized values become UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    InvocationStatus.SUCCESS,
    InvocationStatus.FAILED,
    InvocationStatus.CANCELLED,
    InvocationStatus.TIMED_OUT,
})


@dataclass(frozen=True)
class Invocation:
    """One record from ListCommandInvocations."""
    command_id: str
    instance_id: Optional[str]
    status: InvocationStatus
    raw_status: Optional[str]
    trace_output: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Invocation:
        raw = data.get("Status")
        return cls(
            command_id=data.get("CommandId", ""),
            instance_id=data.get("InstanceId"),
            status=InvocationStatus.parse(raw),
            raw_status=raw,
            trace_output=data.get("TraceOutput") or "",
        )


@dataclass
class Run:
    """
    One submitted command sequence on one instance.

    Created by the executor on submission. Only the poller updates
    `status`; once it is terminal the run is never queried again.
    """
    command_id: str
    instance_id: str
    commands: List[str]
    submitted_at: float = field(default_factory=time.time)
    timeout: int = EXECUTION_TIMEOUT
    poll_interval: float = POLL_INTERVAL
    status: InvocationStatus = InvocationStatus.IN_PROGRESS
    response: Dict[str, Any] = field(default_factory=dict)  # raw SendCommand response

    @property
    def finished(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True)
class Succeeded:
    message: str
    response: Dict[str, Any] = field(default_factory=dict, compare=False)

    ok = True

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "succeeded", "message": self.message}


@dataclass(frozen=True)
class Failed:
    reason: str
    kind: str = "job_failed"

    ok = False

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "failed", "reason": self.reason, "kind": self.kind}


Outcome = Union[Succeeded, Failed]
