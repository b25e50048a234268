from __future__ import annotations

from typing import Any, Dict, List

import pytest
from botocore.exceptions import ClientError

from stagerunner.ui.console import Console, set_console


def client_error(operation: str, code: str = "InvalidInstanceId", message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def invocation(status: str, trace: str = "", command_id: str = "cmd-1") -> Dict[str, Any]:
    return {
        "CommandId": command_id,
        "InstanceId": "i-0123",
        "Status": status,
        "TraceOutput": trace,
    }


class FakeSSM:
    """
    Scripted stand-in for a boto3 SSM client.

    `statuses` is consumed one entry per ListCommandInvocations call. An entry
    is a status string, a list of invocation dicts, or an exception to raise.
    """

    def __init__(self, statuses=None, send_error: Exception | None = None, command_id: str = "cmd-1"):
        self.statuses = list(statuses or [])
        self.send_error = send_error
        self.command_id = command_id
        self.sent: List[Dict[str, Any]] = []
        self.queries: List[str] = []
        self.events: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def send_command(self, **kwargs):
        self.sent.append(kwargs)
        if self.send_error is not None:
            raise self.send_error
        return {"Command": {"CommandId": self.command_id, "Status": "Pending"}}

    def list_command_invocations(self, CommandId):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.queries.append(CommandId)
            self.events.append("query")
            entry = self.statuses.pop(0) if self.statuses else "InProgress"
            if isinstance(entry, Exception):
                raise entry
            if isinstance(entry, str):
                entry = [invocation(entry, command_id=CommandId)]
            return {"CommandInvocations": entry}
        finally:
            self.in_flight -= 1


class FakeCodePipeline:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.successes: List[Dict[str, Any]] = []
        self.failures: List[Dict[str, Any]] = []

    @property
    def calls(self) -> int:
        return len(self.successes) + len(self.failures)

    def put_job_success_result(self, **kwargs):
        self.successes.append(kwargs)
        if self.error is not None:
            raise self.error
        return {}

    def put_job_failure_result(self, **kwargs):
        self.failures.append(kwargs)
        if self.error is not None:
            raise self.error
        return {}


class RecordingSleep:
    """Fake clock: records requested delays instead of waiting."""

    def __init__(self, events: List[str] | None = None):
        self.delays: List[float] = []
        self.events = events

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.events is not None:
            self.events.append("sleep")

    @property
    def elapsed(self) -> float:
        return sum(self.delays)


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console())
    yield
    set_console(Console())


@pytest.fixture
def pipeline_event():
    def make(user_parameters: str = "command=Test-StaticAnalysis&instanceId=i-0123", artifacts=None):
        return {
            "CodePipeline.job": {
                "id": "job-42",
                "accountId": "111111111111",
                "data": {
                    "actionConfiguration": {
                        "configuration": {
                            "FunctionName": "stagerunner",
                            "UserParameters": user_parameters,
                        }
                    },
                    "inputArtifacts": artifacts if artifacts is not None else [],
                    "outputArtifacts": [],
                },
            }
        }
    return make
