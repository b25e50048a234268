# remote/executor.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from stagerunner.errors import QueryError, SubmissionError
from stagerunner.model import Invocation, Run
from stagerunner.settings import DOCUMENT_NAME, EXECUTION_TIMEOUT, POLL_INTERVAL, WORKING_DIRECTORY
from stagerunner.ui.console import get_console


def _error_text(e: Exception) -> str:
    if isinstance(e, ClientError):
        err = e.response.get("Error", {})
        return f"{err.get('Code', 'ClientError')}: {err.get('Message', str(e))}"
    return str(e)


class RemoteExecutor:
    """Runs command sequences on an EC2 instance through SSM Run Command."""

    def __init__(self, client: Any = None, region: Optional[str] = None):
        """
        Initialize executor.

        Args:
            client: Optional pre-built SSM client (anything with send_command
                and list_command_invocations)
            region: AWS region used when building the default client
        """
        self.client = client if client is not None else boto3.client("ssm", region_name=region)

    @staticmethod
    def build_request(instance_id: str, commands: Sequence[str]) -> Dict[str, Any]:
        """SendCommand arguments for one instance."""
        return {
            "DocumentName": DOCUMENT_NAME,
            "InstanceIds": [instance_id],
            "Parameters": {
                "commands": list(commands),
                "workingDirectory": [WORKING_DIRECTORY],
                "executionTimeout": [str(EXECUTION_TIMEOUT)],
            },
            "TimeoutSeconds": EXECUTION_TIMEOUT,
        }

    async def submit(
        self,
        instance_id: Optional[str],
        commands: Sequence[str],
        poll_interval: float = POLL_INTERVAL,
    ) -> Run:
        """
        Send the command sequence and return as soon as SSM accepts it.

        Raises:
            SubmissionError: bad target, empty sequence, or SSM rejected the call
        """
        if not instance_id or not instance_id.strip():
            raise SubmissionError("No instanceId given for the remote target")
        if not commands:
            raise SubmissionError("Refusing to send an empty command sequence", instance_id=instance_id)

        request = self.build_request(instance_id, commands)
        get_console().print_debug(f"SendCommand to {instance_id} ({len(commands)} commands)")

        try:
            response = await asyncio.to_thread(self.client.send_command, **request)
        except (ClientError, BotoCoreError) as e:
            raise SubmissionError(
                f"SSM SendCommand failed: {_error_text(e)}",
                instance_id=instance_id,
            ) from e

        command_id = (response.get("Command") or {}).get("CommandId")
        if not command_id:
            raise SubmissionError("SSM SendCommand returned no CommandId", instance_id=instance_id)

        return Run(
            command_id=command_id,
            instance_id=instance_id,
            commands=list(commands),
            poll_interval=poll_interval,
            response=response,
        )

    async def list_invocations(self, command_id: str) -> List[Invocation]:
        """
        Fetch the current invocation records of a command. One call, no retry.

        Raises:
            QueryError: SSM could not be queried
        """
        try:
            response = await asyncio.to_thread(
                self.client.list_command_invocations,
                CommandId=command_id,
            )
        except (ClientError, BotoCoreError) as e:
            raise QueryError(
                f"SSM ListCommandInvocations failed: {_error_text(e)}",
                command_id=command_id,
            ) from e

        return [Invocation.from_dict(item) for item in response.get("CommandInvocations", [])]
