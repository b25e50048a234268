# reporter.py
from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ReportError
from .model import Job, Outcome
from .settings import FAILURE_MESSAGE_LIMIT, FAILURE_TYPE
from .ui.console import get_console


def failure_message(reason: object) -> str:
    """JSON-encode the failure reason and fit it into CodePipeline's limit.

    The text is shortened before encoding so the result is always a
    complete JSON string; escapes make the encoded form longer than the
    text, so keep cutting until it fits.
    """
    text = str(reason)
    message = json.dumps(text)
    limit = len(text)
    while len(message) > FAILURE_MESSAGE_LIMIT:
        limit -= max(1, len(message) - FAILURE_MESSAGE_LIMIT)
        message = json.dumps(text[: max(limit, 0)] + "...")
    return message


class JobReporter:
    """Sends the job result back to CodePipeline."""

    def __init__(self, client: Any = None, region: Optional[str] = None):
        """
        Initialize reporter.

        Args:
            client: Optional pre-built CodePipeline client
            region: AWS region used when building the default client
        """
        self.client = client if client is not None else boto3.client("codepipeline", region_name=region)

    async def report_success(self, job_id: str, message: str) -> None:
        """
        Mark the job as succeeded.

        Raises:
            ReportError: CodePipeline rejected the call
        """
        get_console().print_debug(f"PutJobSuccessResult {job_id}: {message}")
        try:
            await asyncio.to_thread(self.client.put_job_success_result, jobId=job_id)
        except (ClientError, BotoCoreError) as e:
            raise ReportError(f"PutJobSuccessResult failed: {e}", job_id=job_id) from e

    async def report_failure(
        self,
        job_id: str,
        invocation_context: Optional[str],
        reason: object,
    ) -> None:
        """
        Mark the job as failed.

        Raises:
            ReportError: CodePipeline rejected the call
        """
        details = {
            "message": failure_message(reason),
            "type": FAILURE_TYPE,
        }
        # externalExecutionId must be non-empty when present
        if invocation_context:
            details["externalExecutionId"] = invocation_context

        try:
            await asyncio.to_thread(
                self.client.put_job_failure_result,
                jobId=job_id,
                failureDetails=details,
            )
        except (ClientError, BotoCoreError) as e:
            raise ReportError(f"PutJobFailureResult failed: {e}", job_id=job_id) from e

    async def report(self, job: Job, outcome: Outcome) -> None:
        if outcome.ok:
            await self.report_success(job.job_id, outcome.message)
        else:
            await self.report_failure(job.job_id, job.invocation_context, outcome.reason)
