# dispatcher.py
from __future__ import annotations

from typing import Optional

from .compiler import compile_commands
from .errors import InvalidAction, InvalidParameters, ReportError, StageError
from .model import Failed, Job, Outcome
from .remote.executor import RemoteExecutor
from .remote.poller import StatusPoller
from .reporter import JobReporter
from .settings import Settings
from .ui.console import get_console


class Dispatcher:
    """
    Runs one CodePipeline job: compile -> submit -> poll -> report.

    Every job gets exactly one report. Errors are terminal for the job and
    are never retried here; CodePipeline owns retry policy.
    """

    def __init__(self, executor: RemoteExecutor, poller: StatusPoller, reporter: JobReporter):
        self.executor = executor
        self.poller = poller
        self.reporter = reporter

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> Dispatcher:
        settings = settings or Settings.from_env()
        executor = RemoteExecutor(region=settings.region)
        poller = StatusPoller(
            executor,
            interval=settings.poll_interval,
            max_polls=settings.max_polls,
        )
        return cls(executor, poller, JobReporter(region=settings.region))

    async def dispatch(self, job: Job) -> Outcome:
        console = get_console()
        console.print_job_received(job.job_id, job.action, job.parameters.instance_id)

        try:
            commands = compile_commands(job.action, job.parameters, job.input_artifact)
        except (InvalidAction, InvalidParameters) as e:
            # nothing is sent to the instance for a job that cannot compile
            outcome: Outcome = Failed(str(e), e.kind)
        else:
            console.print_commands(commands)
            outcome = await self._execute(job, commands)

        console.print_outcome(outcome.ok, "" if outcome.ok else outcome.reason)
        await self._report(job, outcome)
        return outcome

    async def _execute(self, job: Job, commands: list[str]) -> Outcome:
        console = get_console()
        try:
            run = await self.executor.submit(
                job.parameters.instance_id,
                commands,
                poll_interval=self.poller.interval,
            )
            console.print_run_submitted(run.command_id, run.instance_id)
            return await self.poller.wait(run)
        except StageError as e:
            console.print_debug(e.describe())
            return Failed(str(e), e.kind)
        except Exception as e:
            console.print_exception(e)
            return Failed(str(e), "unexpected_error")

    async def _report(self, job: Job, outcome: Outcome) -> None:
        console = get_console()
        try:
            await self.reporter.report(job, outcome)
        except ReportError as e:
            # no other channel to tell CodePipeline; give up on this job
            console.print_error(
                "Failed to report job result",
                f"Could not send result for job {job.job_id} to CodePipeline: {e}",
            )
            return
        except Exception as e:
            console.print_error(
                "Failed to report job result",
                f"Unexpected error sending result for job {job.job_id} to CodePipeline",
            )
            console.print_exception(e)
            return
        console.print_report_sent(job.job_id, outcome.ok)
