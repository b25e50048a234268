# remote/poller.py
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from stagerunner.errors import PollLimitExceeded, RemoteFailure
from stagerunner.model import InvocationStatus, Outcome, Run, Succeeded
from stagerunner.settings import POLL_INTERVAL
from stagerunner.ui.console import get_console

from .executor import RemoteExecutor

Sleep = Callable[[float], Awaitable[None]]


class Ticker:
    """
    Async iterator that yields once per interval.

    Owned by a single poll loop. Use it as an async context manager so it
    is closed on every exit path; a closed ticker never sleeps or yields
    again.
    """

    def __init__(self, interval: float, sleep: Sleep = asyncio.sleep):
        self.interval = interval
        self._sleep = sleep
        self.ticks = 0
        self.closed = False

    def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> Ticker:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __aiter__(self) -> Ticker:
        return self

    async def __anext__(self) -> int:
        if self.closed:
            raise StopAsyncIteration
        await self._sleep(self.interval)
        if self.closed:
            raise StopAsyncIteration
        self.ticks += 1
        return self.ticks


class StatusPoller:
    """Polls SSM until a run reaches a terminal status."""

    def __init__(
        self,
        executor: RemoteExecutor,
        interval: float = POLL_INTERVAL,
        sleep: Sleep = asyncio.sleep,
        max_polls: Optional[int] = None,
        ticker_factory: Callable[[float, Sleep], Ticker] = Ticker,
    ):
        """
        Initialize poller.

        Args:
            executor: Executor used for the status queries
            interval: Seconds between status queries
            sleep: Awaitable sleep, replaceable for tests
            max_polls: Optional ceiling on status queries. None polls until
                SSM itself reports a terminal status (its own timeout is
                what ends a stuck run).
            ticker_factory: Builds the per-wait Ticker from (interval, sleep)
        """
        self.executor = executor
        self.interval = interval
        self.sleep = sleep
        self.max_polls = max_polls
        self.ticker_factory = ticker_factory

    async def wait(self, run: Run) -> Outcome:
        """
        Wait for `run` to finish.

        Returns:
            Succeeded when the command reports Success

        Raises:
            RemoteFailure: Failed, Cancelled or TimedOut
            QueryError: a status query failed (not retried)
            PollLimitExceeded: max_polls reached first
        """
        console = get_console()
        ticker = self.ticker_factory(self.interval, self.sleep)

        async with ticker:
            async for tick in ticker:
                console.print_debug(f"checking status of {run.command_id} (poll {tick})")
                invocations = await self.executor.list_invocations(run.command_id)

                if not invocations:
                    # SSM lists a command shortly after SendCommand returns
                    console.print_status(run.command_id, "not listed yet")
                else:
                    invoc = invocations[0]
                    console.print_status(run.command_id, invoc.raw_status or "")

                    if invoc.status.is_terminal:
                        run.status = invoc.status
                        if invoc.status is InvocationStatus.SUCCESS:
                            return Succeeded("success", response=run.response)
                        raise RemoteFailure(invoc.status.value, invoc.trace_output, run.command_id)

                if self.max_polls is not None and tick >= self.max_polls:
                    raise PollLimitExceeded(run.command_id, tick)

        # only reachable if the ticker was closed from outside
        raise RuntimeError(f"polling of {run.command_id} stopped before a terminal status")
