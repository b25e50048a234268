# handler.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from .dispatcher import Dispatcher
from .schemas import parse_event
from .settings import Settings
from .ui.console import Console, get_console, set_console


def handler(event: Dict[str, Any], context: Any, dispatcher: Optional[Dispatcher] = None) -> Dict[str, Any]:
    """
    AWS Lambda entry point for the CodePipeline custom action.

    Returns the outcome instead of raising on a failed job: the failure is
    already reported to CodePipeline, and a raised error would let Lambda
    retry the invocation and report a second time.

    Raises:
        InvalidEvent: the event carries no CodePipeline job to report against
    """
    settings = Settings.from_env()
    set_console(Console(debug=settings.debug or get_console().debug))

    invocation_context = getattr(context, "aws_request_id", None)
    job = parse_event(event, invocation_context)

    dispatcher = dispatcher or Dispatcher.from_settings(settings)
    outcome = asyncio.run(dispatcher.dispatch(job))
    return outcome.to_dict()
