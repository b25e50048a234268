from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

# Fixed per-submission configuration of the SSM run
DOCUMENT_NAME = "AWS-RunShellScript"
WORKING_DIRECTORY = "/tmp"
EXECUTION_TIMEOUT = 300

FAILURE_TYPE = "JobFailed"
FAILURE_MESSAGE_LIMIT = 5000

POLL_INTERVAL = float(os.environ.get("STAGERUNNER_POLL_INTERVAL", "2"))


def _optional_int(name: str) -> Optional[int]:
    value = os.environ.get(name, "").strip()
    return int(value) if value else None


def _flag(name: str) -> bool:
    return os.environ.get(name, "false").lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    region: Optional[str] = None
    poll_interval: float = POLL_INTERVAL
    # None means poll until SSM reports a terminal status
    max_polls: Optional[int] = None
    debug: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            region=os.environ.get("AWS_REGION") or None,
            poll_interval=float(os.environ.get("STAGERUNNER_POLL_INTERVAL", str(POLL_INTERVAL))),
            max_polls=_optional_int("STAGERUNNER_MAX_POLLS"),
            debug=_flag("STAGERUNNER_DEBUG"),
        )
