from .executor import RemoteExecutor
from .poller import StatusPoller, Ticker

__all__ = ["RemoteExecutor", "StatusPoller", "Ticker"]
