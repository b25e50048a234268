from .compiler import ACTIONS, compile_commands
from .dispatcher import Dispatcher
from .handler import handler
from .model import ArtifactLocation, Failed, Job, ParameterSet, Succeeded

__all__ = [
    "ACTIONS",
    "compile_commands",
    "Dispatcher",
    "handler",
    "ArtifactLocation",
    "Failed",
    "Job",
    "ParameterSet",
    "Succeeded",
]
