"""Terraform and AWS workflow engine."""

from .cloud import CloudClient
from .driver import Driver
from .runner import CommandResult, ProcessRunner, SubprocessRunner
from .state import StageStore
from .terraform import Terraform

__all__ = [
    "CloudClient",
    "Driver",
    "CommandResult",
    "ProcessRunner",
    "SubprocessRunner",
    "StageStore",
    "Terraform",
]
