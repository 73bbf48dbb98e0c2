"""
errchains - Sequencing fallible steps with deterministic cleanup

errchains chains operations that may fail when you do not need to handle
each failure separately. It provides:
- Main steps that run in order until the first failure
- Deferred cleanup steps that run afterwards, most recent first
- Final callbacks that always run
- Capture of the return values of registered calls

Example:
    from errchains import Group, Ref

    group = Group()
    group.add(acquire)
    group.defer(release)          # runs after the main steps
    n = Ref(int)
    group.add_call(copy_stream, src, dst).fill(n)
    group.final(notify)           # runs even if a step failed

    result = group.execute()
    if not result:
        print(result.error)
"""

__version__ = "1.0.0"
__author__ = "errchains Contributors"

from .capture import AsyncFiller, Filler, Ref, ValuesFiller
from .errors import (
    AmbiguousResultError,
    CaptureError,
    ErrchainsError,
    MisuseError,
    RegistrationError,
    StepFailedError,
)
from .group import Group
from .invoker import Invoker
from .middleware import LoggingMiddleware, Middleware
from .result import Result
from .step import Step

__all__ = [
    'Group',
    'Step',
    'Result',
    'Invoker',
    'Filler',
    'AsyncFiller',
    'ValuesFiller',
    'Ref',
    'Middleware',
    'LoggingMiddleware',
    'ErrchainsError',
    'MisuseError',
    'RegistrationError',
    'CaptureError',
    'AmbiguousResultError',
    'StepFailedError',
]
