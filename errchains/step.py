"""
Step - A registered operation in a Group.
"""

from .errors import MisuseError, RegistrationError
from .invoker import describe
from .result import Result


class Step:
    """
    A zero-argument operation plus the flag saying whether it is deferred.

    Steps are created by Group.add/defer/add_call and never change after
    registration.
    """

    def __init__(self, func, deferred=False, name=None):
        """
        Initialize a Step.

        Args:
            func: Zero-argument callable. It may return None, a Result, an
                exception instance or any other value, or raise.
            deferred: True for cleanup steps registered with Group.defer
            name: Display name used in logs (defaults to the callable's name)

        Raises:
            RegistrationError: func is not callable
        """
        if not callable(func):
            raise RegistrationError(f"step must be callable, got {type(func).__name__} {func!r}")
        self.func = func
        self.deferred = deferred
        self.name = name or describe(func)

    def run(self):
        """
        Run the step and normalise its outcome.

        Exceptions raised by the callable become failed Results, except
        MisuseError which signals a programming error and propagates.

        Returns:
            Result of the step
        """
        try:
            outcome = self.func()
        except MisuseError:
            raise
        except Exception as e:
            return Result.fail(e)
        return Result.from_outcome(outcome)

    def __repr__(self):
        kind = "deferred" if self.deferred else "main"
        return f"Step({self.name!r}, {kind})"

    def __str__(self):
        return self.name
