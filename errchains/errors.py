"""Exception hierarchy for errchains.

Step failures are values (see Result); the exceptions here signal misuse of
the library itself, plus the wrapper raised by Result.raise_for_failure().
"""


class ErrchainsError(Exception):
    """Base exception for all errchains errors."""

    def __init__(self, message, suggestion=None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self):
        if self.suggestion:
            return f"{self.message} ({self.suggestion})"
        return self.message


class MisuseError(ErrchainsError):
    """The caller used the API incorrectly.

    Never becomes a step outcome: raised from a step, it propagates out of
    Group.execute() after final callbacks have run.
    """

    pass


class RegistrationError(MisuseError, TypeError):
    """A step could not be registered (not callable, arguments do not bind)."""

    pass


class CaptureError(MisuseError):
    """A captured value could not be delivered to a destination."""

    pass


class AmbiguousResultError(MisuseError):
    """A wrapped call returned more than one error value."""

    pass


class StepFailedError(ErrchainsError):
    """A failed Result whose error is not an exception was raised."""

    def __init__(self, error):
        super().__init__(f"step failed: {error!r}")
        self.error = error
