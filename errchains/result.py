"""
Result - Represents the outcome of a step or of a whole group execution.
"""

from .errors import StepFailedError


class Result:
    """
    Represents the outcome of a step execution.
    Contains success status and optional error information.
    """

    def __init__(self, success, error=None, data=None):
        """
        Initialize a Result.

        Args:
            success: Boolean indicating if the step succeeded
            error: Optional error (usually an exception, may be any value)
            data: Optional value the step returned alongside its outcome
        """
        self.success = success
        self.error = error
        self.data = data

    @staticmethod
    def ok(data=None):
        """Create a successful result."""
        return Result(True, data=data)

    @staticmethod
    def fail(error, data=None):
        """
        Create a failed result.

        Args:
            error: Exception or error value describing the failure
            data: Optional additional data about the failure

        Returns:
            Result instance indicating failure
        """
        return Result(False, error=error, data=data)

    @staticmethod
    def from_outcome(outcome):
        """
        Normalise whatever a step callable returned into a Result.

        None means success, a Result is taken as-is, an exception instance
        means failure, and any other value is success carrying that value.
        """
        if outcome is None:
            return Result.ok()
        if isinstance(outcome, Result):
            return outcome
        if isinstance(outcome, BaseException):
            return Result.fail(outcome)
        return Result.ok(data=outcome)

    def is_success(self):
        """Return True if the result indicates success."""
        return self.success

    def is_failure(self):
        """Return True if the result indicates failure."""
        return not self.success

    def raise_for_failure(self):
        """
        Raise the failure's error, or return self on success.

        Errors that are not exceptions are wrapped in StepFailedError.
        """
        if self.success:
            return self
        if isinstance(self.error, BaseException):
            raise self.error
        raise StepFailedError(self.error)

    def __bool__(self):
        """Allow Result to be used in boolean context (if result: ...)"""
        return self.success

    def __repr__(self):
        if self.success:
            return f"Result.ok(data={self.data!r})"
        else:
            return f"Result.fail(error={self.error!r}, data={self.data!r})"

    def __str__(self):
        if self.success:
            return "Success"
        else:
            return f"Failure: {self.error}"
