"""
Middleware - Wraps the execution of every step in a Group.
"""

import logging
import time


class Middleware:
    """
    Base class for middleware that wraps step execution.

    Middleware provides cross-cutting concerns like logging and timing.
    Middleware executes in LIFO order (reverse of registration) - like gift wrapping.
    """

    def execute(self, step, next_callable):
        """
        Execute the middleware logic.

        Args:
            step: The Step about to run
            next_callable: Zero-argument function continuing the pipeline
                (must be called); returns the step's Result

        Returns:
            Result from the next callable (or modified result)

        Example:
            def execute(self, step, next_callable):
                print(f"Before {step}")
                result = next_callable()
                print(f"After {step}")
                return result
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement execute()")

    def __repr__(self):
        return f"{self.__class__.__name__}()"

    def __str__(self):
        return self.__class__.__name__


class LoggingMiddleware(Middleware):
    """
    Log the start, completion and failure of every step.

    Failures of deferred steps are logged at WARNING regardless of level,
    since the group discards them.
    """

    def __init__(self, logger=None, level=logging.INFO):
        """
        Initialize the LoggingMiddleware.

        Args:
            logger: Logger to write to (default: this module's logger)
            level: Level for start/completion/failure records
        """
        self.logger = logger or logging.getLogger(__name__)
        self.level = level

    def execute(self, step, next_callable):
        kind = "cleanup" if step.deferred else "step"
        self.logger.log(self.level, "Starting %s %s", kind, step.name)

        start = time.perf_counter()
        result = next_callable()
        elapsed = (time.perf_counter() - start) * 1000

        if result.success:
            self.logger.log(self.level, "Completed %s %s in %.2fms", kind, step.name, elapsed)
        else:
            level = logging.WARNING if step.deferred else self.level
            self.logger.log(level, "Failed %s %s: %s", kind, step.name, result.error)

        return result
