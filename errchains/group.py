"""
Group - Runs main steps, then deferred cleanup, then final callbacks.
"""

import logging

from .errors import RegistrationError
from .invoker import Invoker, describe
from .result import Result
from .step import Step

logger = logging.getLogger(__name__)


class Group:
    """
    Sequences fallible steps with deterministic cleanup.

    The group manages:
    - Main steps, executed FIFO until the first failure
    - Deferred steps, executed LIFO after the main steps that were reached
    - Final callbacks, executed FIFO no matter how execution ends
    - Middleware pipeline (LIFO order) around every step

    An empty Group() is ready to use.

    Example:
        group = Group()
        group.add(open_files)
        group.defer(close_files)
        n = Ref(int)
        group.add_call(copy_stream, src, dst).fill(n)
        group.final(release_lock)

        result = group.execute()
        if not result:
            handle(result.error)
    """

    def __init__(self, name=None):
        """
        Initialize a Group.

        Args:
            name: Optional name used in logs and repr
        """
        self.name = name
        self._steps = []
        self._finals = []
        self._middleware = []
        self._pipeline = None
        self._pipeline_built = False

    def add(self, step, name=None):
        """
        Add a main step. Main steps are executed FIFO.

        Args:
            step: Zero-argument callable reporting its outcome by returning
                None, a Result or an exception, or by raising
            name: Optional display name

        Returns:
            self (for method chaining)
        """
        self._steps.append(Step(step, name=name))
        return self

    def add_call(self, func, *args, **kwargs):
        """
        Add a main step calling func(*args, **kwargs).

        Exception instances among func's return values (or raised by it)
        become the step's error, as does the error of a returned failed
        Result; returned Results are never captured. The other return values
        can be retrieved in order through the returned Filler once the step
        has run.

        Instead of
            n = None
            def copy():
                nonlocal n
                n = copy_stream(src, dst)
            group.add(copy)
        you can write
            n = Ref(int)
            group.add_call(copy_stream, src, dst).fill(n)

        Raises:
            RegistrationError: func is not callable or the arguments do not
                match its signature

        Returns:
            AsyncFiller for func's non-error return values
        """
        invoker = Invoker(func, *args, **kwargs)
        self._steps.append(Step(invoker, name=describe(func)))
        return invoker.filler

    def defer(self, cleanup, name=None):
        """
        Add a deferred cleanup step. Deferred steps are executed LIFO,
        after the main steps, and only if registered before the point where
        execution stopped.

        Returns:
            self (for method chaining)
        """
        self._steps.append(Step(cleanup, deferred=True, name=name))
        return self

    def final(self, cleanup):
        """
        Add a callback guaranteed to run at the end of every execution,
        even if a step failed or raised. Final callbacks are executed FIFO.

        Returns:
            self (for method chaining)
        """
        if not callable(cleanup):
            raise RegistrationError(f"final callback must be callable, got {cleanup!r}")
        self._finals.append(cleanup)
        return self

    def use_middleware(self, middleware):
        """
        Add middleware around every step.
        Middleware executes in LIFO order (reverse of registration).

        Returns:
            self (for method chaining)
        """
        self._middleware.append(middleware)
        self._pipeline_built = False  # Invalidate cached pipeline
        return self

    def execute(self):
        """
        Execute the group.

        Main steps run in registration order until one fails. Deferred steps
        seen before that point then run, most recent first; their failures
        are logged and discarded. Final callbacks run last, always.

        Returns:
            Result.fail with the first main-step error, else Result.ok()
        """
        if not self._pipeline_built:
            self._pipeline = self._build_pipeline()
            self._pipeline_built = True

        try:
            return self._run_steps()
        finally:
            self._run_finals()

    def _run_steps(self):
        deferred = []
        failure = None
        for step in self._steps:
            if step.deferred:
                deferred.insert(0, step)
                continue
            logger.debug("%s: running %s", self, step.name)
            result = self._pipeline(step)
            if not result.success:
                logger.info("%s: step %s failed: %s", self, step.name, result.error)
                failure = result
                break

        for step in deferred:
            logger.debug("%s: running cleanup %s", self, step.name)
            result = self._pipeline(step)
            if not result.success:
                logger.warning(
                    "%s: ignoring failure of cleanup %s: %s", self, step.name, result.error,
                    exc_info=result.error if isinstance(result.error, BaseException) else None,
                )

        if failure is not None:
            return Result.fail(failure.error, data=failure.data)
        return Result.ok()

    def _run_finals(self):
        first_error = None
        for callback in self._finals:
            try:
                callback()
            except BaseException as e:
                logger.error("%s: final callback %s raised %r", self, describe(callback), e)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def _build_pipeline(self):
        """
        Build the middleware pipeline.
        Middleware wraps in LIFO order (reverse of registration).

        Returns:
            Function that runs a step through all middleware
        """
        def run_step(step):
            return step.run()

        pipeline = run_step

        for middleware in reversed(self._middleware):
            pipeline = self._create_middleware_wrapper(middleware, pipeline)

        return pipeline

    def _create_middleware_wrapper(self, middleware, next_pipeline):
        def wrapper(step):
            return middleware.execute(step, lambda: next_pipeline(step))
        return wrapper

    def clear_steps(self):
        """Remove all main and deferred steps."""
        self._steps.clear()
        return self

    def clear_finals(self):
        """Remove all final callbacks."""
        self._finals.clear()
        return self

    def clear_middleware(self):
        """Remove all middleware."""
        self._middleware.clear()
        self._pipeline_built = False
        return self

    def reset(self):
        """Clear steps, final callbacks and middleware."""
        self.clear_steps()
        self.clear_finals()
        self.clear_middleware()
        return self

    def step_count(self):
        """Return the number of main and deferred steps."""
        return len(self._steps)

    def final_count(self):
        """Return the number of final callbacks."""
        return len(self._finals)

    def middleware_count(self):
        """Return the number of middleware."""
        return len(self._middleware)

    def __str__(self):
        return self.name or "group"

    def __repr__(self):
        deferred = sum(1 for step in self._steps if step.deferred)
        return (f"Group(name={self.name!r}, steps={len(self._steps) - deferred}, "
                f"deferred={deferred}, finals={len(self._finals)}, "
                f"middleware={len(self._middleware)})")
