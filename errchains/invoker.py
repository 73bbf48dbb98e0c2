"""
Invoker - adapts an arbitrary call into a zero-argument step.
"""

import inspect
import logging

from .capture import AsyncFiller
from .errors import AmbiguousResultError, MisuseError, RegistrationError
from .result import Result

logger = logging.getLogger(__name__)


def split_results(returned):
    """
    Split a call's return value into (error, values).

    A tuple is the ordered sequence of results, None is no results and any
    other value is a single result. Exception instances are errors, and a
    Result is an outcome: a failed one contributes its error, a successful
    one contributes nothing. The rest are values, in order.

    Raises:
        AmbiguousResultError: more than one error among the results
    """
    if returned is None:
        results = ()
    elif isinstance(returned, tuple):
        results = returned
    else:
        results = (returned,)

    errors = [r for r in results if isinstance(r, BaseException)]
    errors += [r.error for r in results if isinstance(r, Result) and not r.success]
    if len(errors) > 1:
        raise AmbiguousResultError(
            f"call returned {len(errors)} errors: {errors!r}",
            suggestion="return at most one exception",
        )
    values = [r for r in results if not isinstance(r, (BaseException, Result))]
    return (errors[0] if errors else None), values


class Invoker:
    """
    Calls func with bound arguments and captures its non-error results.

    Arguments are checked against func's signature when the Invoker is
    created, so arity mistakes surface at registration rather than at
    execution.
    """

    def __init__(self, func, *args, **kwargs):
        """
        Initialize an Invoker.

        Args:
            func: The callable to invoke
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Raises:
            RegistrationError: func is not callable or the arguments do not
                match its signature
        """
        if not callable(func):
            raise RegistrationError(f"cannot invoke non-callable {type(func).__name__} {func!r}")
        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            # Some builtins expose no signature; they are checked when called.
            signature = None
        if signature is not None:
            try:
                signature.bind(*args, **kwargs)
            except TypeError as e:
                raise RegistrationError(
                    f"arguments do not match {describe(func)}{signature}: {e}"
                ) from e

        self.func = func
        self.args = args
        self.kwargs = kwargs
        self.filler = AsyncFiller()

    def __call__(self):
        """
        Invoke func once and feed its values to the filler.

        Returns:
            Result.fail with the error func returned or raised, else Result.ok
        """
        try:
            returned = self.func(*self.args, **self.kwargs)
        except MisuseError:
            raise
        except Exception as e:
            logger.debug("%s raised %r", describe(self.func), e)
            self.filler.set([], raise_errors=False)
            return Result.fail(e)

        try:
            error, values = split_results(returned)
        except AmbiguousResultError:
            self.filler.set([], raise_errors=False)
            raise
        self.filler.set(values)
        if error is not None:
            return Result.fail(error, data=tuple(values))
        return Result.ok(data=tuple(values))

    def __repr__(self):
        return f"Invoker({describe(self.func)}, args={self.args!r}, kwargs={self.kwargs!r})"


def describe(func):
    """Return a readable name for a callable."""
    return getattr(func, '__qualname__', None) or getattr(func, '__name__', None) or repr(func)
