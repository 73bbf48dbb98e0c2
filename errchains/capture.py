"""
Value capture - delivers the return values of a call made by Group.add_call.

A Filler copies captured values into destinations. A destination is either a
Ref or any callable taking the value as its single argument.
"""

import logging
import threading

from .errors import CaptureError

logger = logging.getLogger(__name__)

_UNSET = object()


class Ref:
    """
    A box that receives one captured value.

    Example:
        n = Ref(int)
        group.add_call(copy_stream, src, dst).fill(n)
        group.execute()
        print(n.value)
    """

    def __init__(self, expected_type=None):
        """
        Initialize a Ref.

        Args:
            expected_type: Optional type (or tuple of types) the value must be
                an instance of

        bool values are rejected when expected_type is exactly int, even
        though bool subclasses int.
        """
        self.expected_type = expected_type
        self._value = _UNSET

    def set(self, value):
        if self.expected_type is not None and (
                not isinstance(value, self.expected_type)
                or (self.expected_type is int and isinstance(value, bool))):
            raise CaptureError(
                f"cannot store {type(value).__name__} value {value!r} in {self!r}",
                suggestion="check the order of the destinations",
            )
        self._value = value

    @property
    def is_set(self):
        return self._value is not _UNSET

    @property
    def value(self):
        """The stored value, or None if nothing was stored yet."""
        if self._value is _UNSET:
            return None
        return self._value

    def __repr__(self):
        type_name = getattr(self.expected_type, '__name__', self.expected_type)
        if self.is_set:
            return f"Ref[{type_name}]({self._value!r})"
        return f"Ref[{type_name}](<unset>)"


def store(destination, value):
    """Copy value into destination, raising CaptureError if it cannot hold it."""
    if isinstance(destination, Ref):
        destination.set(value)
    elif callable(destination):
        destination(value)
    else:
        raise CaptureError(
            f"destination {destination!r} cannot hold a value",
            suggestion="pass a Ref or a one-argument setter",
        )


class Filler:
    """
    Base class for objects that fill captured values into destinations.
    """

    def fill(self, *destinations):
        """
        Copy captured values into destinations, in order.

        Copies as many values as are available; surplus destinations are
        left untouched.

        Returns:
            self (for method chaining)
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement fill()")

    def fill_at(self, index, destination):
        """
        Copy the captured value at index into destination.

        Raises:
            CaptureError: index out of range or destination cannot hold the value
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement fill_at()")


class ValuesFiller(Filler):
    """A Filler over values that are already known."""

    def __init__(self, values):
        self._values = tuple(values)

    def fill(self, *destinations):
        for value, destination in zip(self._values, destinations):
            store(destination, value)
        return self

    def fill_at(self, index, destination):
        if not 0 <= index < len(self._values):
            raise CaptureError(
                f"index {index} out of range for {len(self._values)} captured value(s)"
            )
        store(destination, self._values[index])
        return self

    def values(self):
        return self._values

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"ValuesFiller({list(self._values)!r})"


class AsyncFiller(Filler):
    """
    A write-once slot filled by a single producer.

    Fill requests made before the values are known are queued and served
    when set() is called; requests made afterwards are served immediately.
    Safe to use from threads other than the one executing the group.
    """

    def __init__(self):
        # Reentrant: setters drained under the lock may read this slot.
        self._lock = threading.RLock()
        self._ready_event = threading.Event()
        self._filler = None
        self._pending = []

    @property
    def ready(self):
        return self._ready_event.is_set()

    def set(self, values, raise_errors=True):
        """
        Store the captured values and serve every queued request.

        Only the first call stores values; later calls are ignored. All
        queued requests are attempted; the first CaptureError among them is
        raised once the slot is ready.

        With raise_errors=False (the producing call failed) queued requests
        that cannot be served are logged and dropped instead.
        """
        with self._lock:
            if self._filler is not None:
                logger.debug("capture slot already filled, ignoring %d new value(s)", len(values))
                return
            self._filler = ValuesFiller(values)
            pending, self._pending = self._pending, []
            self._ready_event.set()

            first_error = None
            for request in pending:
                try:
                    request(self._filler)
                except CaptureError as e:
                    logger.debug("queued fill request failed: %s", e)
                    if first_error is None:
                        first_error = e
        if first_error is not None and raise_errors:
            raise first_error

    def fill(self, *destinations):
        return self._serve_or_queue(lambda filler: filler.fill(*destinations))

    def fill_at(self, index, destination):
        if index < 0:
            raise CaptureError(f"index {index} out of range")
        return self._serve_or_queue(lambda filler: filler.fill_at(index, destination))

    def _serve_or_queue(self, request):
        with self._lock:
            if self._filler is None:
                self._pending.append(request)
                return self
            filler = self._filler
        request(filler)
        return self

    def wait(self, timeout=None):
        """Block until the values are captured. Returns True once ready."""
        return self._ready_event.wait(timeout)

    def values(self):
        """Return the captured values as a tuple."""
        with self._lock:
            if self._filler is None:
                raise CaptureError(
                    "values are not captured yet",
                    suggestion="execute the group first or use fill()",
                )
            return self._filler.values()

    def __repr__(self):
        with self._lock:
            if self._filler is None:
                return f"AsyncFiller(pending={len(self._pending)})"
            return f"AsyncFiller(values={list(self._filler.values())!r})"
