"""
Explicit request context carried through every SDK call.

A ``RequestContext`` carries cancellation, an optional deadline and
key/value pairs. Callers derive children from it; a child observes its
parent's cancellation and values, but cancelling a child never touches
the parent. The same object (or a child of it) is handed down to the
HTTP transport, which finds it in ``request.extensions["context"]``.
"""

import asyncio
import threading
import time
import weakref
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar

from .shared.errors import ContextCancelled, ContextDeadlineExceeded, ContextError

T = TypeVar("T")

CancelFunc = Callable[[], None]

_MISSING = object()


class RequestContext:
    """Cancellation, deadline and value carrier."""

    def __init__(
        self,
        parent: Optional["RequestContext"] = None,
        *,
        key: Any = _MISSING,
        value: Any = None,
        deadline: Optional[float] = None,
        cancellable: bool = False
    ):
        self._parent = parent
        self._key = key
        self._value = value
        self._lock = threading.Lock()
        self._err: Optional[ContextError] = None
        self._children: "weakref.WeakSet[RequestContext]" = weakref.WeakSet()
        self._waiters: List[Tuple[asyncio.AbstractEventLoop, asyncio.Future]] = []

        # deadline is epoch seconds; expiry is tracked on the monotonic clock
        self._deadline = deadline
        self._expires = None if deadline is None else time.monotonic() + (deadline - time.time())
        if parent is not None and parent._deadline is not None:
            if deadline is None or parent._deadline <= deadline:
                self._deadline = parent._deadline
                self._expires = parent._expires

        self._can_cancel = cancellable or (parent is not None and parent._can_cancel)

        if parent is not None and parent._can_cancel:
            parent._attach(self)

    @classmethod
    def background(cls) -> "RequestContext":
        """Root context: never cancelled, no deadline, no values."""
        return cls()

    # Derivation

    def with_value(self, key: Any, value: Any) -> "RequestContext":
        """Child context that yields ``value`` for ``key``."""
        if key is None:
            raise ValueError("context key must not be None")
        return RequestContext(self, key=key, value=value)

    def with_cancel(self) -> Tuple["RequestContext", CancelFunc]:
        """Child context plus a function that cancels it."""
        child = RequestContext(self, cancellable=True)
        return child, child._cancel_func()

    def with_deadline(self, deadline: float) -> Tuple["RequestContext", CancelFunc]:
        """Child context expiring at ``deadline``, in epoch seconds (``time.time()``)."""
        child = RequestContext(self, deadline=deadline, cancellable=True)
        return child, child._cancel_func()

    def with_timeout(self, seconds: float) -> Tuple["RequestContext", CancelFunc]:
        """Child context expiring ``seconds`` from now."""
        return self.with_deadline(time.time() + seconds)

    # Inspection

    def value(self, key: Any) -> Any:
        """Value attached for ``key`` on this context or an ancestor, else None."""
        ctx: Optional[RequestContext] = self
        while ctx is not None:
            if ctx._key is not _MISSING and ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None

    def deadline(self) -> Optional[float]:
        """Epoch seconds at which the context expires, None if it never does."""
        return self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None if there is none."""
        if self._expires is None:
            return None
        return max(0.0, self._expires - time.monotonic())

    def err(self) -> Optional[ContextError]:
        """The context's error once done, else None."""
        with self._lock:
            err = self._err
        if err is None and self._expires is not None and time.monotonic() >= self._expires:
            self._cancel(ContextDeadlineExceeded())
            with self._lock:
                err = self._err
        return err

    def done(self) -> bool:
        return self.err() is not None

    def check(self) -> None:
        """Raise the context's error if it is done."""
        err = self.err()
        if err is not None:
            raise type(err)(err.message)

    # Waiting

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the context finishes first.

        When the context is cancelled or its deadline passes before the
        awaitable completes, the awaitable is cancelled and the context's
        error is raised.
        """
        err = self.err()
        if err is not None:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            elif asyncio.isfuture(awaitable):
                awaitable.cancel()
            raise type(err)(err.message)

        loop = asyncio.get_running_loop()
        signal = loop.create_future()
        self._add_waiter(loop, signal)
        task = asyncio.ensure_future(awaitable)
        try:
            finished, _ = await asyncio.wait(
                {task, signal},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._remove_waiter(signal)

        if task in finished:
            return task.result()

        task.cancel()
        await asyncio.wait({task})

        err = self.err()
        if err is None:
            # wait() timed out at the deadline; the clock may lag it slightly
            self._cancel(ContextDeadlineExceeded())
            err = self.err()
        raise type(err)(err.message)

    # Internals

    def _cancel_func(self) -> CancelFunc:
        def cancel() -> None:
            self._cancel(ContextCancelled())
        return cancel

    def _attach(self, child: "RequestContext") -> None:
        with self._lock:
            err = self._err
            if err is None:
                self._children.add(child)
        if err is not None:
            child._cancel(err)

    def _cancel(self, err: ContextError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            children = list(self._children)
            self._children = weakref.WeakSet()
            waiters = self._waiters
            self._waiters = []

        for loop, fut in waiters:
            loop.call_soon_threadsafe(_resolve, fut)
        for child in children:
            child._cancel(err)

    def _add_waiter(self, loop: asyncio.AbstractEventLoop, fut: asyncio.Future) -> None:
        with self._lock:
            if self._err is None:
                self._waiters.append((loop, fut))
                return
        fut.set_result(None)

    def _remove_waiter(self, fut: asyncio.Future) -> None:
        with self._lock:
            self._waiters = [(lp, f) for lp, f in self._waiters if f is not fut]

    def __repr__(self) -> str:
        state = "done" if self._err is not None else "active"
        return f"<RequestContext {state} deadline={self._deadline}>"


def _resolve(fut: asyncio.Future) -> None:
    if not fut.done():
        fut.set_result(None)


def background() -> RequestContext:
    """Shortcut for ``RequestContext.background()``."""
    return RequestContext.background()
