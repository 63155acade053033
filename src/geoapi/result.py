import asyncio
import logging
import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Callable, Generic, TypeVar, Union

from .state import RetryState
from .types import RequestDescriptor

T = TypeVar("T")


class ResultState(str, Enum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class PendingResult(Generic[T]):
    """Handle for one logical API call.

    Backed by a ``concurrent.futures.Future`` resolved by the context's worker, so it
    resolves exactly once. Consumers may block (``wait``), block and ignore failures
    (``wait_ignore_error``), register callbacks (``set_callback``), or ``await`` it from
    asyncio code.
    """

    def __init__(self, descriptor: RequestDescriptor, future: Union[Future, None] = None):
        self.descriptor = descriptor
        self.retry_state = RetryState()
        self._future: Future = future if future is not None else Future()
        self._cancel_requested = threading.Event()
        self._logger = logging.getLogger("geoapi")

    # ------------------------ state ------------------------
    @property
    def future(self) -> Future:
        return self._future

    @property
    def attempts(self) -> int:
        return self.retry_state.attempts

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    @property
    def state(self) -> ResultState:
        f = self._future
        if f.cancelled():
            return ResultState.CANCELLED
        if not f.done():
            return ResultState.PENDING
        exc = f.exception()
        if exc is None:
            return ResultState.SUCCEEDED
        if isinstance(exc, CancelledError):
            return ResultState.CANCELLED
        return ResultState.FAILED

    def done(self) -> bool:
        return self._future.done()

    # ------------------------ consumption ------------------------
    def wait(self, timeout: Union[float, None] = None) -> T:
        """Block until terminal; return the value or raise the terminal error."""
        return self._future.result(timeout)

    def wait_ignore_error(self, timeout: Union[float, None] = None) -> Union[T, None]:
        """Block until terminal; return None instead of raising on failure.

        A timeout is not a failure: if the call is still pending when ``timeout``
        expires, ``concurrent.futures.TimeoutError`` is raised.
        """
        try:
            return self._future.result(timeout)
        except FutureTimeoutError:
            raise
        except CancelledError:
            return None
        except Exception as e:
            self._logger.debug(f"ignored error for path={self.descriptor.path}: {e!r}")
            return None

    def set_callback(
        self,
        on_success: Callable[[T], object],
        on_failure: Union[Callable[[BaseException], object], None] = None,
    ) -> None:
        """Invoke exactly one handler once terminal; fires immediately if already terminal."""

        def _done(f: Future):
            try:
                value = f.result()
            except Exception as e:
                if on_failure is not None:
                    on_failure(e)
                return
            on_success(value)

        self._future.add_done_callback(_done)

    def cancel(self) -> bool:
        """Best-effort cancel.

        Not yet dispatched: the call becomes CANCELLED immediately. In flight: the
        current attempt finishes and the call stops at the next retry decision.
        Returns False if the result was already terminal, or resolved before the
        request could take effect.
        """
        if self._future.done():
            return False
        self._cancel_requested.set()
        return self._future.cancel() or not self._future.done()

    def wait_for_cancel(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds, waking early if cancel() is called."""
        return self._cancel_requested.wait(timeout)

    def __await__(self):
        return asyncio.wrap_future(self._future).__await__()

    def __repr__(self):
        return f"<PendingResult path={self.descriptor.path} state={self.state.value}>"
