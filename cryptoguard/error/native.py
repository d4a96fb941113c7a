"""Boundary with the native cryptographic library.

Calls into :pypi:`cryptography` go through :func:`native_call`, which turns a
backend exception into a packed error code pushed on a per-thread queue, the
same way OpenSSL records failures in its thread-local error state. The result
of every such call must be checked with :func:`throw_error_if` or
:func:`throw_error_if_not` *immediately*: reading the queue clears it, so any
other native call made in between would either hide the failure or attribute
it to the wrong operation.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Mapping, NoReturn, Optional, TypeVar

from cryptography.exceptions import (
    InternalError,
    InvalidKey,
    InvalidSignature,
    InvalidTag,
    UnsupportedAlgorithm,
)

from .errors import CryptographicError
from .strings import pack_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

NATIVE_EXCEPTIONS = (
    ValueError,
    TypeError,
    OverflowError,
    UnsupportedAlgorithm,
    InvalidTag,
    InvalidSignature,
    InvalidKey,
    InternalError,
)

_state = threading.local()


def _queue() -> deque[int]:
    queue = getattr(_state, "queue", None)
    if queue is None:
        queue = _state.queue = deque()
    return queue


def put_error(lib: int, reason: int) -> None:
    """Record a failure on the calling thread's error queue."""

    _queue().append(pack_error(lib, reason))


def get_error() -> int:
    """Pop the earliest recorded error code, or ``0`` when the queue is empty."""

    queue = _queue()
    return queue.popleft() if queue else 0


def peek_error() -> int:
    """Return the earliest recorded error code without removing it."""

    queue = _queue()
    return queue[0] if queue else 0


def clear_errors() -> None:
    _queue().clear()


def native_call(
    lib: int,
    reason: int,
    func: Callable[..., T],
    *args: Any,
    reasons: Optional[Mapping[type, int]] = None,
    **kwargs: Any,
) -> Optional[T]:
    """Invoke ``func`` and record a failure instead of raising.

    Args:
        lib: Library number the failure is reported under.
        reason: Reason code recorded when ``func`` raises a native exception.
        func: The native operation. It must not return ``None`` on success.
        reasons: Per-exception-type reason overrides.

    Returns:
        The result of ``func``, or ``None`` if it failed.
    """

    try:
        return func(*args, **kwargs)
    except NATIVE_EXCEPTIONS as exc:
        if reasons:
            for exc_type, override in reasons.items():
                if isinstance(exc, exc_type):
                    reason = override
                    break
        put_error(lib, reason)
        return None


def _raise_pending() -> NoReturn:
    code = get_error()
    clear_errors()
    error = CryptographicError.from_code(code)
    logger.debug("native failure %08X: %s", code, error.message)
    raise error


def throw_error_if(condition: object) -> None:
    """Raise the pending native error when ``condition`` is true."""

    if condition:
        _raise_pending()


def throw_error_if_not(condition: object) -> None:
    """Raise the pending native error when ``condition`` is false."""

    throw_error_if(not condition)


def fail(lib: int, reason: int) -> NoReturn:
    """Record a failure detected at the boundary and raise it."""

    put_error(lib, reason)
    _raise_pending()


def checked_call(lib: int, reason: int, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """:func:`native_call` followed by the mandatory check."""

    result = native_call(lib, reason, func, *args, **kwargs)
    throw_error_if(result is None)
    return result  # type: ignore[return-value]
