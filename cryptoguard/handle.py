"""Single-owner wrapper around one native resource.

Every stateful object in :mod:`cryptoguard` (cipher and digest contexts, keys,
DH parameter sets) derives from :class:`ManagedHandle`. A handle owns exactly
one native resource and releases it exactly once, whether the owner calls
:meth:`~ManagedHandle.close`, leaves a ``with`` block (normally or through an
exception) or simply drops the last reference.

Handles are not copyable. Ownership can be transferred with
:meth:`~ManagedHandle.take`, after which the source wrapper is *moved-from*
and never releases anything. Subclasses whose native resource supports an
independent deep copy expose ``clone()``.

All per-object state lives in the resource itself so that a transfer carries
it along unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Optional, TypeVar

from .error.errors import ContractViolationError
from .error.strings import USER_R_HANDLE_RELEASED

logger = logging.getLogger(__name__)

T = TypeVar("T")
H = TypeVar("H", bound="ManagedHandle[Any]")


class ManagedHandle(Generic[T]):
    """Owns one native resource of type ``T``.

    Args:
        resource: An already acquired resource to adopt. When omitted the
            subclass allocates one through :meth:`_allocate`, which raises
            a :class:`~cryptoguard.error.CryptographicError` on failure.
    """

    def __init__(self, resource: Optional[T] = None) -> None:
        self._owns = False
        self._resource: Optional[T] = None
        if resource is None:
            resource = self._allocate()
        self._resource = resource
        self._owns = True

    def _allocate(self) -> T:
        raise TypeError(f"{type(self).__name__} must be created from an existing resource")

    def _release(self, resource: T) -> None:
        """Free ``resource``. Called exactly once per owned resource."""

    @property
    def owns(self) -> bool:
        """Whether this wrapper still owns a live resource."""

        return self._owns

    def __bool__(self) -> bool:
        return self._owns

    @property
    def raw(self) -> T:
        """The owned native resource."""

        if not self._owns:
            raise ContractViolationError.for_reason(USER_R_HANDLE_RELEASED)
        return self._resource  # type: ignore[return-value]

    def close(self) -> None:
        """Release the native resource. Further calls do nothing."""

        if not getattr(self, "_owns", False):
            return
        resource = self._resource
        self._owns = False
        self._resource = None
        logger.debug("releasing %s", type(self).__name__)
        self._release(resource)  # type: ignore[arg-type]

    def _detach(self) -> T:
        resource = self.raw
        self._owns = False
        self._resource = None
        return resource

    def take(self: H) -> H:
        """Move ownership into a new wrapper; ``self`` becomes moved-from."""

        return type(self)._adopt(self._detach())

    @classmethod
    def _adopt(cls: type[H], resource: Any) -> H:
        handle = cls.__new__(cls)
        ManagedHandle.__init__(handle, resource)
        return handle

    def __copy__(self) -> None:
        raise TypeError(f"{type(self).__name__} owns a native resource and cannot be copied")

    def __deepcopy__(self, memo: dict[int, Any]) -> None:
        raise TypeError(f"{type(self).__name__} owns a native resource and cannot be copied")

    def __reduce_ex__(self, protocol: Any) -> Any:
        raise TypeError(f"{type(self).__name__} owns a native resource and cannot be pickled")

    def __enter__(self: H) -> H:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __del__(self) -> None:
        self.close()
