"""Stateful message digest context.

Follows the same ``initialize -> update* -> finalize`` protocol as
:class:`~cryptoguard.cipher.CipherContext`. Unlike cipher contexts, digest
contexts can be cloned: the native hash state supports an independent copy.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional

from cryptography.hazmat.primitives import hashes

from ..error.errors import ContractViolationError
from ..error.native import checked_call
from ..error.strings import (
    EVP_R_OPERATION_NOT_SUPPORTED,
    EVP_R_UNKNOWN_DIGEST,
    LIB_EVP,
    USER_R_ALREADY_FINALIZED,
    USER_R_NOT_INITIALIZED,
)
from ..handle import ManagedHandle
from .algorithm import DigestAlgorithm


class DigestState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    FINALIZED = "finalized"


@dataclass
class _NativeDigestContext:
    algorithm: Optional[DigestAlgorithm] = None
    engine: Any = None
    state: DigestState = DigestState.UNINITIALIZED


class DigestContext(ManagedHandle[_NativeDigestContext]):
    """A message digest context."""

    def _allocate(self) -> _NativeDigestContext:
        return _NativeDigestContext()

    def _release(self, resource: _NativeDigestContext) -> None:
        resource.engine = None
        resource.state = DigestState.UNINITIALIZED

    @property
    def algorithm(self) -> Optional[DigestAlgorithm]:
        return self.raw.algorithm

    @property
    def state(self) -> DigestState:
        return self.raw.state

    def initialize(self, algorithm: DigestAlgorithm) -> None:
        ctx = self.raw
        ctx.engine = None
        ctx.state = DigestState.UNINITIALIZED
        ctx.engine = checked_call(LIB_EVP, EVP_R_UNKNOWN_DIGEST, hashes.Hash, algorithm.native())
        ctx.algorithm = algorithm
        ctx.state = DigestState.INITIALIZED

    def _require_initialized(self) -> _NativeDigestContext:
        ctx = self.raw
        if ctx.state == DigestState.FINALIZED:
            raise ContractViolationError.for_reason(USER_R_ALREADY_FINALIZED)
        if ctx.state != DigestState.INITIALIZED:
            raise ContractViolationError.for_reason(USER_R_NOT_INITIALIZED)
        return ctx

    def update(self, data: bytes) -> None:
        ctx = self._require_initialized()
        checked_call(LIB_EVP, EVP_R_OPERATION_NOT_SUPPORTED, lambda: ctx.engine.update(data) or True)

    def finalize(self) -> bytes:
        ctx = self._require_initialized()
        out = checked_call(LIB_EVP, EVP_R_OPERATION_NOT_SUPPORTED, ctx.engine.finalize)
        ctx.engine = None
        ctx.state = DigestState.FINALIZED
        return out

    def clone(self) -> "DigestContext":
        """An independent context carrying a copy of the current hash state."""

        ctx = self.raw
        engine = None
        if ctx.state == DigestState.INITIALIZED:
            engine = checked_call(LIB_EVP, EVP_R_OPERATION_NOT_SUPPORTED, ctx.engine.copy)
        return DigestContext(_NativeDigestContext(ctx.algorithm, engine, ctx.state))


def digest(algorithm: DigestAlgorithm | str, data: bytes) -> bytes:
    """Compute the digest of ``data`` in one call.

    Args:
        algorithm: A descriptor or a name such as ``"SHA256"``.
        data: Data to hash.

    Returns:
        Digest bytes.
    """

    if isinstance(algorithm, str):
        algorithm = DigestAlgorithm.from_name(algorithm)
    with DigestContext() as ctx:
        ctx.initialize(algorithm)
        ctx.update(data)
        return ctx.finalize()
