"""Stateful symmetric cipher context.

:class:`CipherContext` drives a native cipher through the
``initialize -> update* -> finalize`` protocol::

    uninitialized --initialize(key)--> initialized --update()--> initialized
    initialized --finalize()--> finalized --initialize(key)--> initialized

PKCS#7 padding is enabled by default for block modes. When it is disabled the
total input must be a multiple of the block size; the native layer reports a
violation when the context is finalized.

Any failure in ``update`` or ``finalize`` drops the native state and returns
the context to ``uninitialized``: it must be initialized again before reuse.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from cryptography.hazmat.primitives import padding

from ..error.errors import ContractViolationError
from ..error.native import fail, native_call, throw_error_if
from ..error.strings import (
    EVP_R_BAD_DECRYPT,
    EVP_R_DATA_NOT_MULTIPLE_OF_BLOCK_LENGTH,
    EVP_R_INVALID_IV_LENGTH,
    EVP_R_INVALID_KEY_LENGTH,
    EVP_R_OPERATION_NOT_SUPPORTED,
    EVP_R_UNSUPPORTED_CIPHER,
    EVP_R_WRONG_FINAL_BLOCK_LENGTH,
    LIB_EVP,
    USER_R_ALREADY_FINALIZED,
    USER_R_BUFFER_TOO_SMALL,
    USER_R_DIRECTION_UNCHANGED,
    USER_R_FIXED_KEY_LENGTH,
    USER_R_KEY_ALREADY_SET,
    USER_R_NO_ALGORITHM,
    USER_R_NOT_INITIALIZED,
)
from ..handle import ManagedHandle
from .algorithm import CipherAlgorithm

logger = logging.getLogger(__name__)

Buffer = Union[bytearray, memoryview]


class CipherDirection(enum.IntEnum):
    """The cipher direction."""

    UNCHANGED = -1
    DECRYPT = 0
    ENCRYPT = 1


class CipherState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    FINALIZED = "finalized"


@dataclass
class _NativeCipherContext:
    """The native side of a cipher context: engine, padder and key copy."""

    algorithm: Optional[CipherAlgorithm] = None
    direction: Optional[CipherDirection] = None
    key_length: Optional[int] = None
    padding: bool = True
    state: CipherState = CipherState.UNINITIALIZED
    key: bytearray = field(default_factory=bytearray)
    engine: Any = None
    padder: Any = None

    def reset(self) -> None:
        for i in range(len(self.key)):
            self.key[i] = 0
        self.key = bytearray()
        self.engine = None
        self.padder = None
        self.state = CipherState.UNINITIALIZED


class CipherContext(ManagedHandle[_NativeCipherContext]):
    """A cipher context.

    Not copyable: the native library offers no way to duplicate a running
    cipher context.
    """

    def _allocate(self) -> _NativeCipherContext:
        return _NativeCipherContext()

    def _release(self, resource: _NativeCipherContext) -> None:
        resource.reset()

    @property
    def algorithm(self) -> Optional[CipherAlgorithm]:
        return self.raw.algorithm

    @property
    def direction(self) -> Optional[CipherDirection]:
        return self.raw.direction

    @property
    def state(self) -> CipherState:
        return self.raw.state

    @property
    def padding(self) -> bool:
        return self.raw.padding

    def initialize(
        self,
        algorithm: Optional[CipherAlgorithm],
        direction: CipherDirection,
        key: Optional[bytes] = None,
        iv: Optional[bytes] = None,
    ) -> None:
        """Initialize (or restart) the context.

        Args:
            algorithm: The cipher to use, or ``None`` to keep the current one.
            direction: ``ENCRYPT``, ``DECRYPT`` or, on re-initialization,
                ``UNCHANGED`` to keep the previous direction.
            key: Exactly :meth:`key_length` bytes. When ``None`` only the
                algorithm and direction are recorded, so that
                :meth:`set_key_length` and :meth:`set_padding` can be called
                before the key is supplied.
            iv: Exactly ``algorithm.iv_length`` bytes, or ``None`` for
                algorithms without an IV.

        Raises:
            ContractViolationError: On ``UNCHANGED`` before any initialization
                or a missing algorithm.
            CryptographicError: On a key or IV of the wrong length, or if the
                native library rejects the cipher.
        """

        ctx = self.raw

        if direction == CipherDirection.UNCHANGED:
            if ctx.direction is None:
                raise ContractViolationError.for_reason(USER_R_DIRECTION_UNCHANGED)
            direction = ctx.direction

        if algorithm is None:
            if ctx.algorithm is None:
                raise ContractViolationError.for_reason(USER_R_NO_ALGORITHM)
            algorithm = ctx.algorithm
        elif algorithm != ctx.algorithm:
            ctx.key_length = None

        ctx.reset()
        ctx.algorithm = algorithm
        ctx.direction = CipherDirection(direction)

        if key is None:
            return

        if len(key) != self.key_length():
            fail(LIB_EVP, EVP_R_INVALID_KEY_LENGTH)

        if algorithm.iv_length:
            iv_ok = iv is not None and len(iv) == algorithm.iv_length
        else:
            iv_ok = iv is None
        if not iv_ok:
            fail(LIB_EVP, EVP_R_INVALID_IV_LENGTH)

        cipher = native_call(
            LIB_EVP,
            EVP_R_UNSUPPORTED_CIPHER,
            algorithm.build,
            bytes(key),
            None if iv is None else bytes(iv),
            reasons={ValueError: EVP_R_INVALID_KEY_LENGTH},
        )
        throw_error_if(cipher is None)

        if ctx.direction == CipherDirection.ENCRYPT:
            engine = native_call(LIB_EVP, EVP_R_UNSUPPORTED_CIPHER, cipher.encryptor)
        else:
            engine = native_call(LIB_EVP, EVP_R_UNSUPPORTED_CIPHER, cipher.decryptor)
        throw_error_if(engine is None)

        ctx.key = bytearray(key)
        ctx.engine = engine
        ctx.state = CipherState.INITIALIZED
        logger.debug("cipher context initialized: %s %s", algorithm.name, ctx.direction.name)

    def set_padding(self, enabled: bool) -> None:
        """Enable or disable PKCS#7 padding.

        Takes effect for the current run as long as no data has been fed yet.
        """

        self.raw.padding = bool(enabled)

    def key_length(self) -> int:
        """The key length in bytes, taking :meth:`set_key_length` into account."""

        ctx = self.raw
        if ctx.algorithm is None:
            raise ContractViolationError.for_reason(USER_R_NO_ALGORITHM)
        if ctx.key_length is not None:
            return ctx.key_length
        return ctx.algorithm.key_length

    def set_key_length(self, length: int) -> None:
        """Set the key length of a variable key length cipher.

        Must be called after the algorithm is known and before the key is
        supplied.

        Raises:
            ContractViolationError: If the algorithm has a fixed key length or
                the key was already supplied.
            CryptographicError: If the native cipher does not accept ``length``.
        """

        ctx = self.raw
        if ctx.algorithm is None:
            raise ContractViolationError.for_reason(USER_R_NO_ALGORITHM)
        if not ctx.algorithm.is_variable_key_length:
            raise ContractViolationError.for_reason(USER_R_FIXED_KEY_LENGTH)
        if ctx.state != CipherState.UNINITIALIZED:
            raise ContractViolationError.for_reason(USER_R_KEY_ALREADY_SET)
        if not ctx.algorithm.accepts_key_length(length):
            fail(LIB_EVP, EVP_R_INVALID_KEY_LENGTH)
        ctx.key_length = length

    def _require_initialized(self) -> _NativeCipherContext:
        ctx = self.raw
        if ctx.state == CipherState.FINALIZED:
            raise ContractViolationError.for_reason(USER_R_ALREADY_FINALIZED)
        if ctx.state != CipherState.INITIALIZED:
            raise ContractViolationError.for_reason(USER_R_NOT_INITIALIZED)
        if ctx.padder is None and ctx.padding and not ctx.algorithm.is_stream:
            bits = ctx.algorithm.block_size * 8
            if ctx.direction == CipherDirection.ENCRYPT:
                ctx.padder = padding.PKCS7(bits).padder()
            else:
                ctx.padder = padding.PKCS7(bits).unpadder()
        return ctx

    def _check(self, ctx: _NativeCipherContext, result: Optional[bytes]) -> bytes:
        if result is None:
            ctx.reset()
        throw_error_if(result is None)
        return result  # type: ignore[return-value]

    def update(self, data: bytes) -> bytes:
        """Feed ``data``; returns the bytes produced so far, possibly none."""

        ctx = self._require_initialized()
        if ctx.padder is None:
            out = native_call(LIB_EVP, EVP_R_OPERATION_NOT_SUPPORTED, ctx.engine.update, data)
        elif ctx.direction == CipherDirection.ENCRYPT:
            out = native_call(
                LIB_EVP,
                EVP_R_OPERATION_NOT_SUPPORTED,
                lambda: ctx.engine.update(ctx.padder.update(data)),
            )
        else:
            out = native_call(
                LIB_EVP,
                EVP_R_OPERATION_NOT_SUPPORTED,
                lambda: ctx.padder.update(ctx.engine.update(data)),
            )
        return self._check(ctx, out)

    def update_into(self, data: bytes, out: Buffer) -> int:
        """Feed ``data`` and write the produced bytes into ``out``.

        ``out`` must hold at least ``len(data) + block_size - 1`` bytes.

        Returns:
            The number of bytes written, which may be zero.
        """

        ctx = self._require_initialized()
        if len(out) < len(data) + ctx.algorithm.block_size - 1:
            raise ContractViolationError.for_reason(USER_R_BUFFER_TOO_SMALL)
        produced = self.update(data)
        memoryview(out)[: len(produced)] = produced
        return len(produced)

    def finalize(self) -> bytes:
        """Finish the run and return the remaining bytes.

        No further :meth:`update` is accepted until the context is initialized
        again.

        Raises:
            CryptographicError: With padding disabled and unaligned input, on a
                bad final block when decrypting, or on invalid padding.
        """

        ctx = self._require_initialized()

        if ctx.direction == CipherDirection.ENCRYPT:
            if ctx.padder is None:
                out = native_call(LIB_EVP, EVP_R_DATA_NOT_MULTIPLE_OF_BLOCK_LENGTH, ctx.engine.finalize)
            else:
                out = native_call(
                    LIB_EVP,
                    EVP_R_DATA_NOT_MULTIPLE_OF_BLOCK_LENGTH,
                    lambda: ctx.engine.update(ctx.padder.finalize()) + ctx.engine.finalize(),
                )
            out = self._check(ctx, out)
        else:
            tail = native_call(LIB_EVP, EVP_R_WRONG_FINAL_BLOCK_LENGTH, ctx.engine.finalize)
            out = self._check(ctx, tail)
            if ctx.padder is not None:
                unpadded = native_call(
                    LIB_EVP,
                    EVP_R_BAD_DECRYPT,
                    lambda: ctx.padder.update(tail) + ctx.padder.finalize(),
                )
                out = self._check(ctx, unpadded)

        ctx.engine = None
        ctx.padder = None
        ctx.state = CipherState.FINALIZED
        return out

    def finalize_into(self, out: Buffer) -> int:
        """Finish the run, writing the remaining bytes into ``out``.

        ``out`` must hold at least ``block_size`` bytes.

        Returns:
            The number of bytes written; zero is valid.
        """

        ctx = self._require_initialized()
        if len(out) < ctx.algorithm.block_size:
            raise ContractViolationError.for_reason(USER_R_BUFFER_TOO_SMALL)
        produced = self.finalize()
        memoryview(out)[: len(produced)] = produced
        return len(produced)


def _run(
    algorithm: CipherAlgorithm,
    direction: CipherDirection,
    key: bytes,
    iv: Optional[bytes],
    data: bytes,
    pad: bool,
) -> bytes:
    with CipherContext() as ctx:
        ctx.initialize(algorithm, direction)
        if algorithm.is_variable_key_length and len(key) != algorithm.key_length:
            ctx.set_key_length(len(key))
        ctx.set_padding(pad)
        ctx.initialize(None, CipherDirection.UNCHANGED, key, iv)
        return ctx.update(data) + ctx.finalize()


def encrypt(algorithm: CipherAlgorithm, key: bytes, iv: Optional[bytes], data: bytes, *, pad: bool = True) -> bytes:
    """One-shot encryption through a short-lived :class:`CipherContext`."""

    return _run(algorithm, CipherDirection.ENCRYPT, key, iv, data, pad)


def decrypt(algorithm: CipherAlgorithm, key: bytes, iv: Optional[bytes], data: bytes, *, pad: bool = True) -> bytes:
    """One-shot decryption through a short-lived :class:`CipherContext`."""

    return _run(algorithm, CipherDirection.DECRYPT, key, iv, data, pad)
