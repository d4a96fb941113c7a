"""Shared exceptions for :mod:`cryptoguard`.

Every failure reported by the native library surfaces as a
:class:`CryptographicError` carrying the packed native error code and the
message resolved from :class:`~cryptoguard.error.strings.ErrorStrings` when
the error was raised.
"""

from __future__ import annotations

from .strings import (
    LIB_PEM,
    LIB_USER,
    PEM_R_BAD_DECRYPT,
    PEM_R_BAD_PASSWORD_READ,
    error_library,
    error_reason,
    error_string,
    pack_error,
)


class CryptoError(Exception):
    """Base error for cryptographic operations."""


class CryptographicError(CryptoError):
    """A native operation failed.

    Args:
        code: Packed error code, ``(library << 24) | reason``.
        message: Diagnostic string. Resolved from the error strings table
            when omitted.
    """

    def __init__(self, code: int, message: str | None = None) -> None:
        if message is None:
            message = error_string(code)
        super().__init__(code, message)

    @property
    def code(self) -> int:
        return self.args[0]

    @property
    def message(self) -> str:
        return self.args[1]

    @property
    def library(self) -> int:
        return error_library(self.code)

    @property
    def reason(self) -> int:
        return error_reason(self.code)

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_code(cls, code: int) -> "CryptographicError":
        """Build the most specific error class for ``code``."""

        if error_library(code) == LIB_USER:
            return ContractViolationError(code)
        if error_library(code) == LIB_PEM and error_reason(code) in PassphraseError.REASONS:
            return PassphraseError(code)
        return cls(code)


class ContractViolationError(CryptographicError):
    """Raised when a caller misuses a state machine or passes a wrong-sized buffer."""

    @classmethod
    def for_reason(cls, reason: int) -> "ContractViolationError":
        return cls(pack_error(LIB_USER, reason))


class PassphraseError(CryptographicError):
    """Raised when a passphrase could not be obtained or does not decrypt the data."""

    REASONS = frozenset({PEM_R_BAD_DECRYPT, PEM_R_BAD_PASSWORD_READ})
