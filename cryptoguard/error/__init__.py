"""Error strings, structured errors and the native error boundary."""

from __future__ import annotations

from .errors import (
    ContractViolationError,
    CryptoError,
    CryptographicError,
    PassphraseError,
)
from .native import (
    checked_call,
    clear_errors,
    fail,
    get_error,
    native_call,
    peek_error,
    put_error,
    throw_error_if,
    throw_error_if_not,
)
from .strings import (
    ErrorStrings,
    ErrorStringsInitializer,
    error_string,
    error_strings_initializer,
    pack_error,
)

__all__ = [
    "ContractViolationError",
    "CryptoError",
    "CryptographicError",
    "ErrorStrings",
    "ErrorStringsInitializer",
    "PassphraseError",
    "checked_call",
    "clear_errors",
    "error_string",
    "error_strings_initializer",
    "fail",
    "get_error",
    "native_call",
    "pack_error",
    "peek_error",
    "put_error",
    "throw_error_if",
    "throw_error_if_not",
]
