"""Process-wide diagnostic string table for native error codes.

Error codes are packed the way OpenSSL packs them: the library number in the
top byte and the reason in the low bits, ``(lib << 24) | reason``. The table
that turns a code into a readable string is shared by the whole process and
reference counted: the first holder loads it, the last holder unloads it.

Example:

    >>> with error_strings_initializer():
    ...     error_string(pack_error(LIB_EVP, EVP_R_BAD_DECRYPT))
    'error:06000064:digital envelope routines::bad decrypt'
"""

from __future__ import annotations

import logging
import threading
from typing import Final, Optional

logger = logging.getLogger(__name__)

LIB_RSA: Final = 4
LIB_DH: Final = 5
LIB_EVP: Final = 6
LIB_PEM: Final = 9
LIB_ASN1: Final = 13
LIB_DSA: Final = 10
LIB_EC: Final = 16
LIB_USER: Final = 128

# EVP reasons
EVP_R_BAD_DECRYPT: Final = 100
EVP_R_UNSUPPORTED_CIPHER: Final = 107
EVP_R_WRONG_FINAL_BLOCK_LENGTH: Final = 109
EVP_R_INVALID_KEY_LENGTH: Final = 130
EVP_R_DATA_NOT_MULTIPLE_OF_BLOCK_LENGTH: Final = 138
EVP_R_UNKNOWN_CIPHER: Final = 160
EVP_R_UNKNOWN_DIGEST: Final = 161
EVP_R_INVALID_IV_LENGTH: Final = 194
EVP_R_OPERATION_NOT_SUPPORTED: Final = 150

# PEM reasons
PEM_R_BAD_BASE64_DECODE: Final = 100
PEM_R_BAD_DECRYPT: Final = 101
PEM_R_BAD_END_LINE: Final = 102
PEM_R_BAD_IV_CHARS: Final = 103
PEM_R_BAD_PASSWORD_READ: Final = 104
PEM_R_NO_START_LINE: Final = 108
PEM_R_UNSUPPORTED_ENCRYPTION: Final = 114
PEM_R_UNSUPPORTED_KEY_TYPE: Final = 115

# ASN1 reasons
ASN1_R_DECODE_ERROR: Final = 109

# DH reasons
DH_R_NO_PRIVATE_VALUE: Final = 100
DH_R_BAD_GENERATOR: Final = 101
DH_R_INVALID_PUBKEY: Final = 102
DH_R_MODULUS_TOO_SMALL: Final = 103
DH_R_NO_PARAMETERS_SET: Final = 107

# shared by the key libraries (RSA, DSA, EC)
KEY_R_KEY_GENERATION_FAILED: Final = 100
KEY_R_BAD_SIGNATURE: Final = 104
KEY_R_INVALID_KEY: Final = 106
KEY_R_UNKNOWN_CURVE: Final = 114

# USER reasons: state-machine misuse detected by this package
USER_R_NOT_INITIALIZED: Final = 1
USER_R_ALREADY_FINALIZED: Final = 2
USER_R_DIRECTION_UNCHANGED: Final = 3
USER_R_FIXED_KEY_LENGTH: Final = 4
USER_R_KEY_ALREADY_SET: Final = 5
USER_R_BUFFER_TOO_SMALL: Final = 6
USER_R_HANDLE_RELEASED: Final = 7
USER_R_WRONG_KEY_TYPE: Final = 8
USER_R_NO_KEY: Final = 9
USER_R_NO_ALGORITHM: Final = 10

_LIBRARY_NAMES: Final = {
    LIB_RSA: "rsa routines",
    LIB_DH: "Diffie-Hellman routines",
    LIB_EVP: "digital envelope routines",
    LIB_PEM: "PEM routines",
    LIB_ASN1: "asn1 encoding routines",
    LIB_DSA: "dsa routines",
    LIB_EC: "elliptic curve routines",
    LIB_USER: "cryptoguard routines",
}

_KEY_REASONS: Final = {
    KEY_R_KEY_GENERATION_FAILED: "key generation failed",
    KEY_R_BAD_SIGNATURE: "bad signature",
    KEY_R_INVALID_KEY: "invalid key",
    KEY_R_UNKNOWN_CURVE: "unknown curve",
}

_REASON_STRINGS: Final = {
    LIB_EVP: {
        EVP_R_BAD_DECRYPT: "bad decrypt",
        EVP_R_UNSUPPORTED_CIPHER: "unsupported cipher",
        EVP_R_WRONG_FINAL_BLOCK_LENGTH: "wrong final block length",
        EVP_R_INVALID_KEY_LENGTH: "invalid key length",
        EVP_R_DATA_NOT_MULTIPLE_OF_BLOCK_LENGTH: "data not multiple of block length",
        EVP_R_UNKNOWN_CIPHER: "unknown cipher",
        EVP_R_UNKNOWN_DIGEST: "unknown digest",
        EVP_R_INVALID_IV_LENGTH: "invalid iv length",
        EVP_R_OPERATION_NOT_SUPPORTED: "operation not supported for this keytype",
    },
    LIB_PEM: {
        PEM_R_BAD_BASE64_DECODE: "bad base64 decode",
        PEM_R_BAD_DECRYPT: "bad decrypt",
        PEM_R_BAD_END_LINE: "bad end line",
        PEM_R_BAD_IV_CHARS: "bad iv chars",
        PEM_R_BAD_PASSWORD_READ: "bad password read",
        PEM_R_NO_START_LINE: "no start line",
        PEM_R_UNSUPPORTED_ENCRYPTION: "unsupported encryption",
        PEM_R_UNSUPPORTED_KEY_TYPE: "unsupported key type",
    },
    LIB_ASN1: {
        ASN1_R_DECODE_ERROR: "decode error",
    },
    LIB_DH: {
        DH_R_NO_PRIVATE_VALUE: "no private value",
        DH_R_BAD_GENERATOR: "bad generator",
        DH_R_INVALID_PUBKEY: "invalid public key",
        DH_R_MODULUS_TOO_SMALL: "modulus too small",
        DH_R_NO_PARAMETERS_SET: "no parameters set",
    },
    LIB_RSA: _KEY_REASONS,
    LIB_DSA: _KEY_REASONS,
    LIB_EC: _KEY_REASONS,
    LIB_USER: {
        USER_R_NOT_INITIALIZED: "context not initialized",
        USER_R_ALREADY_FINALIZED: "context already finalized",
        USER_R_DIRECTION_UNCHANGED: "direction unchanged before first initialization",
        USER_R_FIXED_KEY_LENGTH: "key length is fixed for this algorithm",
        USER_R_KEY_ALREADY_SET: "key length must be set before the key",
        USER_R_BUFFER_TOO_SMALL: "output buffer too small",
        USER_R_HANDLE_RELEASED: "handle released or moved",
        USER_R_WRONG_KEY_TYPE: "wrong key type",
        USER_R_NO_KEY: "no key set",
        USER_R_NO_ALGORITHM: "no algorithm set",
    },
}


def pack_error(lib: int, reason: int) -> int:
    """Pack a library number and a reason into a single error code."""

    return ((lib & 0xFF) << 24) | (reason & 0xFFF)


def error_library(code: int) -> int:
    return (code >> 24) & 0xFF


def error_reason(code: int) -> int:
    return code & 0xFFF


class ErrorStrings:
    """Reference-counted, process-wide error string table."""

    _lock = threading.Lock()
    _refcount = 0
    _table: Optional[dict[int, str]] = None

    @classmethod
    def acquire(cls) -> None:
        with cls._lock:
            if cls._refcount == 0:
                cls._table = cls._load()
                logger.debug("error strings loaded (%d entries)", len(cls._table))
            cls._refcount += 1

    @classmethod
    def release(cls) -> None:
        with cls._lock:
            if cls._refcount == 0:
                return
            cls._refcount -= 1
            if cls._refcount == 0:
                cls._table = None
                logger.debug("error strings unloaded")

    @classmethod
    def is_loaded(cls) -> bool:
        return cls._table is not None

    @classmethod
    def refcount(cls) -> int:
        return cls._refcount

    @classmethod
    def lookup(cls, code: int) -> Optional[str]:
        """Return the diagnostic string for ``code``, or ``None`` when unloaded or unknown."""

        table = cls._table
        if table is None:
            return None
        return table.get(code)

    @staticmethod
    def _load() -> dict[int, str]:
        table: dict[int, str] = {}
        for lib, reasons in _REASON_STRINGS.items():
            library = _LIBRARY_NAMES[lib]
            for reason, text in reasons.items():
                code = pack_error(lib, reason)
                table[code] = f"error:{code:08X}:{library}::{text}"
        return table


class ErrorStringsInitializer:
    """Scoped holder of the error string table.

    Acquires on construction and releases exactly once, either through
    :meth:`release` or when leaving a ``with`` block.
    """

    def __init__(self) -> None:
        ErrorStrings.acquire()
        self._held = True

    def release(self) -> None:
        if self._held:
            self._held = False
            ErrorStrings.release()

    @property
    def held(self) -> bool:
        return self._held

    def __enter__(self) -> "ErrorStringsInitializer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __del__(self) -> None:
        self.release()


def error_strings_initializer() -> ErrorStringsInitializer:
    """Acquire the error string table for the lifetime of the returned holder."""

    return ErrorStringsInitializer()


def error_string(code: int) -> str:
    """Return a readable string for ``code``; numeric form when the table is not loaded."""

    text = ErrorStrings.lookup(code)
    if text is not None:
        return text
    return f"error:{code:08X}:lib({error_library(code)})::reason({error_reason(code)})"
