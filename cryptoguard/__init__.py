"""Cryptoguard: safe handles over a native cryptographic library.

Every stateful object (cipher and digest contexts, asymmetric keys, DH
parameter sets) owns its native resource exactly once, follows a strict
``initialize -> update -> finalize`` protocol and reports native failures as
:class:`~cryptoguard.error.CryptographicError`.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .cipher import CipherAlgorithm, CipherContext, CipherDirection, CipherState
from .config import CryptoConfig, get_config, set_config
from .digest import DigestAlgorithm, DigestContext
from .error import (
    ContractViolationError,
    CryptoError,
    CryptographicError,
    PassphraseError,
    error_string,
    error_strings_initializer,
)
from .handle import ManagedHandle
from .pkey import DHCheck, DHParameters, DSAKey, ECKey, KeyType, PKey, RSAKey, passphrase_callback

__all__ = [
    "CipherAlgorithm",
    "CipherContext",
    "CipherDirection",
    "CipherState",
    "ContractViolationError",
    "CryptoConfig",
    "CryptoError",
    "CryptographicError",
    "DHCheck",
    "DHParameters",
    "DSAKey",
    "DigestAlgorithm",
    "DigestContext",
    "ECKey",
    "KeyType",
    "ManagedHandle",
    "PKey",
    "PassphraseError",
    "RSAKey",
    "error_string",
    "error_strings_initializer",
    "get_config",
    "passphrase_callback",
    "set_config",
]
