"""Asymmetric keys, DH parameter sets and their PEM serialization."""

from __future__ import annotations

from .dh import DHCheck, DHParameters
from .keys import AsymmetricKey, DSAKey, ECKey, RSAKey, SigningKey
from .passphrase import PassphraseCallback, passphrase_callback, terminal_passphrase_callback
from .pkey import KeyType, PKey

__all__ = [
    "AsymmetricKey",
    "DHCheck",
    "DHParameters",
    "DSAKey",
    "ECKey",
    "KeyType",
    "PKey",
    "PassphraseCallback",
    "RSAKey",
    "SigningKey",
    "passphrase_callback",
    "terminal_passphrase_callback",
]
