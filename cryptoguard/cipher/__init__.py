"""Symmetric ciphers: algorithm descriptors and stateful contexts."""

from __future__ import annotations

from .algorithm import CipherAlgorithm
from .context import CipherContext, CipherDirection, CipherState, decrypt, encrypt

__all__ = [
    "CipherAlgorithm",
    "CipherContext",
    "CipherDirection",
    "CipherState",
    "decrypt",
    "encrypt",
]
