"""Secure randomness for keys, IVs and salts."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .cipher.algorithm import CipherAlgorithm


def random_bytes(length: int) -> bytes:
    """Return ``length`` cryptographically secure random bytes."""

    if length < 0:
        raise ValueError("length must be non-negative")
    return os.urandom(length)


def random_key(algorithm: "CipherAlgorithm", key_length: Optional[int] = None) -> bytes:
    """Return a fresh key for ``algorithm``, ``key_length`` bytes if given."""

    return random_bytes(algorithm.key_length if key_length is None else key_length)


def random_iv(algorithm: "CipherAlgorithm") -> Optional[bytes]:
    """Return a fresh IV for ``algorithm``, or ``None`` if it takes none."""

    if algorithm.iv_length == 0:
        return None
    return random_bytes(algorithm.iv_length)
