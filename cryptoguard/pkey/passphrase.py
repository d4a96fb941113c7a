"""Passphrase callbacks used when reading and writing encrypted PEM data.

A callback has the shape ``callback(buffer, buffer_length, confirm) -> int``:
it writes at most ``buffer_length`` bytes of passphrase into ``buffer`` and
returns how many it wrote. A return value of zero or less signals failure
(no passphrase, passphrase too long, or a confirmation that did not match).
``confirm`` is true when the passphrase is being chosen for a write.
"""

from __future__ import annotations

import getpass
import logging
from typing import Callable, Optional

from ..config import get_config
from ..error.native import fail
from ..error.strings import LIB_PEM, PEM_R_BAD_PASSWORD_READ

logger = logging.getLogger(__name__)

PassphraseCallback = Callable[[bytearray, int, bool], int]


def passphrase_callback(passphrase: bytes | str) -> PassphraseCallback:
    """Build a callback that always answers with ``passphrase``."""

    if isinstance(passphrase, str):
        passphrase = passphrase.encode("utf-8")
    secret = bytes(passphrase)

    def callback(buffer: bytearray, buffer_length: int, confirm: bool) -> int:
        if not secret or len(secret) > buffer_length:
            return 0
        buffer[: len(secret)] = secret
        return len(secret)

    return callback


def read_passphrase(callback: Optional[PassphraseCallback], confirm: bool) -> bytes:
    """Ask ``callback`` for a passphrase.

    Raises:
        PassphraseError: ``PEM_R_BAD_PASSWORD_READ`` when there is no callback
            or it reports failure.
    """

    if callback is None:
        fail(LIB_PEM, PEM_R_BAD_PASSWORD_READ)

    size = get_config().pem_buffer_size
    buffer = bytearray(size)
    try:
        written = callback(buffer, size, confirm)
        if not isinstance(written, int) or written <= 0 or written > size:
            fail(LIB_PEM, PEM_R_BAD_PASSWORD_READ)
        return bytes(buffer[:written])
    finally:
        for i in range(size):
            buffer[i] = 0


def terminal_passphrase_callback(prompt: Callable[[str], str] = getpass.getpass) -> PassphraseCallback:
    """Build a callback that asks on the terminal, twice when confirming."""

    def callback(buffer: bytearray, buffer_length: int, confirm: bool) -> int:
        passphrase = prompt(f"Passphrase (max: {buffer_length} characters): ").encode("utf-8")
        if not passphrase:
            logger.warning("Passphrase cannot be empty.")
            return 0
        if len(passphrase) > buffer_length:
            logger.warning("Passphrase cannot exceed %d characters.", buffer_length)
            return 0
        if confirm and prompt("Confirm: ").encode("utf-8") != passphrase:
            logger.warning("The two passphrases do not match.")
            return 0
        buffer[: len(passphrase)] = passphrase
        return len(passphrase)

    return callback
