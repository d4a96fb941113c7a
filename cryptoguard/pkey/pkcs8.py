"""Encrypted PKCS#8 with a caller-chosen cipher.

The native writer only encrypts PKCS#8 with a cipher of its own choosing, so
the ``EncryptedPrivateKeyInfo`` envelope is assembled here the way OpenSSL's
``PKCS8_encrypt`` lays it out::

    EncryptedPrivateKeyInfo ::= SEQUENCE {
        encryptionAlgorithm  { id-PBES2, {
            keyDerivationFunc { id-PBKDF2, { salt, iterationCount, prf } },
            encryptionScheme  { cipher OID, iv } } },
        encryptedData        OCTET STRING }

PBKDF2-HMAC-SHA256 derives the key and the body goes through the regular
cipher context, so the only code here is the fixed DER framing.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..cipher.algorithm import CipherAlgorithm
from ..cipher.context import encrypt
from ..config import get_config
from ..error.native import checked_call, fail
from ..error.strings import (
    EVP_R_OPERATION_NOT_SUPPORTED,
    LIB_EVP,
    LIB_PEM,
    PEM_R_UNSUPPORTED_ENCRYPTION,
)
from ..random import random_bytes
from .passphrase import PassphraseCallback, read_passphrase

logger = logging.getLogger(__name__)

# ciphers the native PKCS#8 reader accepts inside PBES2
PBES2_CIPHERS: Dict[str, str] = {
    "AES-128-CBC": "2.16.840.1.101.3.4.1.2",
    "AES-256-CBC": "2.16.840.1.101.3.4.1.42",
    "DES-EDE3-CBC": "1.2.840.113549.3.7",
}

OID_PBES2 = "1.2.840.113549.1.5.13"
OID_PBKDF2 = "1.2.840.113549.1.5.12"
OID_HMAC_SHA256 = "1.2.840.113549.2.9"

_SALT_LENGTH = 16
_NULL = b"\x05\x00"


def _der(tag: int, content: bytes) -> bytes:
    length = len(content)
    if length < 0x80:
        return bytes([tag, length]) + content
    size = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([tag, 0x80 | len(size)]) + size + content


def _sequence(*items: bytes) -> bytes:
    return _der(0x30, b"".join(items))


def _octets(data: bytes) -> bytes:
    return _der(0x04, bytes(data))


def _integer(value: int) -> bytes:
    return _der(0x02, value.to_bytes(value.bit_length() // 8 + 1, "big"))


def oid(dotted: str) -> bytes:
    """DER encoding of an object identifier such as ``"1.2.840.113549.3.7"``."""

    first, second, *arcs = (int(part) for part in dotted.split("."))
    body = bytearray([40 * first + second])
    for arc in arcs:
        chunk = [arc & 0x7F]
        arc >>= 7
        while arc:
            chunk.append(0x80 | (arc & 0x7F))
            arc >>= 7
        body.extend(reversed(chunk))
    return _der(0x06, bytes(body))


def encrypt_private_key_info(
    der: bytes,
    algorithm: CipherAlgorithm,
    callback: Optional[PassphraseCallback],
) -> bytes:
    """Encrypt an unencrypted PKCS#8 ``der`` with PBES2 and ``algorithm``.

    The callback is asked once, with ``confirm=True``.

    Raises:
        CryptographicError: ``PEM_R_UNSUPPORTED_ENCRYPTION`` when
            ``algorithm`` has no PBES2 identifier.
        PassphraseError: When the passphrase cannot be read.
    """

    cipher_oid = PBES2_CIPHERS.get(algorithm.name)
    if cipher_oid is None:
        fail(LIB_PEM, PEM_R_UNSUPPORTED_ENCRYPTION)
    passphrase = read_passphrase(callback, confirm=True)

    iterations = get_config().pkcs8_iterations
    salt = random_bytes(_SALT_LENGTH)
    iv = random_bytes(algorithm.iv_length)
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=algorithm.key_length, salt=salt, iterations=iterations)
    key = bytearray(checked_call(LIB_EVP, EVP_R_OPERATION_NOT_SUPPORTED, kdf.derive, passphrase))
    try:
        body = encrypt(algorithm, key, iv, der)
    finally:
        for i in range(len(key)):
            key[i] = 0

    parameters = _sequence(
        _sequence(
            oid(OID_PBKDF2),
            _sequence(_octets(salt), _integer(iterations), _sequence(oid(OID_HMAC_SHA256), _NULL)),
        ),
        _sequence(oid(cipher_oid), _octets(iv)),
    )
    logger.debug("encrypted PKCS#8 key with %s, %d PBKDF2 iterations", algorithm.name, iterations)
    return _sequence(_sequence(oid(OID_PBES2), parameters), _octets(body))
