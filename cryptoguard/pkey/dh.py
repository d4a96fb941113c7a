"""Diffie-Hellman parameter sets and key exchange.

Typical use::

    params = DHParameters.generate_parameters(2048, 2)
    if params.check():
        raise RuntimeError("unsafe parameters")
    params.generate_key()
    secret = params.compute_key(peer_public_key)

Parameters read back from their PEM form never carry a key pair: they are
public data and the key pair has to be generated again.
"""

from __future__ import annotations

import enum
import logging
import secrets
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dh

from ..config import get_config
from ..error.native import checked_call, fail
from ..error.strings import (
    ASN1_R_DECODE_ERROR,
    DH_R_BAD_GENERATOR,
    DH_R_INVALID_PUBKEY,
    DH_R_MODULUS_TOO_SMALL,
    DH_R_NO_PARAMETERS_SET,
    DH_R_NO_PRIVATE_VALUE,
    EVP_R_OPERATION_NOT_SUPPORTED,
    LIB_ASN1,
    LIB_DH,
    LIB_EVP,
)
from . import pem
from .keys import AsymmetricKey, _NativeKey
from .passphrase import PassphraseCallback

logger = logging.getLogger(__name__)

_SMALL_PRIMES = (
    3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71, 73,
    79, 83, 89, 97, 101, 103, 107, 109, 113, 127, 131, 137, 139, 149, 151, 157,
)


class DHCheck(enum.IntFlag):
    """Failure bits reported by :meth:`DHParameters.check`. Zero means safe."""

    P_NOT_PRIME = 0x01
    P_NOT_SAFE_PRIME = 0x02
    UNABLE_TO_CHECK_GENERATOR = 0x04
    NOT_SUITABLE_GENERATOR = 0x08


def is_probable_prime(n: int, rounds: int) -> bool:
    """Miller-Rabin with ``rounds`` random bases after trial division."""

    if n < 2:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0:
        return False
    for p in _SMALL_PRIMES:
        if n == p:
            return True
        if n % p == 0:
            return False

    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for _ in range(rounds):
        a = 2 + secrets.randbelow(n - 3)
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


@dataclass
class _NativeDH(_NativeKey):
    parameters: Any = None


class DHParameters(AsymmetricKey):
    """A DH parameter set ``(p, g)`` and, once generated, a key pair over it."""

    LIB = LIB_DH
    PRIVATE_TYPES = (dh.DHPrivateKey,)
    PUBLIC_TYPES = (dh.DHPublicKey,)
    _RESOURCE = _NativeDH

    def _release(self, resource: _NativeKey) -> None:
        super()._release(resource)
        resource.parameters = None  # type: ignore[attr-defined]

    @classmethod
    def _resource_for(cls, native: Any) -> _NativeKey:
        resource = super()._resource_for(native)
        resource.parameters = native.parameters()  # type: ignore[attr-defined]
        return resource

    @classmethod
    def generate_parameters(cls, bits: int, generator: int = 2) -> "DHParameters":
        """Search for a safe prime of ``bits`` bits. This can take a long time.

        Raises:
            CryptographicError: ``DH_R_MODULUS_TOO_SMALL`` below the configured
                minimum, ``DH_R_BAD_GENERATOR`` for a generator the native
                library does not support.
        """

        if bits < get_config().dh_min_bits:
            fail(LIB_DH, DH_R_MODULUS_TOO_SMALL)
        parameters = checked_call(LIB_DH, DH_R_BAD_GENERATOR, dh.generate_parameters, generator, bits)
        logger.debug("generated %d-bit DH parameters, g=%d", bits, generator)
        return cls(_NativeDH(parameters=parameters))

    @classmethod
    def from_numbers(cls, prime: int, generator: int) -> "DHParameters":
        if generator < 2:
            fail(LIB_DH, DH_R_BAD_GENERATOR)
        if prime.bit_length() < get_config().dh_min_bits:
            fail(LIB_DH, DH_R_MODULUS_TOO_SMALL)
        parameters = checked_call(
            LIB_DH,
            DH_R_MODULUS_TOO_SMALL,
            lambda: dh.DHParameterNumbers(prime, generator).parameters(),
        )
        return cls(_NativeDH(parameters=parameters))

    @classmethod
    def from_parameters(cls, stream: BinaryIO, callback: Optional[PassphraseCallback] = None) -> "DHParameters":
        """Read ``DH PARAMETERS`` from ``stream``.

        ``callback`` is accepted for symmetry with private key reads and is
        never invoked: parameters are not encrypted.
        """

        return cls(_NativeDH(parameters=pem.load_dh_parameters(pem.read_stream(stream))))

    def write_parameters(self, stream: BinaryIO) -> None:
        pem.dump_dh_parameters(self._parameters(), stream)

    def _parameters(self) -> dh.DHParameters:
        parameters = self.raw.parameters
        if parameters is None:
            fail(LIB_DH, DH_R_NO_PARAMETERS_SET)
        return parameters

    def _numbers(self) -> dh.DHParameterNumbers:
        return self._parameters().parameter_numbers()

    @property
    def prime(self) -> int:
        return self._numbers().p

    @property
    def generator(self) -> int:
        return self._numbers().g

    @property
    def public_key(self) -> Optional[int]:
        public = self.raw.public
        if public is None:
            return None
        return public.public_numbers().y

    @property
    def private_key(self) -> Optional[int]:
        private = self.raw.private
        if private is None:
            return None
        return private.private_numbers().x

    def size(self) -> int:
        """Length of the prime, and of every shared secret, in bytes."""

        return (self.prime.bit_length() + 7) // 8

    def check(self) -> DHCheck:
        numbers = self._numbers()
        p, g = numbers.p, numbers.g
        rounds = get_config().prime_checks
        codes = DHCheck(0)

        if not is_probable_prime(p, rounds):
            codes |= DHCheck.P_NOT_PRIME
        elif not is_probable_prime((p - 1) // 2, rounds):
            codes |= DHCheck.P_NOT_SAFE_PRIME

        if g <= 1 or g >= p - 1:
            codes |= DHCheck.NOT_SUITABLE_GENERATOR
        elif g == 2:
            if p % 24 not in (11, 23):
                codes |= DHCheck.NOT_SUITABLE_GENERATOR
        elif g == 5:
            if p % 10 not in (3, 7) and p % 60 != 59:
                codes |= DHCheck.NOT_SUITABLE_GENERATOR
        else:
            codes |= DHCheck.UNABLE_TO_CHECK_GENERATOR

        if codes:
            logger.debug("DH parameter check failed: %r", codes)
        return codes

    def generate_key(self) -> None:
        """Generate a fresh private/public pair over the current parameters."""

        ctx = self.raw
        parameters = self._parameters()
        private = checked_call(LIB_DH, DH_R_BAD_GENERATOR, parameters.generate_private_key)
        ctx.private = private
        ctx.public = private.public_key()

    def compute_key(self, peer_public_key: int) -> bytes:
        """Derive the shared secret with the peer's public value.

        Returns:
            Exactly :meth:`size` bytes, left-padded with zeros.

        Raises:
            CryptographicError: ``DH_R_NO_PRIVATE_VALUE`` before
                :meth:`generate_key`, ``DH_R_INVALID_PUBKEY`` for a peer value
                outside ``(1, p - 1)``.
        """

        private = self.raw.private
        if private is None:
            fail(LIB_DH, DH_R_NO_PRIVATE_VALUE)
        numbers = self._numbers()
        if not 1 < peer_public_key < numbers.p - 1:
            fail(LIB_DH, DH_R_INVALID_PUBKEY)
        peer = checked_call(
            LIB_DH,
            DH_R_INVALID_PUBKEY,
            lambda: dh.DHPublicNumbers(peer_public_key, numbers).public_key(),
        )
        secret = checked_call(LIB_DH, DH_R_INVALID_PUBKEY, private.exchange, peer)
        return secret.rjust(self.size(), b"\0")

    def clone(self) -> "DHParameters":
        ctx = self.raw
        if ctx.private is not None or ctx.public is not None:
            return super().clone()
        if ctx.parameters is None:
            return DHParameters()
        der = checked_call(
            LIB_EVP,
            EVP_R_OPERATION_NOT_SUPPORTED,
            ctx.parameters.parameter_bytes,
            serialization.Encoding.DER,
            serialization.ParameterFormat.PKCS3,
        )
        parameters = checked_call(LIB_ASN1, ASN1_R_DECODE_ERROR, serialization.load_der_parameters, der)
        return DHParameters(_NativeDH(parameters=parameters))
