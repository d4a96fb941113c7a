"""Asymmetric key variants: RSA, DSA and elliptic curve keys.

Each variant is a :class:`~cryptoguard.handle.ManagedHandle` around a native
key pair. A key may be empty (freshly constructed), public-only (read from a
SubjectPublicKeyInfo block) or a full private key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, ClassVar, Optional, Tuple, Type, TypeVar

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, padding, rsa

from ..cipher.algorithm import CipherAlgorithm
from ..digest.algorithm import DigestAlgorithm
from ..error.errors import ContractViolationError
from ..error.native import checked_call, fail
from ..error.strings import (
    ASN1_R_DECODE_ERROR,
    EVP_R_OPERATION_NOT_SUPPORTED,
    KEY_R_BAD_SIGNATURE,
    KEY_R_INVALID_KEY,
    KEY_R_KEY_GENERATION_FAILED,
    KEY_R_UNKNOWN_CURVE,
    LIB_ASN1,
    LIB_DSA,
    LIB_EC,
    LIB_EVP,
    LIB_RSA,
    USER_R_NO_KEY,
    USER_R_WRONG_KEY_TYPE,
)
from ..handle import ManagedHandle
from . import pem
from .passphrase import PassphraseCallback

logger = logging.getLogger(__name__)

K = TypeVar("K", bound="AsymmetricKey")


@dataclass
class _NativeKey:
    private: Any = None
    public: Any = None


class AsymmetricKey(ManagedHandle[_NativeKey]):
    """Common behaviour of every key variant: PEM input/output and cloning."""

    LIB: ClassVar[int] = LIB_EVP
    PRIVATE_TYPES: ClassVar[Tuple[type, ...]] = ()
    PUBLIC_TYPES: ClassVar[Tuple[type, ...]] = ()
    _RESOURCE: ClassVar[Type[_NativeKey]] = _NativeKey

    def _allocate(self) -> _NativeKey:
        return self._RESOURCE()

    def _release(self, resource: _NativeKey) -> None:
        resource.private = None
        resource.public = None

    @classmethod
    def _resource_for(cls, native: Any) -> _NativeKey:
        if isinstance(native, cls.PRIVATE_TYPES):
            return cls._RESOURCE(private=native, public=native.public_key())
        if isinstance(native, cls.PUBLIC_TYPES):
            return cls._RESOURCE(public=native)
        raise ContractViolationError.for_reason(USER_R_WRONG_KEY_TYPE)

    @classmethod
    def _wrap(cls: Type[K], native: Any) -> K:
        return cls(cls._resource_for(native))

    @classmethod
    def accepts(cls, native: Any) -> bool:
        return isinstance(native, cls.PRIVATE_TYPES + cls.PUBLIC_TYPES)

    @property
    def has_private_key(self) -> bool:
        return self.raw.private is not None

    @property
    def is_empty(self) -> bool:
        return self.raw.public is None

    @property
    def key_size(self) -> int:
        """Size of the key in bits."""

        return self._public().key_size

    def _private(self) -> Any:
        private = self.raw.private
        if private is None:
            raise ContractViolationError.for_reason(USER_R_NO_KEY)
        return private

    def _public(self) -> Any:
        public = self.raw.public
        if public is None:
            raise ContractViolationError.for_reason(USER_R_NO_KEY)
        return public

    @classmethod
    def from_private_key(cls: Type[K], stream: BinaryIO, callback: Optional[PassphraseCallback] = None) -> K:
        """Read a PEM private key from ``stream``.

        ``callback`` is only invoked when the key is encrypted.
        """

        return cls._wrap(pem.load_private_key(pem.read_stream(stream), callback))

    @classmethod
    def from_public_key(cls: Type[K], stream: BinaryIO) -> K:
        return cls._wrap(pem.load_public_key(pem.read_stream(stream)))

    def write_private_key(
        self,
        stream: BinaryIO,
        algorithm: Optional[CipherAlgorithm] = None,
        callback: Optional[PassphraseCallback] = None,
    ) -> None:
        pem.dump_private_key(self._private(), stream, algorithm, callback)

    def write_private_key_pkcs8(
        self,
        stream: BinaryIO,
        algorithm: Optional[CipherAlgorithm] = None,
        callback: Optional[PassphraseCallback] = None,
    ) -> None:
        pem.dump_private_key_pkcs8(self._private(), stream, algorithm, callback)

    def write_public_key(self, stream: BinaryIO) -> None:
        pem.dump_public_key(self._public(), stream)

    def clone(self: K) -> K:
        """An independent copy of the key, rebuilt from its DER encoding."""

        ctx = self.raw
        if ctx.private is not None:
            der = checked_call(
                LIB_EVP,
                EVP_R_OPERATION_NOT_SUPPORTED,
                ctx.private.private_bytes,
                serialization.Encoding.DER,
                serialization.PrivateFormat.PKCS8,
                serialization.NoEncryption(),
            )
            native = checked_call(LIB_ASN1, ASN1_R_DECODE_ERROR, serialization.load_der_private_key, der, None)
        elif ctx.public is not None:
            der = checked_call(
                LIB_EVP,
                EVP_R_OPERATION_NOT_SUPPORTED,
                ctx.public.public_bytes,
                serialization.Encoding.DER,
                serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            native = checked_call(LIB_ASN1, ASN1_R_DECODE_ERROR, serialization.load_der_public_key, der)
        else:
            return type(self)()
        return type(self)._wrap(native)


def _digest(digest: DigestAlgorithm | str) -> DigestAlgorithm:
    if isinstance(digest, str):
        return DigestAlgorithm.from_name(digest)
    return digest


class SigningKey(AsymmetricKey):
    """A key variant that signs and verifies messages."""

    def _sign(self, private: Any, data: bytes, digest: DigestAlgorithm) -> bytes:
        raise NotImplementedError

    def _verify(self, public: Any, signature: bytes, data: bytes, digest: DigestAlgorithm) -> None:
        raise NotImplementedError

    def sign(self, data: bytes, digest: DigestAlgorithm | str = "SHA256") -> bytes:
        """Sign ``data`` hashed with ``digest``."""

        private = self._private()
        algorithm = _digest(digest)
        return checked_call(self.LIB, KEY_R_INVALID_KEY, self._sign, private, data, algorithm)

    def verify(self, signature: bytes, data: bytes, digest: DigestAlgorithm | str = "SHA256") -> None:
        """Check ``signature`` over ``data``.

        Raises:
            CryptographicError: ``KEY_R_BAD_SIGNATURE`` when it does not match.
        """

        public = self._public()
        algorithm = _digest(digest)
        checked_call(
            self.LIB,
            KEY_R_BAD_SIGNATURE,
            lambda: self._verify(public, signature, data, algorithm) or True,
        )


class RSAKey(SigningKey):
    LIB = LIB_RSA
    PRIVATE_TYPES = (rsa.RSAPrivateKey,)
    PUBLIC_TYPES = (rsa.RSAPublicKey,)

    @classmethod
    def generate_private_key(cls, bits: int = 2048, exponent: int = 65537) -> "RSAKey":
        native = checked_call(LIB_RSA, KEY_R_KEY_GENERATION_FAILED, rsa.generate_private_key, exponent, bits)
        logger.debug("generated %d-bit RSA key", bits)
        return cls._wrap(native)

    def _sign(self, private: Any, data: bytes, digest: DigestAlgorithm) -> bytes:
        return private.sign(data, padding.PKCS1v15(), digest.native())

    def _verify(self, public: Any, signature: bytes, data: bytes, digest: DigestAlgorithm) -> None:
        public.verify(signature, data, padding.PKCS1v15(), digest.native())


class DSAKey(SigningKey):
    LIB = LIB_DSA
    PRIVATE_TYPES = (dsa.DSAPrivateKey,)
    PUBLIC_TYPES = (dsa.DSAPublicKey,)

    @classmethod
    def generate_private_key(cls, bits: int = 2048) -> "DSAKey":
        native = checked_call(LIB_DSA, KEY_R_KEY_GENERATION_FAILED, dsa.generate_private_key, bits)
        logger.debug("generated %d-bit DSA key", bits)
        return cls._wrap(native)

    def _sign(self, private: Any, data: bytes, digest: DigestAlgorithm) -> bytes:
        return private.sign(data, digest.native())

    def _verify(self, public: Any, signature: bytes, data: bytes, digest: DigestAlgorithm) -> None:
        public.verify(signature, data, digest.native())


_CURVES = {
    "prime256v1": ec.SECP256R1,
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
    "secp256k1": ec.SECP256K1,
}


class ECKey(SigningKey):
    LIB = LIB_EC
    PRIVATE_TYPES = (ec.EllipticCurvePrivateKey,)
    PUBLIC_TYPES = (ec.EllipticCurvePublicKey,)

    @classmethod
    def generate_private_key(cls, curve: str = "prime256v1") -> "ECKey":
        curve_cls = _CURVES.get(curve.lower())
        if curve_cls is None:
            fail(LIB_EC, KEY_R_UNKNOWN_CURVE)
        native = checked_call(LIB_EC, KEY_R_KEY_GENERATION_FAILED, ec.generate_private_key, curve_cls())
        logger.debug("generated EC key on %s", curve)
        return cls._wrap(native)

    @property
    def curve_name(self) -> str:
        return self._public().curve.name

    def _sign(self, private: Any, data: bytes, digest: DigestAlgorithm) -> bytes:
        return private.sign(data, ec.ECDSA(digest.native()))

    def _verify(self, public: Any, signature: bytes, data: bytes, digest: DigestAlgorithm) -> None:
        public.verify(signature, data, ec.ECDSA(digest.native()))
