"""Message digest descriptors, resolved by OpenSSL-style names."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from cryptography.hazmat.primitives import hashes

from ..error.native import fail
from ..error.strings import EVP_R_UNKNOWN_DIGEST, LIB_EVP


@dataclass(frozen=True)
class DigestAlgorithm:
    """Metadata of a message digest."""

    name: str
    digest_size: int
    block_size: Optional[int]
    factory: Optional[Callable[[], hashes.HashAlgorithm]] = field(default=None, repr=False, compare=False)

    def native(self) -> hashes.HashAlgorithm:
        """A fresh native algorithm object, as used by hashing and signing APIs."""

        assert self.factory is not None
        return self.factory()

    @classmethod
    def from_name(cls, name: str) -> "DigestAlgorithm":
        """Resolve ``name`` (case-insensitive, dashes optional).

        Raises:
            CryptographicError: ``EVP_R_UNKNOWN_DIGEST`` for unknown names.
        """

        key = name.strip().upper()
        compact = key.replace("-", "")
        algorithm = (
            _REGISTRY.get(key)
            or _REGISTRY.get(compact)
            or _REGISTRY.get(_ALIASES.get(compact, ""))
        )
        if algorithm is None:
            fail(LIB_EVP, EVP_R_UNKNOWN_DIGEST)
        return algorithm

    @staticmethod
    def names() -> list[str]:
        return sorted(_REGISTRY)


_REGISTRY: dict[str, DigestAlgorithm] = {}


def _register(name: str, factory: Callable[[], hashes.HashAlgorithm]) -> None:
    sample = factory()
    _REGISTRY[name] = DigestAlgorithm(name, sample.digest_size, getattr(sample, "block_size", None), factory)


_register("MD5", hashes.MD5)
_register("SHA1", hashes.SHA1)
_register("SHA224", hashes.SHA224)
_register("SHA256", hashes.SHA256)
_register("SHA384", hashes.SHA384)
_register("SHA512", hashes.SHA512)
_register("SHA3-256", hashes.SHA3_256)
_register("SHA3-512", hashes.SHA3_512)
_register("BLAKE2B512", lambda: hashes.BLAKE2b(64))
_register("BLAKE2S256", lambda: hashes.BLAKE2s(32))
_register("SM3", hashes.SM3)

_ALIASES = {
    "SHA": "SHA1",
    "SHA3256": "SHA3-256",
    "SHA3512": "SHA3-512",
    "BLAKE2B": "BLAKE2B512",
    "BLAKE2S": "BLAKE2S256",
}
