"""Cipher algorithm descriptors.

A :class:`CipherAlgorithm` is immutable metadata about one symmetric cipher
(key length, IV length, block size, whether the key length may vary) plus the
recipe used to build the matching native cipher. Descriptors are resolved by
OpenSSL-style names such as ``"AES-256-CBC"`` or ``"BF-CBC"``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Optional

from cryptography.hazmat.decrepit.ciphers import algorithms as decrepit
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..error.errors import ContractViolationError
from ..error.native import fail
from ..error.strings import EVP_R_UNKNOWN_CIPHER, LIB_EVP, USER_R_NO_ALGORITHM

CipherFactory = Callable[[bytes, Optional[bytes]], Cipher]


@dataclass(frozen=True)
class CipherAlgorithm:
    """Metadata of a symmetric cipher.

    Args:
        name: Canonical upper-case name.
        key_length: Default key length in bytes.
        iv_length: IV length in bytes, ``0`` when the cipher takes no IV.
        block_size: Block size in bytes, ``1`` for stream ciphers and stream modes.
        key_lengths: Accepted key lengths for variable-length ciphers.
    """

    name: str
    key_length: int
    iv_length: int
    block_size: int
    key_lengths: FrozenSet[int] = frozenset()
    factory: Optional[CipherFactory] = field(default=None, repr=False, compare=False)

    @property
    def is_variable_key_length(self) -> bool:
        return bool(self.key_lengths)

    @property
    def is_stream(self) -> bool:
        return self.block_size == 1

    def accepts_key_length(self, length: int) -> bool:
        if self.is_variable_key_length:
            return length in self.key_lengths
        return length == self.key_length

    def build(self, key: bytes, iv: Optional[bytes]) -> Cipher:
        """Construct the native cipher. Raises the backend's exceptions unchanged."""

        if self.factory is None:
            raise ContractViolationError.for_reason(USER_R_NO_ALGORITHM)
        return self.factory(key, iv)

    @classmethod
    def from_name(cls, name: str) -> "CipherAlgorithm":
        """Resolve ``name`` (case-insensitive, OpenSSL spelling).

        Raises:
            CryptographicError: ``EVP_R_UNKNOWN_CIPHER`` for unknown names.
        """

        key = name.strip().upper()
        algorithm = _REGISTRY.get(_ALIASES.get(key, key))
        if algorithm is None:
            fail(LIB_EVP, EVP_R_UNKNOWN_CIPHER)
        return algorithm

    @staticmethod
    def names() -> list[str]:
        return sorted(_REGISTRY)


def _block(algorithm_cls: Callable[[bytes], object], mode_cls: Callable[..., object]) -> CipherFactory:
    def build(key: bytes, iv: Optional[bytes]) -> Cipher:
        mode = mode_cls() if iv is None else mode_cls(iv)
        return Cipher(algorithm_cls(key), mode)

    return build


def _stream(algorithm_cls: Callable[..., object]) -> CipherFactory:
    def build(key: bytes, iv: Optional[bytes]) -> Cipher:
        algorithm = algorithm_cls(key) if iv is None else algorithm_cls(key, iv)
        return Cipher(algorithm, mode=None)

    return build


_REGISTRY: dict[str, CipherAlgorithm] = {}


def _register(name: str, factory: CipherFactory, key_length: int, iv_length: int,
              block_size: int, key_lengths: FrozenSet[int] = frozenset()) -> None:
    _REGISTRY[name] = CipherAlgorithm(name, key_length, iv_length, block_size, key_lengths, factory)


for _bits in (128, 192, 256):
    _register(f"AES-{_bits}-CBC", _block(algorithms.AES, modes.CBC), _bits // 8, 16, 16)
    _register(f"AES-{_bits}-ECB", _block(algorithms.AES, modes.ECB), _bits // 8, 0, 16)
    _register(f"AES-{_bits}-CFB", _block(algorithms.AES, modes.CFB), _bits // 8, 16, 1)
    _register(f"AES-{_bits}-OFB", _block(algorithms.AES, modes.OFB), _bits // 8, 16, 1)
    _register(f"AES-{_bits}-CTR", _block(algorithms.AES, modes.CTR), _bits // 8, 16, 1)
    _register(f"CAMELLIA-{_bits}-CBC", _block(decrepit.Camellia, modes.CBC), _bits // 8, 16, 16)
    _register(f"CAMELLIA-{_bits}-ECB", _block(decrepit.Camellia, modes.ECB), _bits // 8, 0, 16)

_register("CHACHA20", _stream(algorithms.ChaCha20), 32, 16, 1)
_register("SM4-CBC", _block(algorithms.SM4, modes.CBC), 16, 16, 16)
_register("DES-EDE3-CBC", _block(decrepit.TripleDES, modes.CBC), 24, 8, 8)
_register("DES-EDE3", _block(decrepit.TripleDES, modes.ECB), 24, 0, 8)
_register("SEED-CBC", _block(decrepit.SEED, modes.CBC), 16, 16, 16)
_register("BF-CBC", _block(decrepit.Blowfish, modes.CBC), 16, 8, 8, frozenset(range(4, 57)))
_register("BF-ECB", _block(decrepit.Blowfish, modes.ECB), 16, 0, 8, frozenset(range(4, 57)))
_register("CAST5-CBC", _block(decrepit.CAST5, modes.CBC), 16, 8, 8, frozenset(range(5, 17)))
_register("RC4", _stream(decrepit.ARC4), 16, 0, 1, frozenset({5, 7, 8, 10, 16, 20, 24, 32}))

_ALIASES = {
    "AES128": "AES-128-CBC",
    "AES192": "AES-192-CBC",
    "AES256": "AES-256-CBC",
    "CAMELLIA128": "CAMELLIA-128-CBC",
    "CAMELLIA192": "CAMELLIA-192-CBC",
    "CAMELLIA256": "CAMELLIA-256-CBC",
    "DES3": "DES-EDE3-CBC",
    "BF": "BF-CBC",
    "BLOWFISH": "BF-CBC",
    "CAST": "CAST5-CBC",
    "CAST-CBC": "CAST5-CBC",
    "SEED": "SEED-CBC",
    "SM4": "SM4-CBC",
    "ARC4": "RC4",
}
