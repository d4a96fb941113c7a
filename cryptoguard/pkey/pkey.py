"""A key of any supported variant, tagged with its type.

:class:`PKey` holds at most one variant handle at a time. Installing a new
key moves it in (the caller's wrapper is left moved-from) and releases the
previously held one. Type queries only compare the tag.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Type

from ..cipher.algorithm import CipherAlgorithm
from ..error.errors import ContractViolationError
from ..error.native import fail
from ..error.strings import (
    LIB_PEM,
    PEM_R_UNSUPPORTED_KEY_TYPE,
    USER_R_NO_KEY,
    USER_R_WRONG_KEY_TYPE,
)
from ..handle import ManagedHandle
from . import pem
from .dh import DHParameters
from .keys import AsymmetricKey, DSAKey, ECKey, RSAKey
from .passphrase import PassphraseCallback

logger = logging.getLogger(__name__)


class KeyType(enum.Enum):
    DH = "dh"
    RSA = "rsa"
    DSA = "dsa"
    EC = "ec"


_VARIANTS: dict[KeyType, Type[AsymmetricKey]] = {
    KeyType.DH: DHParameters,
    KeyType.RSA: RSAKey,
    KeyType.DSA: DSAKey,
    KeyType.EC: ECKey,
}


@dataclass
class _KeySlot:
    type: Optional[KeyType] = None
    key: Optional[AsymmetricKey] = None

    def clear(self) -> None:
        key, self.key, self.type = self.key, None, None
        if key is not None:
            key.close()


class PKey(ManagedHandle[_KeySlot]):
    """An asymmetric key of one of the :class:`KeyType` variants."""

    def _allocate(self) -> _KeySlot:
        return _KeySlot()

    def _release(self, resource: _KeySlot) -> None:
        resource.clear()

    @property
    def type(self) -> Optional[KeyType]:
        return self.raw.type

    def _set(self, key_type: KeyType, key: AsymmetricKey) -> None:
        moved = key.take()
        slot = self.raw
        slot.clear()
        slot.type, slot.key = key_type, moved
        logger.debug("PKey now holds a %s key", key_type.name)

    def set_dh_key(self, key: DHParameters) -> None:
        self._set(KeyType.DH, key)

    def set_rsa_key(self, key: RSAKey) -> None:
        self._set(KeyType.RSA, key)

    def set_dsa_key(self, key: DSAKey) -> None:
        self._set(KeyType.DSA, key)

    def set_ec_key(self, key: ECKey) -> None:
        self._set(KeyType.EC, key)

    def is_dh(self) -> bool:
        return self.raw.type is KeyType.DH

    def is_rsa(self) -> bool:
        return self.raw.type is KeyType.RSA

    def is_dsa(self) -> bool:
        return self.raw.type is KeyType.DSA

    def is_ec(self) -> bool:
        return self.raw.type is KeyType.EC

    def _key(self) -> AsymmetricKey:
        key = self.raw.key
        if key is None:
            raise ContractViolationError.for_reason(USER_R_NO_KEY)
        return key

    def _get(self, key_type: KeyType) -> Any:
        key = self._key()
        if self.raw.type is not key_type:
            raise ContractViolationError.for_reason(USER_R_WRONG_KEY_TYPE)
        return key.clone()

    def get_dh_key(self) -> DHParameters:
        """An independent copy of the held DH key."""

        return self._get(KeyType.DH)

    def get_rsa_key(self) -> RSAKey:
        return self._get(KeyType.RSA)

    def get_dsa_key(self) -> DSAKey:
        return self._get(KeyType.DSA)

    def get_ec_key(self) -> ECKey:
        return self._get(KeyType.EC)

    @classmethod
    def _from_native(cls, native: Any) -> "PKey":
        for key_type, variant in _VARIANTS.items():
            if variant.accepts(native):
                pkey = cls()
                pkey._set(key_type, variant._wrap(native))
                return pkey
        fail(LIB_PEM, PEM_R_UNSUPPORTED_KEY_TYPE)

    @classmethod
    def from_private_key(cls, stream: BinaryIO, callback: Optional[PassphraseCallback] = None) -> "PKey":
        """Read a PEM private key of any supported type.

        ``callback`` is only invoked when the key is encrypted.
        """

        return cls._from_native(pem.load_private_key(pem.read_stream(stream), callback))

    @classmethod
    def from_certificate_public_key(cls, stream: BinaryIO) -> "PKey":
        """Read a SubjectPublicKeyInfo block; never invokes a callback."""

        return cls._from_native(pem.load_public_key(pem.read_stream(stream)))

    def write_private_key(
        self,
        stream: BinaryIO,
        algorithm: Optional[CipherAlgorithm] = None,
        callback: Optional[PassphraseCallback] = None,
    ) -> None:
        """Write the traditional PEM form, encrypted with ``algorithm`` when given.

        ``callback`` is invoked once with ``confirm=True`` to choose the
        passphrase, and only when ``algorithm`` is given.
        """

        self._key().write_private_key(stream, algorithm, callback)

    def write_private_key_pkcs8(
        self,
        stream: BinaryIO,
        algorithm: Optional[CipherAlgorithm] = None,
        callback: Optional[PassphraseCallback] = None,
    ) -> None:
        self._key().write_private_key_pkcs8(stream, algorithm, callback)

    def write_certificate_public_key(self, stream: BinaryIO) -> None:
        self._key().write_public_key(stream)
