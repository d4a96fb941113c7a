"""Configuration management for cryptoguard."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional
import logging
import os

ENV_PREFIX = "CRYPTOGUARD_"


@dataclass(frozen=True)
class CryptoConfig:
    """Tunable limits of the wrapper layer."""

    # OpenSSL PEM_BUFSIZE: room offered to passphrase callbacks
    pem_buffer_size: int = 1024
    # Miller-Rabin rounds used by DHParameters.check()
    prime_checks: int = 64
    dh_min_bits: int = 512
    # PBKDF2 iterations for encrypted PKCS#8 (OpenSSL PKCS5_DEFAULT_ITER)
    pkcs8_iterations: int = 2048
    default_pem_cipher: str = "AES-256-CBC"
    log_level: str = "WARNING"

    @classmethod
    def from_environment(cls, environ: Optional[Dict[str, str]] = None) -> CryptoConfig:
        """
        Build a configuration from ``CRYPTOGUARD_*`` environment variables.

        Args:
            environ: Mapping to read instead of :data:`os.environ`.

        Returns:
            Configuration with every variable that is set applied over the defaults.

        Raises:
            ValueError: If a numeric variable does not parse as an integer.
        """
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.type in ("int", int):
                try:
                    overrides[f.name] = int(raw)
                except ValueError as e:
                    raise ValueError(f"{ENV_PREFIX}{f.name.upper()} must be an integer") from e
            else:
                overrides[f.name] = raw
        return replace(cls(), **overrides)

    def validate(self) -> List[str]:
        """
        Validate the configuration.

        Returns:
            List of validation errors. Empty if valid.
        """
        errors = []

        if self.pem_buffer_size <= 0:
            errors.append("pem_buffer_size must be positive")

        if self.prime_checks <= 0:
            errors.append("prime_checks must be positive")

        if self.pkcs8_iterations <= 0:
            errors.append("pkcs8_iterations must be positive")

        if self.dh_min_bits < 512:
            errors.append("dh_min_bits must be at least 512")

        if logging.getLevelName(self.log_level.upper()) not in range(0, 51):
            errors.append(f"unknown log_level: {self.log_level}")

        return errors


_config = CryptoConfig.from_environment()


def get_config() -> CryptoConfig:
    """Return the active configuration."""
    return _config


def set_config(config: CryptoConfig) -> CryptoConfig:
    """
    Replace the active configuration.

    Returns:
        The previously active configuration, so callers can restore it.

    Raises:
        ValueError: If ``config`` does not validate.
    """
    global _config
    errors = config.validate()
    if errors:
        raise ValueError("; ".join(errors))
    previous, _config = _config, config
    return previous
