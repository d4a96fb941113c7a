"""Test configuration for cryptoguard package."""

import io
from typing import Iterator

import pytest

from cryptoguard.config import get_config, set_config
from cryptoguard.error import ErrorStringsInitializer, clear_errors, error_strings_initializer
from cryptoguard.pkey import DHParameters, RSAKey


@pytest.fixture(autouse=True)
def clean_error_queue() -> Iterator[None]:
    """Every test starts and ends with an empty native error queue."""
    clear_errors()
    yield
    clear_errors()


@pytest.fixture
def error_strings() -> Iterator[ErrorStringsInitializer]:
    """Hold the error string table for the duration of a test."""
    with error_strings_initializer() as holder:
        yield holder


@pytest.fixture
def restore_config() -> Iterator[None]:
    """Put back the active configuration after a test changes it."""
    previous = get_config()
    yield
    set_config(previous)


@pytest.fixture(scope="session")
def dh_parameters() -> Iterator[DHParameters]:
    """One 512-bit parameter set shared by the session; generation is slow."""
    params = DHParameters.generate_parameters(512, 2)
    yield params
    params.close()


@pytest.fixture(scope="session")
def rsa_pem() -> bytes:
    """An unencrypted 2048-bit RSA private key in traditional PEM form."""
    buffer = io.BytesIO()
    with RSAKey.generate_private_key(2048) as key:
        key.write_private_key(buffer)
    return buffer.getvalue()
