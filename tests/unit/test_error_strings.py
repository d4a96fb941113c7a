"""Unit tests for cryptoguard.error module."""

import threading

import pytest

from cryptoguard.error import (
    ContractViolationError,
    CryptoError,
    CryptographicError,
    ErrorStrings,
    PassphraseError,
    checked_call,
    error_string,
    error_strings_initializer,
    fail,
    get_error,
    native_call,
    pack_error,
    peek_error,
    put_error,
    throw_error_if,
    throw_error_if_not,
)
from cryptoguard.error.strings import (
    EVP_R_BAD_DECRYPT,
    LIB_EVP,
    LIB_PEM,
    LIB_USER,
    PEM_R_BAD_DECRYPT,
    PEM_R_NO_START_LINE,
    USER_R_NOT_INITIALIZED,
)

BAD_DECRYPT = pack_error(LIB_EVP, EVP_R_BAD_DECRYPT)


class TestErrorStrings:
    """Test the reference-counted string table."""

    def test_lookup_only_while_acquired(self):
        """Messages resolve only while a holder exists."""
        base = ErrorStrings.refcount()
        with error_strings_initializer():
            assert ErrorStrings.lookup(BAD_DECRYPT) == (
                "error:06000064:digital envelope routines::bad decrypt"
            )
        if base == 0:
            assert ErrorStrings.lookup(BAD_DECRYPT) is None

    def test_nested_scopes(self):
        """The table stays loaded until the last holder releases."""
        base = ErrorStrings.refcount()
        outer = error_strings_initializer()
        inner = error_strings_initializer()
        assert ErrorStrings.refcount() == base + 2

        outer.release()
        assert ErrorStrings.is_loaded()
        assert ErrorStrings.lookup(BAD_DECRYPT) is not None

        inner.release()
        assert ErrorStrings.refcount() == base
        assert ErrorStrings.is_loaded() == (base > 0)

    def test_release_at_most_once(self):
        """A holder releases its reference only once."""
        base = ErrorStrings.refcount()
        holder = error_strings_initializer()
        holder.release()
        holder.release()
        with holder:
            pass
        assert not holder.held
        assert ErrorStrings.refcount() == base

    def test_release_below_zero_is_noop(self):
        """Extra releases never drive the count negative."""
        while ErrorStrings.refcount():
            ErrorStrings.release()
        ErrorStrings.release()
        assert ErrorStrings.refcount() == 0
        assert not ErrorStrings.is_loaded()

    def test_reload_after_teardown(self):
        """Acquiring again after a full teardown reloads the table."""
        with error_strings_initializer():
            pass
        with error_strings_initializer():
            assert ErrorStrings.lookup(BAD_DECRYPT) is not None

    def test_concurrent_acquire_release(self):
        """Threads acquiring and releasing concurrently keep the count balanced."""
        base = ErrorStrings.refcount()

        def worker():
            for _ in range(200):
                with error_strings_initializer():
                    assert ErrorStrings.is_loaded()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert ErrorStrings.refcount() == base


def test_error_string_fallback_when_unloaded() -> None:
    while ErrorStrings.refcount():
        ErrorStrings.release()
    assert error_string(BAD_DECRYPT) == "error:06000064:lib(6)::reason(100)"


def test_error_string_unknown_code(error_strings) -> None:
    code = pack_error(LIB_EVP, 0xABC)
    assert error_string(code) == "error:06000ABC:lib(6)::reason(2748)"


class TestCryptographicError:
    """Test the structured error."""

    def test_code_and_message(self, error_strings):
        """Message is resolved at construction."""
        error = CryptographicError(BAD_DECRYPT)
        assert error.code == BAD_DECRYPT
        assert error.library == LIB_EVP
        assert error.reason == EVP_R_BAD_DECRYPT
        assert "bad decrypt" in str(error)
        assert isinstance(error, CryptoError)

    def test_explicit_message(self):
        """An explicit message is kept as is."""
        error = CryptographicError(BAD_DECRYPT, "custom")
        assert error.message == "custom"
        assert str(error) == "custom"

    def test_from_code_dispatch(self):
        """from_code picks the most specific class."""
        assert type(CryptographicError.from_code(BAD_DECRYPT)) is CryptographicError
        assert isinstance(
            CryptographicError.from_code(pack_error(LIB_USER, USER_R_NOT_INITIALIZED)),
            ContractViolationError,
        )
        assert isinstance(
            CryptographicError.from_code(pack_error(LIB_PEM, PEM_R_BAD_DECRYPT)),
            PassphraseError,
        )
        assert not isinstance(
            CryptographicError.from_code(pack_error(LIB_PEM, PEM_R_NO_START_LINE)),
            PassphraseError,
        )

    def test_contract_violation_for_reason(self):
        """Contract violations live in the USER library."""
        error = ContractViolationError.for_reason(USER_R_NOT_INITIALIZED)
        assert error.library == LIB_USER
        assert error.reason == USER_R_NOT_INITIALIZED


class TestNativeBoundary:
    """Test the error queue and the raising chokepoint."""

    def test_native_call_records_failure(self):
        """A native exception becomes a queued code and a None result."""

        def boom():
            raise ValueError("native failure")

        assert native_call(LIB_EVP, EVP_R_BAD_DECRYPT, boom) is None
        assert peek_error() == BAD_DECRYPT
        assert get_error() == BAD_DECRYPT
        assert get_error() == 0

    def test_native_call_reason_override(self):
        """Per-exception reasons take precedence."""

        def boom():
            raise TypeError("wrong type")

        native_call(LIB_EVP, 1, boom, reasons={TypeError: 2})
        assert get_error() == pack_error(LIB_EVP, 2)

    def test_non_native_exceptions_propagate(self):
        """Only native exception types are translated."""

        def boom():
            raise KeyError("not native")

        with pytest.raises(KeyError):
            native_call(LIB_EVP, 1, boom)

    def test_throw_error_if_clears_queue(self):
        """Raising reads the earliest error and clears the rest."""
        put_error(LIB_EVP, EVP_R_BAD_DECRYPT)
        put_error(LIB_PEM, PEM_R_NO_START_LINE)
        with pytest.raises(CryptographicError) as exc_info:
            throw_error_if(True)
        assert exc_info.value.code == BAD_DECRYPT
        assert peek_error() == 0

    def test_throw_error_if_not(self):
        """throw_error_if_not raises on a false condition only."""
        throw_error_if_not(True)
        put_error(LIB_EVP, EVP_R_BAD_DECRYPT)
        with pytest.raises(CryptographicError):
            throw_error_if_not(False)

    def test_fail_and_checked_call(self):
        """fail raises immediately and checked_call passes results through."""
        with pytest.raises(PassphraseError):
            fail(LIB_PEM, PEM_R_BAD_DECRYPT)
        assert checked_call(LIB_EVP, 1, lambda: b"ok") == b"ok"

    def test_queue_is_per_thread(self):
        """Errors recorded on another thread are invisible here."""
        thread = threading.Thread(target=put_error, args=(LIB_EVP, EVP_R_BAD_DECRYPT))
        thread.start()
        thread.join()
        assert peek_error() == 0
