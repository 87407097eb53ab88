"""Exception types raised by iocrypt_lib.

Every raised condition carries a stable numeric `code` so callers can match
programmatically instead of parsing messages.
"""
from __future__ import annotations
from enum import IntEnum


class ErrorCode(IntEnum):
    FEATURE_UNAVAILABLE = 404
    LIBRARY_UNAVAILABLE = 1001
    CIPHER_UNAVAILABLE = 1002
    CIPHER_NO_KEYS = 1003


class IOCryptError(Exception):
    """Base class for all library errors."""

    default_code = ErrorCode.LIBRARY_UNAVAILABLE

    def __init__(self, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.default_code

    def __str__(self) -> str:
        return f"[{int(self.code)}] {self.message}"


class LibraryUnavailableError(IOCryptError):
    """No usable cipher backend (or required library) on this runtime."""

    default_code = ErrorCode.LIBRARY_UNAVAILABLE


class CipherUnavailableError(IOCryptError):
    """Requested cipher name is not supported by the active backend."""

    default_code = ErrorCode.CIPHER_UNAVAILABLE


class CipherNoKeysError(IOCryptError):
    default_code = ErrorCode.CIPHER_NO_KEYS


class FeatureUnavailableError(IOCryptError):
    """An optional capability (YAML, bzip2, brotli...) is missing."""

    default_code = ErrorCode.FEATURE_UNAVAILABLE
