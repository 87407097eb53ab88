"""Multi-format data rendering and symmetric encryption helpers."""

from .capabilities import Capabilities, get_capabilities
from .crypto import Aes, Crypto, CryptoLib, Password, PasswordPolicy
from .exceptions import (
    CipherNoKeysError,
    CipherUnavailableError,
    ErrorCode,
    FeatureUnavailableError,
    IOCryptError,
    LibraryUnavailableError,
)
from .render import IO, RenderOptions

__all__ = [
    "Aes",
    "Capabilities",
    "CipherNoKeysError",
    "CipherUnavailableError",
    "Crypto",
    "CryptoLib",
    "ErrorCode",
    "FeatureUnavailableError",
    "IO",
    "IOCryptError",
    "LibraryUnavailableError",
    "Password",
    "PasswordPolicy",
    "RenderOptions",
    "get_capabilities",
]
