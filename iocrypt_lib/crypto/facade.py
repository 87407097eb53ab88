"""Convenience facades bundling the cipher and password helpers.

Both classes delegate a fixed set of methods to the objects they own.
"""
from __future__ import annotations
import warnings
from typing import Optional, Tuple, Union

from iocrypt_lib.capabilities import Capabilities
from iocrypt_lib.crypto.aes import Aes, CryptoLib
from iocrypt_lib.crypto.password import Password, PasswordPolicy
from iocrypt_lib.data.strings import BytesLike


class Crypto:
    COMPLEX_UPPER = Password.COMPLEX_UPPER
    COMPLEX_LOWER = Password.COMPLEX_LOWER
    COMPLEX_NUMERICS = Password.COMPLEX_NUMERICS
    COMPLEX_SPECIAL = Password.COMPLEX_SPECIAL
    COMPLEX_BINARY = Password.COMPLEX_BINARY

    CRYPTO_UNAVAILABLE = CryptoLib.UNAVAILABLE
    CRYPTO_SSL = CryptoLib.SSL
    CRYPTO_MCRYPT = CryptoLib.MCRYPT

    def __init__(self, aes: Optional[Aes] = None, password: Optional[Password] = None,
                 capabilities: Optional[Capabilities] = None) -> None:
        self.aes = aes or Aes(capabilities=capabilities)
        self.password = password or Password()

    # cipher
    def set_keys(self, key: BytesLike, iv: BytesLike, method: Optional[str] = None) -> "Crypto":
        self.aes.set_keys(key, iv, method)
        return self

    def get_key(self) -> bytes:
        return self.aes.get_key()

    def get_iv(self, adjust_length: bool = True) -> bytes:
        return self.aes.get_iv(adjust_length)

    def set_cipher(self, name: str) -> "Crypto":
        self.aes.set_cipher(name)
        return self

    def get_cipher(self) -> Optional[str]:
        return self.aes.get_cipher()

    def get_cipher_methods(self) -> Tuple[str, ...]:
        return self.aes.get_cipher_methods()

    def encrypt(self, data: BytesLike = "", as_base64: bool = True, force_utf8: bool = True) -> Union[str, bytes]:
        return self.aes.encrypt(data, as_base64, force_utf8)

    def decrypt(self, data: BytesLike, as_base64: bool = True, as_text: bool = True) -> Optional[Union[str, bytes]]:
        return self.aes.decrypt(data, as_base64, as_text)

    def discover_cipher(self, encrypted: BytesLike, decrypted: BytesLike) -> str:
        return self.aes.discover_cipher(encrypted, decrypted)

    def set_legacy_over_modern(self, enabled: bool = True) -> "Crypto":
        self.aes.set_legacy_over_modern(enabled)
        return self

    def get_crypto_lib(self) -> CryptoLib:
        return self.aes.get_crypto_lib()

    def can_crypto(self) -> CryptoLib:
        return self.aes.can_crypto()

    # password
    def mkpass(self, complexity: Optional[int] = None, length: Optional[int] = None,
               avoid_ambiguous: bool = True, avoid_adjacent: bool = False) -> str:
        return self.password.mkpass(complexity, length, avoid_ambiguous, avoid_adjacent)

    def generate(self, policy: PasswordPolicy) -> str:
        return self.password.generate(policy)


class ModuleCrypto:
    """Deprecated entry point kept for old callers; use `Crypto` instead."""

    def __init__(self, capabilities: Optional[Capabilities] = None) -> None:
        warnings.warn("ModuleCrypto is deprecated, use Crypto", DeprecationWarning, stacklevel=2)
        self.real_crypto = Crypto(capabilities=capabilities)

    def set_keys(self, key: BytesLike, iv: BytesLike, method: Optional[str] = None) -> "ModuleCrypto":
        self.real_crypto.set_keys(key, iv, method)
        return self

    def encrypt(self, data: BytesLike = "", as_base64: bool = True, force_utf8: bool = True) -> Union[str, bytes]:
        return self.real_crypto.encrypt(data, as_base64, force_utf8)

    def decrypt(self, data: BytesLike, as_base64: bool = True, as_text: bool = True) -> Optional[Union[str, bytes]]:
        return self.real_crypto.decrypt(data, as_base64, as_text)

    def mkpass(self, complexity: Optional[int] = None, length: Optional[int] = None,
               avoid_ambiguous: bool = True, avoid_adjacent: bool = False) -> str:
        return self.real_crypto.mkpass(complexity, length, avoid_ambiguous, avoid_adjacent)
