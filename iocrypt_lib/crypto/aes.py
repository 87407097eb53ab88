"""Symmetric encryption with a modern (cryptography) backend and a legacy
(pycryptodome, mcrypt compatible) fallback.

The backend is picked once at construction from the runtime capabilities.
Keys and IVs are derived from caller strings with a digest (sha1 by
default, md5 for legacy compatibility, or used verbatim with "plain").
"""
from __future__ import annotations
import hashlib
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple, Union

from iocrypt_lib.capabilities import Capabilities, get_capabilities
from iocrypt_lib.crypto import ciphers
from iocrypt_lib.data.strings import BytesLike, base64url_decode, base64url_encode, to_utf8, utf8_bytes
from iocrypt_lib.exceptions import CipherNoKeysError, CipherUnavailableError, LibraryUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_CIPHER = "aes-256-cbc"
KEY_METHODS = ("sha1", "md5", "plain")


class CryptoLib(IntEnum):
    UNAVAILABLE = 0
    SSL = 1
    MCRYPT = 2


@dataclass
class KeyMaterial:
    key: bytes = b""
    iv: bytes = b""
    iv_length: Optional[int] = None

    def is_empty(self) -> bool:
        return not self.key or not self.iv


def _material(value: BytesLike) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def derive(value: BytesLike, method: str) -> bytes:
    raw = _material(value)
    if method == "sha1":
        return hashlib.sha1(raw).hexdigest().encode("ascii")
    if method == "md5":
        return hashlib.md5(raw).hexdigest().encode("ascii")
    return raw


class Aes:
    """AES style encryption helper.

    Parameters
    - cipher: OpenSSL style cipher name used by the modern backend.
    - legacy_over_modern: encrypt through the legacy backend even when the
      modern one is present. Raises if legacy is not usable.
    - key_method: default derivation used by `set_keys`.
    - capabilities: injected capability probe (tests).
    """

    def __init__(
        self,
        cipher: str = DEFAULT_CIPHER,
        legacy_over_modern: bool = False,
        key_method: str = "sha1",
        capabilities: Optional[Capabilities] = None,
    ) -> None:
        self.capabilities = capabilities or get_capabilities()
        self.crypto_lib = CryptoLib.UNAVAILABLE
        self.can_legacy = False
        self.legacy_over_modern = False
        self.key_method = key_method if key_method in KEY_METHODS else "sha1"
        self.cipher_type: Optional[str] = None
        self.key_material = KeyMaterial()
        self._set_crypto_lib(cipher)
        if legacy_over_modern:
            self.set_legacy_over_modern(True)

    @classmethod
    def from_settings(cls, settings, capabilities: Optional[Capabilities] = None) -> "Aes":
        return cls(
            cipher=settings.cipher,
            legacy_over_modern=settings.legacy_over_modern,
            key_method=settings.key_method,
            capabilities=capabilities,
        )

    def _set_crypto_lib(self, cipher: str) -> None:
        caps = self.capabilities
        self.can_legacy = caps.has_legacy_cipher and caps.legacy_cipher_usable

        if caps.has_modern_cipher:
            self.crypto_lib = CryptoLib.SSL
            self.set_cipher(cipher)
        elif self.can_legacy:
            logger.warning("Modern cipher backend missing, falling back to legacy %s", ciphers.LEGACY_CIPHER)
            self.crypto_lib = CryptoLib.MCRYPT
            self.cipher_type = ciphers.LEGACY_CIPHER
        else:
            raise LibraryUnavailableError(
                "No usable cipher backend: cryptography is missing and the legacy backend is not usable."
            )
        logger.debug("Selected crypto lib %s (legacy usable: %s)", self.crypto_lib.name, self.can_legacy)

    def get_crypto_lib(self) -> CryptoLib:
        return self.crypto_lib

    def can_crypto(self) -> CryptoLib:
        """Active backend; never UNAVAILABLE on a constructed instance."""
        return self.crypto_lib

    def set_legacy_over_modern(self, enabled: bool = True) -> "Aes":
        if enabled and not self.can_legacy:
            raise LibraryUnavailableError("The legacy cipher backend is not usable on this platform.")
        self.legacy_over_modern = enabled
        return self

    def _uses_legacy(self) -> bool:
        return self.can_legacy and (self.crypto_lib == CryptoLib.MCRYPT or self.legacy_over_modern)

    def set_keys(self, key: BytesLike, iv: BytesLike, method: Optional[str] = None) -> "Aes":
        method = method or self.key_method
        # Legacy encryption was always keyed with md5
        if method == "sha1" and (self.legacy_over_modern or self.crypto_lib != CryptoLib.SSL):
            method = "md5"
        self.key_material = KeyMaterial(key=derive(key, method), iv=derive(iv, method))
        return self

    def get_key(self) -> bytes:
        return self.key_material.key

    def get_iv(self, adjust_length: bool = True) -> bytes:
        """Return the IV, cut to the active cipher's IV length when asked.

        Shorter IVs are returned as is; the engine NUL pads them at use.
        """
        iv = self.key_material.iv
        if adjust_length and self.crypto_lib == CryptoLib.SSL and self.cipher_type:
            length = ciphers.get_spec(self.cipher_type).iv_length
            self.key_material.iv_length = length
            if len(iv) > length:
                return iv[:length]
        return iv

    def get_iv_length(self) -> Optional[int]:
        return self.key_material.iv_length

    def get_cipher_methods(self) -> Tuple[str, ...]:
        if self.crypto_lib != CryptoLib.SSL:
            return ()
        return ciphers.supported_cipher_methods()

    def set_cipher(self, name: str = DEFAULT_CIPHER) -> "Aes":
        wanted = (name or "").lower()
        if wanted not in self.get_cipher_methods():
            raise CipherUnavailableError(f"Cipher {name!r} does not exist in this cipher backend")
        self.cipher_type = wanted
        return self

    def get_cipher(self) -> Optional[str]:
        return self.cipher_type

    def _require_keys(self) -> None:
        if self.key_material.is_empty():
            raise CipherNoKeysError("You need to set KEY and IV to encrypt content.")

    def encrypt(self, data: BytesLike = "", as_base64: bool = True, force_utf8: bool = True) -> Union[str, bytes]:
        self._require_keys()
        payload = utf8_bytes(data, force=force_utf8)
        if self._uses_legacy():
            logger.warning("Encrypting with the legacy cipher backend")
            result = ciphers.legacy_encrypt_raw(self.get_key(), self.get_iv(False), payload)
        else:
            result = ciphers.encrypt_raw(self.cipher_type, self.get_key(), self.get_iv(True), payload)
        return base64url_encode(result) if as_base64 else result

    def decrypt(self, data: BytesLike, as_base64: bool = True, as_text: bool = True) -> Optional[Union[str, bytes]]:
        """Decrypt with the modern backend, or the legacy one when it is the only backend.

        Returns None when the ciphertext does not decrypt with the current
        keys and cipher. With `as_text=False` the plaintext bytes come back
        untouched; otherwise they are decoded through `to_utf8`.
        """
        self._require_keys()
        if as_base64:
            raw = base64url_decode(data)
        else:
            raw = data.encode("latin-1") if isinstance(data, str) else bytes(data)
        try:
            if self.crypto_lib == CryptoLib.MCRYPT:
                plain = ciphers.legacy_decrypt_raw(self.get_key(), self.get_iv(False), raw)
            else:
                plain = ciphers.decrypt_raw(self.cipher_type, self.get_key(), self.get_iv(True), raw)
        except ValueError as e:
            logger.debug("Decryption failed: %s", e)
            return None
        return to_utf8(plain) if as_text else plain

    def discover_cipher(self, encrypted: BytesLike, decrypted: BytesLike) -> str:
        """Find which supported cipher turns `decrypted` into `encrypted`.

        Tries every cipher with the current key material; returns the first
        match or "" (also "" when the modern backend is not active). Cost
        grows with the number of supported ciphers.
        """
        if self.crypto_lib != CryptoLib.SSL or self.key_material.is_empty():
            return ""
        as_base64 = isinstance(encrypted, str)
        payload = utf8_bytes(decrypted)
        original = self.cipher_type
        try:
            for name in self.get_cipher_methods():
                self.cipher_type = name
                try:
                    result = ciphers.encrypt_raw(name, self.get_key(), self.get_iv(True), payload)
                except ValueError as e:
                    logger.debug("discover_cipher: %s failed: %s", name, e)
                    continue
                if as_base64:
                    result = base64url_encode(result)
                if result and result == encrypted:
                    return name
        finally:
            self.cipher_type = original
        return ""
