"""Cipher registry and raw encrypt/decrypt engines.

The modern engine wraps `cryptography` and exposes OpenSSL style cipher
names (`aes-256-cbc`, `camellia-128-ecb`, `chacha20`...). Key and IV
material is fitted the way OpenSSL's raw interface does it: NUL padded when
short, truncated when long. Block modes use PKCS#7 padding.

The legacy engine wraps pycryptodome and reproduces the old mcrypt
behaviour: AES-256-CBC with zero-byte padding.
"""
from __future__ import annotations
import importlib
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

LEGACY_CIPHER = "aes-256-cbc"
LEGACY_KEY_SIZE = 32
LEGACY_BLOCK_SIZE = 16


@dataclass(frozen=True)
class CipherSpec:
    name: str
    algorithm: Callable[..., object]
    mode: Optional[Callable[[bytes], object]]
    key_size: int
    iv_length: int
    padded: bool
    nonce_algorithm: bool = False

    def build(self, key: bytes, iv: bytes):
        from cryptography.hazmat.primitives.ciphers import Cipher

        key = fit(key, self.key_size)
        iv = fit(iv, self.iv_length)
        if self.nonce_algorithm:
            return Cipher(self.algorithm(key, iv), mode=None)
        mode = self.mode(iv) if self.mode is not None else None
        return Cipher(self.algorithm(key), mode)


def fit(material: bytes, size: int) -> bytes:
    """Truncate or NUL pad `material` to exactly `size` bytes."""
    if len(material) >= size:
        return material[:size]
    return material + b"\0" * (size - len(material))


def _cipher_component(kind: str, name: str):
    """Find `name` in cryptography's `decrepit` ciphers package, then in `primitives`.

    Older releases only have the primitives location; newer ones moved the
    legacy modes and algorithms to `decrepit`. None when neither has it.
    """
    for package in ("cryptography.hazmat.decrepit.ciphers", "cryptography.hazmat.primitives.ciphers"):
        try:
            module = importlib.import_module(f"{package}.{kind}")
        except ImportError:
            continue
        found = getattr(module, name, None)
        if found is not None:
            return found
    return None


@lru_cache(maxsize=1)
def _registry() -> Dict[str, CipherSpec]:
    from cryptography.hazmat.primitives.ciphers import algorithms, modes

    specs: Dict[str, CipherSpec] = {}

    def add(name, algorithm, mode, key_size, iv_length, padded, nonce_algorithm=False):
        specs[name] = CipherSpec(name, algorithm, mode, key_size, iv_length, padded, nonce_algorithm)

    block_modes = [
        ("cbc", modes.CBC, 16, True),
        ("ecb", lambda _iv: modes.ECB(), 0, True),
        ("cfb", _cipher_component("modes", "CFB"), 16, False),
        ("cfb8", _cipher_component("modes", "CFB8"), 16, False),
        ("ofb", _cipher_component("modes", "OFB"), 16, False),
        ("ctr", modes.CTR, 16, False),
    ]
    block_modes = [entry for entry in block_modes if entry[1] is not None]
    all_modes = ("cbc", "ecb", "cfb", "cfb8", "ofb", "ctr")
    families = [("aes", algorithms.AES, (128, 192, 256), all_modes)]
    camellia = _cipher_component("algorithms", "Camellia")
    if camellia is not None:
        families.append(("camellia", camellia, (128, 192, 256), ("cbc", "ecb", "cfb", "ofb")))
    if getattr(algorithms, "SM4", None) is not None:
        families.append(("sm4", algorithms.SM4, (None,), ("cbc", "ecb", "cfb", "ofb", "ctr")))
    for family, algorithm, sizes, suffixes in families:
        for bits in sizes:
            prefix = f"{family}-{bits}" if bits else family
            for suffix, mode, iv_length, padded in block_modes:
                if suffix in suffixes:
                    add(f"{prefix}-{suffix}", algorithm, mode, (bits or 128) // 8, iv_length, padded)

    add("chacha20", algorithms.ChaCha20, None, 32, 16, False, nonce_algorithm=True)
    return specs


def _probe(spec: CipherSpec) -> bool:
    from cryptography.exceptions import UnsupportedAlgorithm

    try:
        spec.build(b"\0" * spec.key_size, b"\0" * spec.iv_length).encryptor()
    except (UnsupportedAlgorithm, ValueError, TypeError) as e:
        logger.debug("Cipher %s unsupported by this OpenSSL build: %s", spec.name, e)
        return False
    return True


@lru_cache(maxsize=1)
def supported_cipher_methods() -> Tuple[str, ...]:
    """Sorted lower-case names of every cipher the installed OpenSSL accepts."""
    return tuple(sorted(name for name, spec in _registry().items() if _probe(spec)))


def get_spec(name: str) -> CipherSpec:
    spec = _registry().get(name.lower())
    if spec is None:
        raise KeyError(name)
    return spec


def encrypt_raw(name: str, key: bytes, iv: bytes, data: bytes) -> bytes:
    from cryptography.hazmat.primitives import padding

    spec = get_spec(name)
    if spec.padded:
        padder = padding.PKCS7(128).padder()
        data = padder.update(data) + padder.finalize()
    encryptor = spec.build(key, iv).encryptor()
    return encryptor.update(data) + encryptor.finalize()


def decrypt_raw(name: str, key: bytes, iv: bytes, data: bytes) -> bytes:
    """Reverse `encrypt_raw`. Raises ValueError on corrupt input or padding."""
    from cryptography.hazmat.primitives import padding

    spec = get_spec(name)
    decryptor = spec.build(key, iv).decryptor()
    plain = decryptor.update(data) + decryptor.finalize()
    if spec.padded:
        unpadder = padding.PKCS7(128).unpadder()
        plain = unpadder.update(plain) + unpadder.finalize()
    return plain


def legacy_encrypt_raw(key: bytes, iv: bytes, data: bytes) -> bytes:
    from Crypto.Cipher import AES

    remainder = len(data) % LEGACY_BLOCK_SIZE
    if remainder or not data:
        data += b"\0" * (LEGACY_BLOCK_SIZE - remainder)
    cipher = AES.new(fit(key, LEGACY_KEY_SIZE), AES.MODE_CBC, iv=fit(iv, LEGACY_BLOCK_SIZE))
    return cipher.encrypt(data)


def legacy_decrypt_raw(key: bytes, iv: bytes, data: bytes) -> bytes:
    """Zero padding is not reversible for payloads ending in NUL bytes."""
    from Crypto.Cipher import AES

    if not data or len(data) % LEGACY_BLOCK_SIZE:
        raise ValueError("ciphertext is not a whole number of blocks")
    cipher = AES.new(fit(key, LEGACY_KEY_SIZE), AES.MODE_CBC, iv=fit(iv, LEGACY_BLOCK_SIZE))
    return cipher.decrypt(data).rstrip(b"\0")
