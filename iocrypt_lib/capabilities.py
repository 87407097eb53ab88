"""Runtime capability probe.

Optional libraries are detected once and exposed as a frozen value that the
components consume. Tests inject their own `Capabilities` to simulate a
runtime with missing features.
"""
from __future__ import annotations
import importlib.util
import logging
from dataclasses import dataclass
from functools import lru_cache

logger = logging.getLogger(__name__)


def _has_module(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def _legacy_cipher_self_test() -> bool:
    # pycryptodome may be importable but built without the AES extension
    try:
        from Crypto.Cipher import AES

        AES.new(b"\0" * 32, AES.MODE_CBC, iv=b"\0" * 16).encrypt(b"\0" * 16)
    except Exception as e:
        logger.debug("Legacy cipher self test failed: %s", e)
        return False
    return True


@dataclass(frozen=True)
class Capabilities:
    has_modern_cipher: bool = True
    has_legacy_cipher: bool = True
    legacy_cipher_usable: bool = True
    has_bzip2: bool = True
    has_brotli: bool = True
    has_yaml: bool = True
    has_xml_library: bool = True

    @classmethod
    def probe(cls) -> "Capabilities":
        has_legacy = _has_module("Crypto.Cipher")
        caps = cls(
            has_modern_cipher=_has_module("cryptography.hazmat.primitives.ciphers"),
            has_legacy_cipher=has_legacy,
            legacy_cipher_usable=has_legacy and _legacy_cipher_self_test(),
            has_bzip2=_has_module("bz2") and _has_module("_bz2"),
            has_brotli=_has_module("brotli"),
            has_yaml=_has_module("yaml"),
            has_xml_library=_has_module("lxml.etree"),
        )
        logger.debug("Probed capabilities: %s", caps)
        return caps


@lru_cache(maxsize=1)
def get_capabilities() -> Capabilities:
    """Return the process-wide probed capabilities (probed on first use)."""
    return Capabilities.probe()
