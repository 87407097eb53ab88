"""Compression adapter over gzip, bzip2 and brotli.

Payloads are tagged with a short discriminator (`gz`, `bz2`, `br`) so a
receiver can tell which algorithm produced them. bzip2 and brotli are
optional; their absence is reported by `has_bzip2()` / `has_brotli()` and
only raises when the corresponding encoder is actually called.
"""
from __future__ import annotations
import gzip
import logging
from typing import Iterable, Optional, Tuple

from iocrypt_lib.capabilities import Capabilities, get_capabilities
from iocrypt_lib.data.strings import BytesLike, base64_decode, base64_encode
from iocrypt_lib.exceptions import FeatureUnavailableError

logger = logging.getLogger(__name__)

TYPE_NONE = "none"
TYPE_GZ = "gz"
TYPE_BZ2 = "bz2"
TYPE_BR = "br"

COMPRESSION_TYPES = (TYPE_NONE, TYPE_GZ, TYPE_BZ2, TYPE_BR)
DEFAULT_LEVEL = 9


def _raw(data: BytesLike) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def _clamp(level: int, low: int, high: int) -> int:
    return max(low, min(high, int(level)))


class Compress:
    def __init__(self, level: int = DEFAULT_LEVEL, capabilities: Optional[Capabilities] = None) -> None:
        self.capabilities = capabilities or get_capabilities()
        self.compression_level = _clamp(level, 0, 9)

    def set_compression_level(self, level: int = DEFAULT_LEVEL) -> "Compress":
        self.compression_level = _clamp(level, 0, 9)
        return self

    def get_compression_level(self) -> int:
        return self.compression_level

    def has_bzip2(self) -> bool:
        return self.capabilities.has_bzip2

    def has_brotli(self) -> bool:
        return self.capabilities.has_brotli

    def available_types(self) -> Tuple[str, ...]:
        kinds = [TYPE_GZ]
        if self.has_bzip2():
            kinds.append(TYPE_BZ2)
        if self.has_brotli():
            kinds.append(TYPE_BR)
        return tuple(kinds)

    def _level(self, level: Optional[int]) -> int:
        return self.compression_level if level is None else _clamp(level, 0, 9)

    # gzip
    def gz_encode(self, data: BytesLike, level: Optional[int] = None) -> bytes:
        # mtime=0 keeps the header stable so equal input gives equal output
        return gzip.compress(_raw(data), compresslevel=self._level(level), mtime=0)

    def gz_decode(self, data: bytes) -> bytes:
        return gzip.decompress(data)

    # bzip2
    def _bz2(self):
        if not self.has_bzip2():
            raise FeatureUnavailableError("bzip2 compression is missing on this platform")
        import bz2

        return bz2

    def bz_encode(self, data: BytesLike, level: Optional[int] = None) -> bytes:
        # bzip2 block sizes run 1..9; level 0 means "fastest" here
        return self._bz2().compress(_raw(data), compresslevel=max(1, self._level(level)))

    def bz_decode(self, data: bytes) -> bytes:
        return self._bz2().decompress(data)

    # brotli
    def _brotli(self):
        if not self.has_brotli():
            raise FeatureUnavailableError("brotli compression is missing on this platform")
        import brotli

        return brotli

    def br_encode(self, data: BytesLike, level: Optional[int] = None) -> bytes:
        return self._brotli().compress(_raw(data), quality=self._level(level))

    def br_decode(self, data: bytes) -> bytes:
        return self._brotli().decompress(data)

    # base64 conveniences
    def base64_gzencode(self, data: BytesLike, level: Optional[int] = None) -> str:
        return base64_encode(self.gz_encode(data, level))

    def base64_gzdecode(self, data: BytesLike) -> bytes:
        return self.gz_decode(base64_decode(data))

    def base64_bzencode(self, data: BytesLike, level: Optional[int] = None) -> str:
        return base64_encode(self.bz_encode(data, level))

    def base64_bzdecode(self, data: BytesLike) -> bytes:
        return self.bz_decode(base64_decode(data))

    def compress(self, data: BytesLike, kind: str = TYPE_GZ, level: Optional[int] = None) -> bytes:
        """Compress `data` with the algorithm named by the discriminator `kind`."""
        if kind == TYPE_GZ:
            return self.gz_encode(data, level)
        if kind == TYPE_BZ2:
            return self.bz_encode(data, level)
        if kind == TYPE_BR:
            return self.br_encode(data, level)
        if kind in (TYPE_NONE, None, ""):
            return _raw(data)
        raise ValueError(f"unknown compression type {kind!r}")

    def decompress(self, data: bytes, kind: str = TYPE_GZ) -> bytes:
        if kind == TYPE_GZ:
            return self.gz_decode(data)
        if kind == TYPE_BZ2:
            return self.bz_decode(data)
        if kind == TYPE_BR:
            return self.br_decode(data)
        if kind in (TYPE_NONE, None, ""):
            return bytes(data)
        raise ValueError(f"unknown compression type {kind!r}")

    def get_best_compression(
        self,
        data: BytesLike,
        kinds: Optional[Iterable[str]] = None,
        levels: Optional[Iterable[int]] = None,
    ) -> Tuple[str, int, bytes]:
        """Try every available algorithm and level; return the smallest result.

        Returns `(tag, level, payload)`. Ties keep the earliest candidate, so
        gzip at the lowest level wins when nothing compresses better.
        """
        raw = _raw(data)
        candidates = [k for k in (kinds or self.available_types()) if k in self.available_types()]
        level_list = list(levels) if levels is not None else list(range(0, 10))
        best: Optional[Tuple[str, int, bytes]] = None
        for kind in candidates:
            for level in level_list:
                payload = self.compress(raw, kind, level)
                if best is None or len(payload) < len(best[2]):
                    best = (kind, level, payload)
        if best is None:
            return TYPE_NONE, 0, raw
        logger.debug("Best compression for %d bytes: %s level %d (%d bytes)", len(raw), best[0], best[1], len(best[2]))
        return best
