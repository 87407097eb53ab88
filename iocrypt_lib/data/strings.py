"""String helpers shared by the rendering and cipher code.

base64url framing (RFC 4648 section 5, padding stripped) and UTF-8
normalization of text or raw byte strings.
"""
from __future__ import annotations
import base64
import binascii
import logging
from typing import Union

logger = logging.getLogger(__name__)

BytesLike = Union[str, bytes, bytearray]


def _as_bytes(data: BytesLike) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def to_utf8(value: BytesLike) -> str:
    """Return `value` as text, decoding bytes as UTF-8 with an ISO-8859-1 fallback.

    The fallback maps every byte to a code point, so arbitrary binary data
    always yields valid text.
    """
    if isinstance(value, str):
        return value
    raw = bytes(value)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def utf8_bytes(value: BytesLike, force: bool = True) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if force:
        return to_utf8(value).encode("utf-8")
    return bytes(value)


def base64url_encode(data: BytesLike) -> str:
    return base64.urlsafe_b64encode(_as_bytes(data)).rstrip(b"=").decode("ascii")


def base64url_decode(data: BytesLike) -> bytes:
    """Decode base64url text, restoring stripped padding. Returns b"" on garbage."""
    raw = _as_bytes(data).strip()
    raw += b"=" * (-len(raw) % 4)
    try:
        return base64.urlsafe_b64decode(raw)
    except (binascii.Error, ValueError):
        logger.debug("base64url_decode: undecodable input of %d bytes", len(raw))
        return b""


def base64_encode(data: BytesLike) -> str:
    return base64.b64encode(_as_bytes(data)).decode("ascii")


def base64_decode(data: BytesLike) -> bytes:
    try:
        return base64.b64decode(_as_bytes(data), validate=False)
    except (binascii.Error, ValueError):
        logger.debug("base64_decode: undecodable input")
        return b""
