import os

import pytest

from iocrypt_lib.capabilities import Capabilities
from iocrypt_lib.data.compress import TYPE_BR, TYPE_BZ2, TYPE_GZ, TYPE_NONE, Compress
from iocrypt_lib.exceptions import ErrorCode, FeatureUnavailableError

TEXT = b'Hello World. ' * 64


def test_gzip_roundtrip_every_level():
    c = Compress()
    for level in range(0, 10):
        packed = c.gz_encode(TEXT, level)
        assert c.gz_decode(packed) == TEXT


def test_gzip_output_is_stable():
    c = Compress()
    assert c.gz_encode(TEXT) == c.gz_encode(TEXT)


def test_gzip_accepts_text_and_random_bytes():
    c = Compress()
    assert c.gz_decode(c.gz_encode('räksmörgås')) == 'räksmörgås'.encode('utf-8')
    blob = os.urandom(1024)
    assert c.gz_decode(c.gz_encode(blob)) == blob


def test_bzip2_roundtrip_every_level():
    c = Compress()
    if not c.has_bzip2():
        pytest.skip('bzip2 not available')
    for level in range(0, 10):
        assert c.bz_decode(c.bz_encode(TEXT, level)) == TEXT


def test_brotli_roundtrip():
    c = Compress()
    if not c.has_brotli():
        pytest.skip('brotli not available')
    for level in (0, 5, 9):
        assert c.br_decode(c.br_encode(TEXT, level)) == TEXT


def test_missing_bzip2_raises_feature_unavailable():
    c = Compress(capabilities=Capabilities(has_bzip2=False))
    assert c.has_bzip2() is False
    assert TYPE_BZ2 not in c.available_types()
    with pytest.raises(FeatureUnavailableError) as exc:
        c.bz_encode(TEXT)
    assert exc.value.code == ErrorCode.FEATURE_UNAVAILABLE


def test_missing_brotli_raises_feature_unavailable():
    c = Compress(capabilities=Capabilities(has_brotli=False))
    with pytest.raises(FeatureUnavailableError):
        c.compress(TEXT, TYPE_BR)


def test_base64_helpers():
    c = Compress()
    encoded = c.base64_gzencode(TEXT)
    assert isinstance(encoded, str)
    assert c.base64_gzdecode(encoded) == TEXT
    if c.has_bzip2():
        assert c.base64_bzdecode(c.base64_bzencode(TEXT)) == TEXT


def test_compress_dispatch_by_tag():
    c = Compress(level=1)
    for kind in c.available_types():
        assert c.decompress(c.compress(TEXT, kind), kind) == TEXT
    assert c.compress(TEXT, TYPE_NONE) == TEXT
    with pytest.raises(ValueError):
        c.compress(TEXT, 'zip')
    with pytest.raises(ValueError):
        c.decompress(TEXT, 'zip')


def test_compression_level_is_clamped():
    c = Compress()
    assert c.get_compression_level() == 9
    assert c.set_compression_level(3) is c
    assert c.get_compression_level() == 3
    c.set_compression_level(42)
    assert c.get_compression_level() == 9
    c.set_compression_level(-1)
    assert c.get_compression_level() == 0


def test_best_compression_is_smallest_candidate():
    c = Compress()
    data = b'a' * 10000
    kind, level, payload = c.get_best_compression(data)
    assert kind in c.available_types()
    assert 0 <= level <= 9
    assert c.decompress(payload, kind) == data
    assert len(payload) <= len(c.gz_encode(data, 9))


def test_best_compression_restricted_to_gzip():
    c = Compress()
    kind, level, payload = c.get_best_compression(TEXT, kinds=[TYPE_GZ], levels=[1, 9])
    assert kind == TYPE_GZ
    assert level in (1, 9)
    assert c.gz_decode(payload) == TEXT


def test_best_compression_without_candidates_returns_raw():
    c = Compress(capabilities=Capabilities(has_bzip2=False))
    assert c.get_best_compression(TEXT, kinds=[TYPE_BZ2]) == (TYPE_NONE, 0, TEXT)
