import pytest

from iocrypt_lib.capabilities import Capabilities, get_capabilities


def test_probe_detects_installed_libraries():
    caps = Capabilities.probe()
    # cryptography, PyYAML and lxml are hard dependencies
    assert caps.has_modern_cipher is True
    assert caps.has_yaml is True
    assert caps.has_xml_library is True


def test_capabilities_are_cached():
    assert get_capabilities() is get_capabilities()


def test_capabilities_are_frozen():
    caps = Capabilities()
    with pytest.raises(AttributeError):
        caps.has_yaml = False
