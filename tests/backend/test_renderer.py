import gzip
import html
import io
import json
import subprocess
import sys
from pathlib import Path

import pytest
import yaml

from iocrypt_lib.capabilities import Capabilities
from iocrypt_lib.exceptions import ErrorCode, FeatureUnavailableError
from iocrypt_lib.render.renderer import IO
from iocrypt_lib.render.writer import exit_writer

BIT_STRING = 'räksmörgås 0x1F ✓'

SOAP_RESPONSE = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<SOAP-ENV:Envelope xmlns:SOAP-ENV="http://schemas.xmlsoap.org/soap/envelope/" xmlns:ns1="urn:Api">'
    '<SOAP-ENV:Body><ns1:getPaymentMethodsResponse>'
    '<return><id>1</id><name>Card &amp; Co</name></return>'
    '<return><id>2</id><name>Invoice</name></return>'
    '</ns1:getPaymentMethodsResponse></SOAP-ENV:Body></SOAP-ENV:Envelope>'
)


def test_render_json_pretty(sample_obj):
    out = IO().render_json(sample_obj)
    assert len(out) == 170
    assert json.loads(out) == {'a': {'nextLevel': {'arrayLevel': 'part 1', 'nextLevel': {'recursiveLevel': 'yes'}}}}


def test_render_json_from_json_string(sample_arr):
    renderer = IO()
    assert renderer.render_json(json.dumps(sample_arr)) == renderer.render_json(sample_arr)


def test_render_empty_graphs():
    renderer = IO()
    assert renderer.render_json({}) == '{}'
    assert yaml.safe_load(renderer.render_yaml({})) == {}
    assert renderer.parse_xml(renderer.set_xml_simple().render_xml({}), normalize=True) == {}
    assert renderer.parse_serialized(renderer.render_serialized({})) == {}


def test_render_unicode_text():
    renderer = IO()
    assert json.loads(renderer.render_json({'s': BIT_STRING}))['s'] == BIT_STRING
    assert renderer.parse_xml(renderer.render_xml({'s': BIT_STRING}), normalize=True) == {'s': BIT_STRING}


def test_parse_json(sample_arr):
    renderer = IO()
    assert renderer.parse_json(json.dumps(sample_arr)) == sample_arr
    assert renderer.parse_json(json.dumps(sample_arr), assoc=False).b.c == 'd'
    assert renderer.parse_json('{broken') is None
    assert renderer.parse_json(sample_arr) is None


def test_render_json_compressed(sample_obj):
    renderer = IO()
    packed = renderer.render_json(sample_obj, compression='gz')
    assert isinstance(packed, bytes)
    assert gzip.decompress(packed).decode('utf-8') == renderer.render_json(sample_obj)


def test_render_bzip2_compressed(sample_arr):
    renderer = IO().set_compression_level(9)
    if not renderer.compress.has_bzip2():
        pytest.skip('bzip2 not available')
    packed = renderer.render_serialized(sample_arr, compression='bz2')
    assert renderer.parse_serialized(renderer.compress.bz_decode(packed)) == sample_arr


def test_render_per_call_level_is_validated(sample_arr):
    renderer = IO()
    assert renderer.render(sample_arr, 'json', compression='gz', compression_level=1)
    with pytest.raises(ValueError):
        renderer.render(sample_arr, 'json', compression_level=12)
    with pytest.raises(ValueError):
        renderer.render(sample_arr, 'csv')


def test_serialized_roundtrip(sample_obj):
    renderer = IO()
    first = renderer.render_serialized(sample_obj)
    assert len(first) == len(renderer.render_serialized(sample_obj))
    assert renderer.parse_serialized(first) == sample_obj
    assert not renderer.parse_serialized('fail_this')


def test_yaml_roundtrip(sample_arr):
    renderer = IO()
    out = renderer.render_yaml(sample_arr)
    assert out == 'a: b\nb:\n  c: d\n'
    assert renderer.parse_yaml(out) == sample_arr
    assert renderer.parse_yaml(out, assoc=False).b.c == 'd'
    assert renderer.parse_yaml('') is None


def test_yaml_unavailable(sample_arr):
    renderer = IO(capabilities=Capabilities(has_yaml=False))
    assert renderer.has_yaml() is False
    with pytest.raises(FeatureUnavailableError) as exc:
        renderer.render_yaml(sample_arr)
    assert exc.value.code == ErrorCode.FEATURE_UNAVAILABLE
    with pytest.raises(FeatureUnavailableError):
        renderer.parse_yaml('a: b')


def test_simple_xml(sample_obj):
    renderer = IO().set_xml_simple(True)
    xml = renderer.render_xml(sample_obj)
    root = renderer.parse_xml(xml)
    assert root.find('a/nextLevel/arrayLevel').text == 'part 1'
    assert renderer.parse_xml(xml, normalize=True) == {
        'a': {'nextLevel': {'arrayLevel': 'part 1', 'nextLevel': {'recursiveLevel': 'yes'}}}
    }


def test_xml_numeric_keys_become_items():
    renderer = IO().set_xml_simple(True)
    xml = renderer.render_xml({'list': ['x', 'y'], 'map': {0: 'zero'}})
    assert renderer.parse_xml(xml, normalize=True) == {'list': {'item': ['x', 'y']}, 'map': {'item': 'zero'}}


def test_escaped_xml_is_unescaped_once(sample_obj):
    renderer = IO().set_xml_simple(True)
    xml = renderer.render_xml(sample_obj)
    once = html.escape(xml)
    twice = html.escape(once)
    assert renderer.parse_xml(once) is not None
    assert renderer.parse_xml(twice) is None
    assert renderer.parse_xml(html.escape(twice)) is None


def test_parse_xml_rejects_non_text():
    renderer = IO()
    assert renderer.parse_xml(None) is None
    assert renderer.parse_xml({'a': 1}) is None
    assert renderer.parse_xml('   ') is None


def test_xml_library_unserializer(sample_obj):
    renderer = IO().set_xml_unserializer(True)
    if not renderer.get_has_xml_serializer():
        pytest.skip('lxml not available')
    root = renderer.parse_xml(renderer.render_xml(sample_obj))
    assert root.a.nextLevel.arrayLevel.text == 'part 1'
    assert root.a.nextLevel.nextLevel.recursiveLevel.text == 'yes'


def test_xml_cdata(sample_arr):
    renderer = IO().set_cdata(True)
    if not renderer.get_has_xml_serializer():
        pytest.skip('lxml not available')
    xml = renderer.render_xml(sample_arr)
    assert '<![CDATA[b]]>' in xml
    assert renderer.parse_xml(xml, normalize=True) == sample_arr


def test_parse_soap_response():
    graph = IO().parse_xml(SOAP_RESPONSE, normalize=True)
    methods = graph['Body']['getPaymentMethodsResponse']['return']
    assert methods == [{'id': '1', 'name': 'Card & Co'}, {'id': '2', 'name': 'Invoice'}]


@pytest.mark.parametrize('simple', [True, False])
def test_render_soap_envelope(simple):
    renderer = IO().set_soap_xml(True).set_xml_simple(simple)
    xml = renderer.render_xml({'x': '1'}, root_name='getMethodName')
    assert 'SOAP-ENV:Envelope' in xml
    assert renderer.parse_xml(xml, normalize=True) == {'Body': {'getMethodName': {'x': '1'}}}


def test_die_after_render_returns_response(sample_arr):
    renderer = IO()
    response = renderer.render_json(sample_arr, die_after_render=True)
    assert response.headers['content-type'] == 'application/json'
    assert response.body == renderer.render_json(sample_arr).encode('utf-8')


def test_die_after_render_custom_writer(sample_arr):
    calls = []
    renderer = IO(terminal_writer=lambda body, ct, tag: calls.append((body, ct, tag)) or 'done')
    assert renderer.render_yaml(sample_arr, die_after_render=True, compression='gz') == 'done'
    body, content_type, tag = calls[0]
    assert content_type == 'application/x-yaml'
    assert tag == 'gz'
    assert yaml.safe_load(gzip.decompress(body)) == sample_arr


def test_die_after_render_exit_writer(sample_arr):
    stream = io.BytesIO()
    renderer = IO(terminal_writer=exit_writer(stream))
    with pytest.raises(SystemExit):
        renderer.render_xml(sample_arr, die_after_render=True)
    assert stream.getvalue().startswith(b'Content-Type: application/xml\r\n\r\n<?xml')


def test_die_after_render_compressed_response_keeps_content_type(sample_arr):
    renderer = IO()
    response = renderer.render_json(sample_arr, die_after_render=True, compression='gz')
    assert response.headers['content-type'] == 'application/json'
    assert response.headers['content-encoding'] == 'gzip'
    assert gzip.decompress(response.body) == renderer.render_json(sample_arr).encode('utf-8')


def test_package_imports_without_yaml():
    # Block PyYAML in a fresh interpreter; rendering other formats still works
    code = '\n'.join([
        'import sys',
        'class Block:',
        '    def find_spec(self, name, path=None, target=None):',
        '        if name == "yaml" or name.startswith("yaml."):',
        '            raise ModuleNotFoundError(name)',
        '        return None',
        'sys.meta_path.insert(0, Block())',
        'import iocrypt_lib',
        'from iocrypt_lib.exceptions import FeatureUnavailableError',
        'io = iocrypt_lib.IO(capabilities=iocrypt_lib.Capabilities.probe())',
        'assert io.has_yaml() is False',
        'assert io.render_json({"a": "b"})',
        'try:',
        '    io.render_yaml({"a": "b"})',
        'except FeatureUnavailableError:',
        '    pass',
        'else:',
        '    raise AssertionError("yaml rendered without PyYAML")',
        'assert "yaml" not in sys.modules',
    ])
    repo_root = Path(__file__).resolve().parents[2]
    result = subprocess.run([sys.executable, '-c', code], cwd=str(repo_root), capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
