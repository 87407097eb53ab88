"""Multi-format renderer.

`IO` turns object graphs into JSON, XML, YAML or pickle output, optionally
compressed, and parses those formats back. Instance settings (compression
level, XML backend preferences, CDATA, SOAP wrapping) act as defaults for
every call; per-call options override them.

Instances are not thread-safe: use one per concurrent caller.
"""
from __future__ import annotations
import html
import logging
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from iocrypt_lib.capabilities import Capabilities, get_capabilities
from iocrypt_lib.data import graph
from iocrypt_lib.data.compress import TYPE_NONE, Compress
from iocrypt_lib.data.strings import to_utf8
from iocrypt_lib.exceptions import FeatureUnavailableError
from iocrypt_lib.render.serializer import (
    JSONSerializer,
    PickleSerializer,
    XMLSerializer,
    YAMLSerializer,
    xml_backend,
)
from iocrypt_lib.render.writer import TerminalWriter, response_writer
from iocrypt_lib.render.xml import DEFAULT_ROOT, SOAP_PREFIX, document_to_graph

logger = logging.getLogger(__name__)

FORMAT_JSON = "json"
FORMAT_XML = "xml"
FORMAT_YAML = "yaml"
FORMAT_SERIALIZE = "serialize"

CompressionKind = Literal["none", "gz", "bz2", "br"]


class RenderOptions(BaseModel):
    """Per-call rendering options; None means "use the instance default"."""

    compression: CompressionKind = TYPE_NONE
    compression_level: Optional[int] = Field(default=None, ge=0, le=9)
    xml_simple: Optional[bool] = None
    cdata: Optional[bool] = None
    soap_xml: Optional[bool] = None
    root_name: str = DEFAULT_ROOT
    namespace: str = SOAP_PREFIX


class IO:
    def __init__(
        self,
        compression_level: int = 5,
        xml_simple: bool = False,
        cdata: bool = False,
        xml_unserializer: bool = False,
        soap_xml: bool = False,
        capabilities: Optional[Capabilities] = None,
        terminal_writer: Optional[TerminalWriter] = None,
    ) -> None:
        self.capabilities = capabilities or get_capabilities()
        self.compress = Compress(level=compression_level, capabilities=self.capabilities)
        self.xml_simple = xml_simple
        self.cdata = cdata
        self.xml_unserializer = xml_unserializer
        self.soap_xml = soap_xml
        self.terminal_writer = terminal_writer or response_writer

    @classmethod
    def from_settings(cls, settings, capabilities: Optional[Capabilities] = None,
                      terminal_writer: Optional[TerminalWriter] = None) -> "IO":
        return cls(
            compression_level=settings.compression_level,
            xml_simple=settings.xml_simple,
            cdata=settings.cdata,
            xml_unserializer=settings.xml_unserializer,
            soap_xml=settings.soap_xml,
            capabilities=capabilities,
            terminal_writer=terminal_writer,
        )

    # instance defaults
    def set_compression_level(self, level: int = 9) -> "IO":
        self.compress.set_compression_level(level)
        return self

    def get_compression_level(self) -> int:
        return self.compress.get_compression_level()

    def set_xml_simple(self, enabled: bool = True) -> "IO":
        self.xml_simple = enabled
        return self

    def set_cdata(self, enabled: bool = True) -> "IO":
        self.cdata = enabled
        return self

    def set_xml_unserializer(self, enabled: bool = True) -> "IO":
        self.xml_unserializer = enabled
        return self

    def set_soap_xml(self, enabled: bool = True) -> "IO":
        self.soap_xml = enabled
        return self

    def get_has_xml_serializer(self) -> bool:
        return self.capabilities.has_xml_library

    def has_yaml(self) -> bool:
        return self.capabilities.has_yaml

    def _require_yaml(self) -> None:
        if not self.has_yaml():
            raise FeatureUnavailableError("YAML support is not available on this platform")

    # rendering
    def render(self, data: Any, fmt: str = FORMAT_JSON, die_after_render: bool = False,
               compression: str = TYPE_NONE, **options) -> Any:
        """Render `data` in format `fmt` ("json", "xml", "yaml" or "serialize")."""
        opts = RenderOptions(compression=compression, **options)
        renderers = {
            FORMAT_JSON: self._render_json,
            FORMAT_XML: self._render_xml,
            FORMAT_YAML: self._render_yaml,
            FORMAT_SERIALIZE: self._render_serialized,
        }
        if fmt not in renderers:
            raise ValueError(f"unknown render format {fmt!r}")
        return renderers[fmt](data, opts, die_after_render)

    def render_json(self, data: Any, die_after_render: bool = False, compression: str = TYPE_NONE) -> Any:
        return self.render(data, FORMAT_JSON, die_after_render, compression)

    def render_serialized(self, data: Any, die_after_render: bool = False, compression: str = TYPE_NONE) -> Any:
        return self.render(data, FORMAT_SERIALIZE, die_after_render, compression)

    def render_xml(self, data: Any, die_after_render: bool = False, compression: str = TYPE_NONE,
                   root_name: str = DEFAULT_ROOT, namespace: str = SOAP_PREFIX) -> Any:
        return self.render(data, FORMAT_XML, die_after_render, compression,
                           root_name=root_name, namespace=namespace)

    def render_yaml(self, data: Any, die_after_render: bool = False, compression: str = TYPE_NONE) -> Any:
        return self.render(data, FORMAT_YAML, die_after_render, compression)

    def _render_json(self, data: Any, opts: RenderOptions, die: bool) -> Any:
        if isinstance(data, (str, bytes, bytearray)):
            # Already encoded JSON gets decoded and rendered again
            decoded = self.parse_json(data)
            if decoded is not None:
                data = decoded
        serializer = JSONSerializer()
        payload = serializer.dump(graph.normalize(data, stringify_other=True))
        return self._finish(payload, serializer.content_type, opts, die)

    def _render_serialized(self, data: Any, opts: RenderOptions, die: bool) -> Any:
        serializer = PickleSerializer()
        return self._finish(serializer.dump(data), serializer.content_type, opts, die)

    def _render_xml(self, data: Any, opts: RenderOptions, die: bool) -> Any:
        simple = self.xml_simple if opts.xml_simple is None else opts.xml_simple
        use_library = not simple and self.capabilities.has_xml_library
        serializer = XMLSerializer(
            backend=xml_backend(use_library),
            root_name=opts.root_name,
            soap=self.soap_xml if opts.soap_xml is None else opts.soap_xml,
            namespace=opts.namespace,
            cdata=self.cdata if opts.cdata is None else opts.cdata,
        )
        payload = serializer.dump(graph.normalize(data, stringify_other=True))
        return self._finish(payload, serializer.content_type, opts, die)

    def _render_yaml(self, data: Any, opts: RenderOptions, die: bool) -> Any:
        self._require_yaml()
        serializer = YAMLSerializer()
        payload = serializer.dump(graph.normalize(data, stringify_other=True))
        return self._finish(payload, serializer.content_type, opts, die)

    def _finish(self, payload: Union[str, bytes], content_type: str, opts: RenderOptions, die: bool) -> Any:
        tag = opts.compression
        if tag != TYPE_NONE:
            payload = self.compress.compress(payload, tag, opts.compression_level)
        if not die:
            return payload
        body = payload.encode("utf-8") if isinstance(payload, str) else payload
        logger.debug("Handing %d bytes of %s to terminal writer", len(body), content_type)
        return self.terminal_writer(body, content_type, tag if tag != TYPE_NONE else None)

    # parsing
    def parse_json(self, data: Any, assoc: bool = True) -> Any:
        """Decode JSON text; None for non-text or malformed input.

        With `assoc=False` mappings come back as attribute-access objects.
        """
        decoded = JSONSerializer().load(data)
        if decoded is None or assoc:
            return decoded
        return graph.to_object(decoded)

    def parse_serialized(self, data: Any) -> Any:
        return PickleSerializer().load(data)

    def parse_yaml(self, data: Any, assoc: bool = True) -> Any:
        self._require_yaml()
        decoded = YAMLSerializer().load(data)
        if decoded is None or assoc:
            return decoded
        return graph.to_object(decoded)

    def parse_xml(self, data: Any, normalize: bool = False) -> Any:
        """Parse an XML document.

        Input that arrives HTML-entity escaped (`&lt;root&gt;...`) is
        unescaped once before parsing; anything still unparseable gives None.
        Returns the root element, or a plain graph when `normalize` is set.
        """
        if not isinstance(data, (str, bytes, bytearray)):
            return None
        text = to_utf8(data).strip()
        if text and not text.startswith("<") and "&lt;" in text:
            text = html.unescape(text).strip()
        if not text:
            return None

        use_library = self.xml_unserializer and not self.xml_simple and self.capabilities.has_xml_library
        root = XMLSerializer(backend=xml_backend(use_library)).load(text)
        if root is None:
            return None
        if normalize:
            return document_to_graph(root)
        return root
