"""XML document builders and parsers.

Two interchangeable backends turn a plain graph into an XML document and
back:

- `SimpleXmlBackend` uses the standard library ElementTree.
- `LxmlBackend` uses lxml; it supports CDATA sections, pretty printing and
  returns objectified trees (attribute access, `root.a.b`) when parsing.

Mapping keys become element names (numeric keys become `item`), sequence
entries become repeated `item` elements and scalars become text.
"""
from __future__ import annotations
import logging
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional

from iocrypt_lib.data.graph import NodeKind, classify
from iocrypt_lib.util import element_name, local_name

logger = logging.getLogger(__name__)

DEFAULT_ROOT = "XMLResponse"
SOAP_PREFIX = "SOAP-ENV"
SOAP_ENVELOPE_NS = "http://schemas.xmlsoap.org/soap/envelope/"
ITEM = "item"

# Characters XML 1.0 does not allow in text, even escaped
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def xml_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if value is True:
        return "true"
    if value is False:
        return "false"
    return _INVALID_XML_CHARS.sub("", str(value))


def _children(element):
    iterchildren = getattr(element, "iterchildren", None)
    items = iterchildren() if iterchildren is not None else iter(element)
    # lxml yields comments/PIs whose tag is not a string
    return [child for child in items if isinstance(child.tag, str)]


def element_to_graph(element) -> Any:
    """Convert a parsed element (ElementTree or lxml) into a plain graph.

    Namespaces are dropped from names. Repeated child names collect into a
    list; leaf elements become their text ("" when empty).
    """
    children = _children(element)
    if not children:
        return element.text if element.text is not None else ""
    result: Dict[str, Any] = {}
    repeated = set()
    for child in children:
        name = local_name(child.tag)
        value = element_to_graph(child)
        if name not in result:
            result[name] = value
        elif name in repeated:
            result[name].append(value)
        else:
            result[name] = [result[name], value]
            repeated.add(name)
    return result


def document_to_graph(root) -> Any:
    if not _children(root) and not (root.text or "").strip():
        return {}
    return element_to_graph(root)


class SimpleXmlBackend:
    name = "simple"
    declaration = '<?xml version="1.0"?>\n'

    def _append(self, parent, value: Any) -> None:
        kind = classify(value)
        if kind == NodeKind.MAPPING:
            for key, item in value.items():
                self._append(ET.SubElement(parent, element_name(key, ITEM)), item)
        elif kind == NodeKind.SEQUENCE:
            for item in value:
                self._append(ET.SubElement(parent, ITEM), item)
        else:
            parent.text = xml_text(value)

    def build(self, graph: Any, root_name: str = DEFAULT_ROOT, soap: bool = False,
              namespace: str = SOAP_PREFIX, cdata: bool = False) -> str:
        if cdata:
            logger.debug("CDATA sections need the lxml backend; writing escaped text")
        root = ET.Element(element_name(root_name, DEFAULT_ROOT))
        self._append(root, graph)
        top = root
        if soap:
            top = ET.Element(f"{namespace}:Envelope", {f"xmlns:{namespace}": SOAP_ENVELOPE_NS})
            ET.SubElement(top, f"{namespace}:Body").append(root)
        return self.declaration + ET.tostring(top, encoding="unicode") + "\n"

    def parse(self, text: str):
        try:
            return ET.fromstring(text)
        except ET.ParseError as e:
            logger.debug("SimpleXmlBackend: unparseable document: %s", e)
            return None


class LxmlBackend:
    name = "lxml"

    def __init__(self, objectify_result: bool = True) -> None:
        self.objectify_result = objectify_result

    def _append(self, parent, value: Any, cdata: bool) -> None:
        from lxml import etree

        kind = classify(value)
        if kind == NodeKind.MAPPING:
            for key, item in value.items():
                self._append(etree.SubElement(parent, element_name(key, ITEM)), item, cdata)
        elif kind == NodeKind.SEQUENCE:
            for item in value:
                self._append(etree.SubElement(parent, ITEM), item, cdata)
        else:
            text = xml_text(value)
            if cdata and text and "]]>" not in text:
                parent.text = etree.CDATA(text)
            else:
                parent.text = text

    def build(self, graph: Any, root_name: str = DEFAULT_ROOT, soap: bool = False,
              namespace: str = SOAP_PREFIX, cdata: bool = False) -> str:
        from lxml import etree

        root = etree.Element(element_name(root_name, DEFAULT_ROOT))
        self._append(root, graph, cdata)
        top = root
        if soap:
            top = etree.Element(f"{{{SOAP_ENVELOPE_NS}}}Envelope", nsmap={namespace: SOAP_ENVELOPE_NS})
            etree.SubElement(top, f"{{{SOAP_ENVELOPE_NS}}}Body").append(root)
        return etree.tostring(top, pretty_print=True, xml_declaration=True, encoding="UTF-8").decode("utf-8")

    def parse(self, text: str):
        from lxml import etree, objectify

        if self.objectify_result:
            parser = objectify.makeparser(resolve_entities=False, no_network=True)
        else:
            parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            return etree.fromstring(text.encode("utf-8"), parser)
        except (etree.XMLSyntaxError, ValueError) as e:
            logger.debug("LxmlBackend: unparseable document: %s", e)
            return None
