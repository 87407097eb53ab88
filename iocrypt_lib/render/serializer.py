from typing import Any, Optional, Protocol
import json
import logging
import pickle

from iocrypt_lib.render.xml import DEFAULT_ROOT, SOAP_PREFIX, LxmlBackend, SimpleXmlBackend

logger = logging.getLogger(__name__)


class Serializer(Protocol):
    """Encode/decode plain graphs for one output format.

    `dump` returns text (or bytes for binary formats); `load` returns None
    for input it cannot decode instead of raising.
    """

    content_type: str

    def dump(self, value: Any) -> Any: ...

    def load(self, data: Any) -> Any: ...


class PickleSerializer:
    """Native serializer using pickle (binary).

    Values are written as-is, without graph normalization. Only load
    payloads you produced yourself: unpickling runs arbitrary code.
    """

    content_type = "application/octet-stream"
    protocol = pickle.HIGHEST_PROTOCOL

    def dump(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)

    def load(self, data: Any) -> Any:
        raw = data.encode("latin-1") if isinstance(data, str) else data
        try:
            return pickle.loads(raw)
        except Exception as e:
            # pickle raises a wide range of errors on garbage input
            logger.debug("PickleSerializer: undecodable payload: %s", e)
            return None


class JSONSerializer:
    """Serializer using pretty-printed JSON (4 space indent)."""

    content_type = "application/json"

    def dump(self, value: Any) -> str:
        return json.dumps(value, indent=4, default=str)

    def load(self, data: Any) -> Any:
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8", errors="replace")
        if not isinstance(data, str):
            return None
        try:
            return json.loads(data)
        except ValueError as e:
            logger.debug("JSONSerializer: malformed JSON: %s", e)
            return None


class YAMLSerializer:
    """Serializer using YAML (text) through PyYAML's safe dumper/loader.

    PyYAML is optional; it is imported on first use so the package loads
    without it.
    """

    content_type = "application/x-yaml"

    def dump(self, value: Any) -> str:
        import yaml

        return yaml.safe_dump(value, sort_keys=False, allow_unicode=True)

    def load(self, data: Any) -> Any:
        import yaml

        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8", errors="replace")
        if not isinstance(data, str) or not data.strip():
            return None
        try:
            return yaml.safe_load(data)
        except yaml.YAMLError as e:
            logger.debug("YAMLSerializer: malformed YAML: %s", e)
            return None


class XMLSerializer:
    """Serializer using one of the XML backends.

    `load` returns the parsed root element (None when unparseable); turning
    it into a plain graph is left to the caller.
    """

    content_type = "application/xml"

    def __init__(
        self,
        backend: Optional[Any] = None,
        root_name: str = DEFAULT_ROOT,
        soap: bool = False,
        namespace: str = SOAP_PREFIX,
        cdata: bool = False,
    ) -> None:
        self.backend = backend or SimpleXmlBackend()
        self.root_name = root_name
        self.soap = soap
        self.namespace = namespace
        self.cdata = cdata

    def dump(self, value: Any) -> str:
        return self.backend.build(value, self.root_name, self.soap, self.namespace, self.cdata)

    def load(self, data: Any) -> Any:
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8", errors="replace")
        if not isinstance(data, str) or not data.strip():
            return None
        return self.backend.parse(data.strip())


def xml_backend(use_library: bool, objectify_result: bool = True):
    return LxmlBackend(objectify_result) if use_library else SimpleXmlBackend()
