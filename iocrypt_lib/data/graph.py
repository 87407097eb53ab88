"""Graph normalization.

Converts between arbitrary Python object graphs and plain graphs made of
scalars, string-keyed dicts and lists. These functions are best effort: they
never raise on odd input, values that cannot be converted are passed through
unchanged. Cyclic structures are not detected.
"""
from __future__ import annotations
import json
import logging
import types
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Collection, Dict, List, Mapping, Union

from iocrypt_lib.data.strings import to_utf8

logger = logging.getLogger(__name__)

Scalar = Union[None, bool, int, float, str, bytes]
Graph = Union[Scalar, Dict[str, Any], List[Any]]


class NodeKind(Enum):
    SCALAR = "scalar"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    OBJECT = "object"
    OTHER = "other"


_OPAQUE_TYPES = (type, types.ModuleType, types.FunctionType, types.BuiltinFunctionType, types.MethodType, Enum)


def classify(value: Any) -> NodeKind:
    if value is None or isinstance(value, (bool, int, float, str, bytes, bytearray)):
        return NodeKind.SCALAR
    if isinstance(value, Mapping):
        return NodeKind.MAPPING
    if isinstance(value, (list, tuple, set, frozenset)):
        return NodeKind.SEQUENCE
    if isinstance(value, _OPAQUE_TYPES):
        return NodeKind.OTHER
    if callable(getattr(value, "model_dump", None)):
        return NodeKind.OBJECT
    if is_dataclass(value) or hasattr(value, "__dict__"):
        return NodeKind.OBJECT
    return NodeKind.OTHER


def object_fields(obj: Any) -> Dict[str, Any]:
    """Return the fields an object exposes publicly.

    pydantic models use `model_dump()`, dataclasses their declared fields,
    anything else its instance attributes minus underscore-prefixed names.
    """
    dump = getattr(obj, "model_dump", None)
    if callable(dump):
        return dict(dump())
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in fields(obj)}
    try:
        attrs = vars(obj)
    except TypeError:
        return {}
    return {k: v for k, v in attrs.items() if not str(k).startswith("_")}


def _json_default(obj: Any) -> Any:
    kind = classify(obj)
    if kind == NodeKind.OBJECT:
        return object_fields(obj)
    if kind == NodeKind.SEQUENCE:
        return list(obj)
    raise TypeError(f"{type(obj).__name__} is not JSON representable")


def _graph_key(key: Any) -> str:
    # Same key coercion json.dumps applies
    if isinstance(key, str):
        return key
    if key is True:
        return "true"
    if key is False:
        return "false"
    if key is None:
        return "null"
    if isinstance(key, bytes):
        return to_utf8(key)
    return str(key)


def _structural_graph(value: Any) -> Any:
    kind = classify(value)
    if kind == NodeKind.MAPPING:
        return {_graph_key(k): _structural_graph(v) for k, v in value.items()}
    if kind == NodeKind.SEQUENCE:
        return [_structural_graph(v) for v in value]
    if kind == NodeKind.OBJECT:
        return {_graph_key(k): _structural_graph(v) for k, v in object_fields(value).items()}
    return value


def to_graph(value: Any, use_json: bool = True) -> Any:
    """Convert objects, mappings and sequences into a plain graph.

    The JSON encode/decode round trip is used as a fast path; anything JSON
    cannot carry (bytes, datetimes, non-scalar keys...) falls back to a
    structural copy which leaves such leaves untouched.
    """
    if classify(value) in (NodeKind.SCALAR, NodeKind.OTHER):
        return value
    if use_json:
        try:
            return json.loads(json.dumps(value, default=_json_default))
        except (TypeError, ValueError) as e:
            logger.debug("to_graph: JSON fast path failed (%s), using structural copy", e)
    return _structural_graph(value)


def _flatten(value: Any, skip_keys: Collection[Any]) -> Any:
    kind = classify(value)
    if kind == NodeKind.OBJECT:
        value = object_fields(value)
        kind = NodeKind.MAPPING
    if kind == NodeKind.SEQUENCE:
        return [_flatten(v, skip_keys) for v in value]
    if kind != NodeKind.MAPPING:
        return value
    result: Dict[Any, Any] = {}
    for key, item in value.items():
        if classify(item) in (NodeKind.MAPPING, NodeKind.SEQUENCE, NodeKind.OBJECT):
            item = _flatten(item, skip_keys)
        try:
            skipped = key in skip_keys
        except TypeError:
            skipped = False
        if skipped:
            continue
        result[key] = item
    return result


def flatten(value: Any, skip_keys: Collection[Any] = ()) -> Any:
    """Recursively turn objects into dicts, dropping any key found in `skip_keys`.

    Children are converted before the skip test runs at the current level,
    and the test is applied at every depth. A top-level sequence becomes a
    mapping keyed by position (`[]` gives `{}`); nested sequences stay
    lists. Non-container input comes back unchanged.
    """
    if classify(value) == NodeKind.SEQUENCE:
        value = dict(enumerate(value))
    return _flatten(value, skip_keys)


def _namespace_hook(pairs: Dict[str, Any]) -> types.SimpleNamespace:
    return types.SimpleNamespace(**pairs)


def _structural_object(value: Any) -> Any:
    kind = classify(value)
    if kind == NodeKind.OBJECT:
        value = object_fields(value)
        kind = NodeKind.MAPPING
    if kind == NodeKind.MAPPING:
        return types.SimpleNamespace(**{_graph_key(k): _structural_object(v) for k, v in value.items()})
    if kind == NodeKind.SEQUENCE:
        return [_structural_object(v) for v in value]
    return value


def to_object(value: Any, use_json: bool = True) -> Any:
    """Repair a (partially) deserialized graph into attribute-access objects.

    Mappings become `SimpleNamespace` instances at every depth so callers can
    write `obj.a.b` regardless of how the data was produced.
    """
    if classify(value) in (NodeKind.SCALAR, NodeKind.OTHER):
        return value
    if use_json:
        try:
            return json.loads(json.dumps(value, default=_json_default), object_hook=_namespace_hook)
        except (TypeError, ValueError) as e:
            logger.debug("to_object: JSON fast path failed (%s), using structural copy", e)
    return _structural_object(value)


def utf8_graph(value: Any, stringify_other: bool = False) -> Any:
    """Coerce every text leaf and key of a plain graph to valid UTF-8 `str`.

    With `stringify_other`, leaves no text format can carry (datetimes,
    decimals, enum members...) are replaced by their `str()`.
    """
    kind = classify(value)
    if kind == NodeKind.MAPPING:
        return {_graph_key(k): utf8_graph(v, stringify_other) for k, v in value.items()}
    if kind == NodeKind.SEQUENCE:
        return [utf8_graph(v, stringify_other) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return to_utf8(value)
    if stringify_other and kind != NodeKind.SCALAR:
        return str(value)
    return value


def normalize(value: Any, stringify_other: bool = False) -> Any:
    """Plain, UTF-8 safe graph used by the text renderers."""
    return utf8_graph(to_graph(value), stringify_other)
