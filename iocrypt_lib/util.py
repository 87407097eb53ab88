import re

_INVALID_NAME_CHARS = re.compile(r'[^\w.\-]+')


def element_name(key, placeholder: str = "item") -> str:
    """Create a safe XML element name from a mapping key.

    Numeric keys (and keys that end up empty) become `placeholder` since XML
    names cannot start with a digit. Other invalid characters are replaced
    with underscores, e.g. "first name" -> "first_name".
    """
    text = str(key)
    if isinstance(key, (int, float)) or text.isdigit():
        return placeholder
    text = _INVALID_NAME_CHARS.sub('_', text).strip('_') or placeholder
    if text[0].isdigit() or text[0] in '-.':
        text = '_' + text
    return text


def local_name(tag) -> str:
    """Strip a Clark-notation namespace (`{uri}name`) or `prefix:` from a tag."""
    tag = str(tag)
    if tag.startswith('{'):
        tag = tag.split('}', 1)[1]
    return tag.split(':', 1)[-1]
