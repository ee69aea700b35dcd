"""
Body and query encoders used by the request builder.

Every encoder returns bytes and raises SerializationError when the value
cannot be represented in the target format.
"""

import dataclasses
import json
import re
import secrets
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from operator import itemgetter
from typing import Any
from urllib.parse import urlencode

from lxml import etree
from pydantic import BaseModel

from reqbuilder.errors import SerializationError

JSON_CONTENT_TYPE = "application/json"
XML_CONTENT_TYPE = "application/xml"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
MULTIPART_CONTENT_TYPE = "multipart/form-data"


def _as_plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


def _json_default(value: Any) -> Any:
    plain = _as_plain(value)
    if plain is value:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return plain


def encode_json(value: Any) -> bytes:
    try:
        text = json.dumps(
            value,
            default=_json_default,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"cannot encode {type(value).__name__} as JSON: {e}") from e
    return text.encode("utf-8")


def _xml_root(value: Any) -> tuple[str, Any]:
    if isinstance(value, BaseModel) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        return type(value).__name__, _as_plain(value)
    if isinstance(value, Mapping) and len(value) == 1:
        ((tag, content),) = value.items()
        return str(tag), content
    raise TypeError(f"unsupported type: {type(value).__name__}")


def _xml_fill(element: etree._Element, content: Any) -> None:
    content = _as_plain(content)
    if content is None:
        return
    if isinstance(content, Mapping):
        for key, child in content.items():
            _xml_append(element, str(key), child)
    elif isinstance(content, bool):
        element.text = "true" if content else "false"
    elif isinstance(content, (str, int, float, Decimal)):
        element.text = str(content)
    else:
        raise TypeError(f"unsupported type: {type(content).__name__}")


def _xml_append(parent: etree._Element, tag: str, content: Any) -> None:
    if isinstance(content, (list, tuple)):
        for item in content:
            _xml_append(parent, tag, item)
        return
    _xml_fill(etree.SubElement(parent, tag), content)


def encode_xml(value: Any) -> bytes:
    """
    Encode a value as an XML document without declaration.

    Pydantic models and dataclasses use their class name as the root tag;
    a mapping must have exactly one key, which becomes the root tag.
    Lists repeat their parent tag once per item.
    """
    try:
        tag, content = _xml_root(value)
        root = etree.Element(tag)
        _xml_fill(root, content)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"cannot encode {type(value).__name__} as XML: {e}") from e
    return etree.tostring(root, encoding="utf-8")


def encode_pairs(pairs: Iterable[tuple[str, str]]) -> str:
    # sorted() is stable, so repeated keys keep their insertion order
    return urlencode(sorted(pairs, key=itemgetter(0)))


def encode_form(fields: Mapping[str, str]) -> bytes:
    return encode_pairs(fields.items()).encode("ascii")


@dataclass(frozen=True)
class FilePart:
    key: str
    name: str
    content: bytes


def new_boundary() -> str:
    return secrets.token_hex(30)


# HTML5 form encoding of parameter values: quotes and control characters are
# percent-encoded so a name can never end the header line
_PARAM_REPLACEMENTS = {'"': "%22", "\\": "\\\\"}
_PARAM_REPLACEMENTS.update({chr(c): f"%{c:02X}" for c in range(0x20) if c != 0x1B})
_PARAM_RE = re.compile("|".join(re.escape(c) for c in _PARAM_REPLACEMENTS))


def _format_param_value(s: str) -> str:
    return _PARAM_RE.sub(lambda m: _PARAM_REPLACEMENTS[m.group(0)], s)


def multipart_content_type(boundary: str) -> str:
    return f"{MULTIPART_CONTENT_TYPE}; boundary={boundary}"


def encode_multipart(
    fields: Mapping[str, str],
    boundary: str,
    file: FilePart | None = None,
) -> bytes:
    body_parts: list[bytes] = []
    for key, value in fields.items():
        body_parts.append(f"--{boundary}\r\n".encode())
        body_parts.append(
            f'Content-Disposition: form-data; name="{_format_param_value(key)}"\r\n\r\n'.encode()
        )
        body_parts.append(value.encode("utf-8") + b"\r\n")

    if file is not None:
        body_parts.append(f"--{boundary}\r\n".encode())
        body_parts.append(
            (
                f'Content-Disposition: form-data; name="{_format_param_value(file.key)}"; '
                f'filename="{_format_param_value(file.name)}"\r\n'
            ).encode()
        )
        body_parts.append(b"Content-Type: application/octet-stream\r\n\r\n")
        body_parts.append(file.content + b"\r\n")

    body_parts.append(f"--{boundary}--\r\n".encode())
    return b"".join(body_parts)
