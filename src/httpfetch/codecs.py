"""Body serialization and deserialization keyed on content type."""

from __future__ import annotations

import dataclasses
import json
import logging
import re
import xml.etree.ElementTree as ET
from functools import lru_cache
from typing import Any, Mapping, Sequence
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .content_type import Codec, ContentType
from .exceptions import DeserializationError, InvalidEncodingError, SerializationError

logger = logging.getLogger(__name__)

XML_ROOT_TAG = "root"
XML_TEXT_KEY = "$value"

# XML 1.0 Name production, restricted to names without a namespace prefix.
_XML_NAME = re.compile(r"[^\W\d][\w.\-]*\Z")
_XML_ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def _to_plain(value: Any, codec: Codec) -> Any:
    try:
        return to_jsonable_python(value)
    except PydanticSerializationError as exc:
        raise SerializationError(str(exc), codec=codec, cause=exc) from exc


def _scalar_text(value: Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def _xml_root_tag(value: Any) -> str:
    if isinstance(value, BaseModel) or dataclasses.is_dataclass(value):
        return type(value).__name__
    return XML_ROOT_TAG


def _check_tag(tag: str) -> str:
    if not _XML_NAME.match(tag):
        raise SerializationError(f"{tag!r} is not a valid XML element name", codec=Codec.XML)
    return tag


def _check_text(text: str) -> str:
    if _XML_ILLEGAL_CHARS.search(text):
        raise SerializationError(f"{text!r} contains characters XML cannot carry", codec=Codec.XML)
    return text


def _fill_element(element: ET.Element, value: Any) -> None:
    if isinstance(value, Mapping):
        for key, child in value.items():
            if key == XML_TEXT_KEY and child is not None:
                element.text = _check_text(_scalar_text(child))
                continue
            _append_child(element, str(key), child)
    elif isinstance(value, (list, tuple)):
        raise SerializationError("nested sequences need an enclosing field name", codec=Codec.XML)
    else:
        element.text = _check_text(_scalar_text(value))


def _append_child(parent: ET.Element, tag: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _append_child(parent, tag, item)
        return
    _fill_element(ET.SubElement(parent, _check_tag(tag)), value)


def _serialize_xml(original: Any, plain: Any) -> bytes:
    if not isinstance(plain, Mapping):
        raise SerializationError(
            f"top-level value must be a mapping or model, got {type(original).__name__}",
            codec=Codec.XML,
        )
    root = ET.Element(_check_tag(_xml_root_tag(original)))
    _fill_element(root, plain)
    return ET.tostring(root, encoding="unicode").encode("utf-8")


def _urlencoded_pairs(plain: Any) -> list[tuple[str, str]]:
    if isinstance(plain, Mapping):
        items: Sequence[Any] = list(plain.items())
    elif isinstance(plain, (list, tuple)):
        items = plain
    else:
        raise SerializationError(
            f"top-level value must be a mapping or a sequence of pairs, got {type(plain).__name__}",
            codec=Codec.URL_ENCODED,
        )
    pairs: list[tuple[str, str]] = []
    for item in items:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise SerializationError("expected (key, value) pairs", codec=Codec.URL_ENCODED)
        key, value = item
        if value is None:
            continue
        if isinstance(value, (Mapping, list, tuple)):
            raise SerializationError(f"value for {key!r} is not a scalar", codec=Codec.URL_ENCODED)
        pairs.append((str(key), _scalar_text(value)))
    return pairs


def serialize(value: Any, content_type: ContentType) -> bytes:
    """Encode ``value`` for ``content_type``.

    Models, dataclasses and other types pydantic knows how to dump are reduced
    to plain data first, so the three codecs only ever see dicts, lists and
    scalars.
    """
    codec = content_type.codec
    plain = _to_plain(value, codec)
    if codec is Codec.XML:
        return _serialize_xml(value, plain)
    if codec is Codec.URL_ENCODED:
        return urlencode(_urlencoded_pairs(plain)).encode("utf-8")
    try:
        return json.dumps(plain, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationError(str(exc), codec=Codec.JSON, cause=exc) from exc


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    text = (element.text or "").strip()
    if not children and not element.attrib:
        return text
    result: dict[str, Any] = dict(element.attrib)
    for child in children:
        value = _element_to_value(child)
        if child.tag in result:
            existing = result[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[child.tag] = [existing, value]
        else:
            result[child.tag] = value
    if text:
        result[XML_TEXT_KEY] = text
    return result


def _deserialize_xml(data: bytes) -> Any:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEncodingError("Response body does not contain valid UTF-8", codec=Codec.XML, cause=exc) from exc
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise DeserializationError(str(exc), codec=Codec.XML, cause=exc) from exc
    value = _element_to_value(root)
    # An empty root element is an empty record, not an empty string.
    return {} if value == "" else value


def _deserialize_urlencoded(data: bytes) -> dict[str, str]:
    try:
        text = data.decode("utf-8")
        return dict(parse_qsl(text, keep_blank_values=True, strict_parsing=bool(text)))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DeserializationError(str(exc), codec=Codec.URL_ENCODED, cause=exc) from exc


@lru_cache(maxsize=256)
def _adapter(response_model: Any) -> TypeAdapter[Any]:
    return TypeAdapter(response_model)


def deserialize(data: bytes, content_type: ContentType, response_model: Any = None) -> Any:
    """Decode ``data`` according to ``content_type``.

    With ``response_model`` the decoded data is validated into that type
    (a pydantic model, dataclass, ``list[Model]``, ...). A mismatch is reported
    against the codec that produced the data.
    """
    codec = content_type.codec
    if codec is Codec.XML:
        value = _deserialize_xml(data)
    elif codec is Codec.URL_ENCODED:
        value = _deserialize_urlencoded(data)
    else:
        try:
            value = json.loads(data)
        except (UnicodeDecodeError, ValueError) as exc:
            raise DeserializationError(str(exc), codec=Codec.JSON, cause=exc) from exc

    if response_model is None:
        return value
    try:
        return _adapter(response_model).validate_python(value)
    except ValidationError as exc:
        raise DeserializationError(str(exc), codec=codec, cause=exc) from exc


def resolve_response_content_type(headers: Mapping[str, str]) -> ContentType:
    """Pick the decoder for a response; missing or unknown types mean JSON.

    MIME parameters (``; charset=utf-8``) are ignored.
    """
    raw = headers.get("content-type")
    if raw is None:
        return ContentType.default()
    mime = raw.split(";", 1)[0].strip()
    content_type = ContentType.from_string(mime)
    if content_type.value != mime:
        logger.debug("Unrecognised response content-type %r, decoding as %s", raw, content_type)
    return content_type
