from __future__ import annotations

import json
from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from httpfetch.codecs import deserialize, resolve_response_content_type, serialize
from httpfetch.content_type import Codec, ContentType
from httpfetch.exceptions import DeserializationError, InvalidEncodingError, SerializationError


class ToReturn(BaseModel):
    item1: str


class NetworkTestResponse(BaseModel):
    item1: str
    item2: str


@dataclass
class Point:
    x: int
    y: int


def test_json_round_trip() -> None:
    value = {"name": "widget", "tags": ["a", "b"], "count": 3, "active": True, "extra": None}
    data = serialize(value, ContentType.JSON)
    assert deserialize(data, ContentType.JSON) == value


def test_json_serializes_models_and_dataclasses() -> None:
    assert json.loads(serialize(ToReturn(item1="x"), ContentType.JSON)) == {"item1": "x"}
    assert json.loads(serialize(Point(1, 2), ContentType.JSON)) == {"x": 1, "y": 2}


@pytest.mark.parametrize("content_type", [ContentType.TEXT_XML, ContentType.APPLICATION_XML])
def test_xml_round_trip(content_type: ContentType) -> None:
    value = {"item1": "a", "nested": {"inner": "b"}, "items": ["x", "y"]}
    data = serialize(value, content_type)
    assert deserialize(data, content_type) == value


def test_xml_uses_model_name_as_root() -> None:
    data = serialize(ToReturn(item1="testing123"), ContentType.APPLICATION_XML)
    assert data == b"<ToReturn><item1>testing123</item1></ToReturn>"


def test_xml_decodes_into_response_model() -> None:
    data = b"<NetworkTestResponse><item1>testing</item1><item2>testing2</item2></NetworkTestResponse>"
    body = deserialize(data, ContentType.APPLICATION_XML, NetworkTestResponse)
    assert body == NetworkTestResponse(item1="testing", item2="testing2")


def test_xml_attributes_and_mixed_text() -> None:
    body = deserialize(b'<root id="7"><name lang="en">Widget</name></root>', ContentType.TEXT_XML)
    assert body == {"id": "7", "name": {"lang": "en", "$value": "Widget"}}


def test_xml_rejects_invalid_utf8() -> None:
    with pytest.raises(InvalidEncodingError) as excinfo:
        deserialize(b"<root>\xff\xfe</root>", ContentType.TEXT_XML)
    assert excinfo.value.codec is Codec.XML
    assert isinstance(excinfo.value, DeserializationError)


def test_xml_rejects_malformed_document() -> None:
    with pytest.raises(DeserializationError) as excinfo:
        deserialize(b"<root><unclosed></root>", ContentType.APPLICATION_XML)
    assert excinfo.value.codec is Codec.XML
    assert not isinstance(excinfo.value, InvalidEncodingError)


@pytest.mark.parametrize("key", ["a b", "1x", "", "x<y", "ns:tag"])
def test_xml_rejects_invalid_element_names(key: str) -> None:
    with pytest.raises(SerializationError) as excinfo:
        serialize({key: "x"}, ContentType.TEXT_XML)
    assert excinfo.value.codec is Codec.XML


@pytest.mark.parametrize("text", ["x\x01y", "bell\x07", "\x00"])
def test_xml_rejects_control_characters(text: str) -> None:
    with pytest.raises(SerializationError) as excinfo:
        serialize({"a": text}, ContentType.APPLICATION_XML)
    assert excinfo.value.codec is Codec.XML


def test_xml_allows_whitespace_and_unicode_text() -> None:
    value = {"note": "tab\there café", "item-1": "ok"}
    assert deserialize(serialize(value, ContentType.TEXT_XML), ContentType.TEXT_XML) == value


def test_xml_text_key_becomes_element_text() -> None:
    data = serialize({"name": {"$value": "Widget", "lang": "en"}}, ContentType.TEXT_XML)
    assert data == b"<root><name>Widget<lang>en</lang></name></root>"
    assert deserialize(data, ContentType.TEXT_XML) == {"name": {"lang": "en", "$value": "Widget"}}


def test_xml_requires_mapping_at_top_level() -> None:
    with pytest.raises(SerializationError) as excinfo:
        serialize(["a", "b"], ContentType.TEXT_XML)
    assert excinfo.value.codec is Codec.XML


def test_urlencoded_round_trip() -> None:
    value = {"name": "a b", "symbols": "&=?"}
    data = serialize(value, ContentType.URL_ENCODED)
    assert data == b"name=a+b&symbols=%26%3D%3F"
    assert deserialize(data, ContentType.URL_ENCODED) == value


def test_urlencoded_formats_scalars() -> None:
    data = serialize([("flag", True), ("n", 2), ("skip", None)], ContentType.URL_ENCODED)
    assert data == b"flag=true&n=2"


def test_urlencoded_rejects_nested_values() -> None:
    with pytest.raises(SerializationError) as excinfo:
        serialize({"nested": {"a": "b"}}, ContentType.URL_ENCODED)
    assert excinfo.value.codec is Codec.URL_ENCODED


def test_unserializable_value_is_tagged_with_codec() -> None:
    with pytest.raises(SerializationError) as excinfo:
        serialize({"value": object()}, ContentType.JSON)
    assert excinfo.value.codec is Codec.JSON


def test_json_rejects_malformed_body() -> None:
    with pytest.raises(DeserializationError) as excinfo:
        deserialize(b"{not json", ContentType.JSON)
    assert excinfo.value.codec is Codec.JSON


def test_response_model_mismatch_is_deserialization_error() -> None:
    with pytest.raises(DeserializationError) as excinfo:
        deserialize(b'{"other": "x"}', ContentType.JSON, ToReturn)
    assert excinfo.value.codec is Codec.JSON


def test_response_model_accepts_generic_aliases() -> None:
    body = deserialize(b'[{"item1": "a"}, {"item1": "b"}]', ContentType.JSON, list[ToReturn])
    assert body == [ToReturn(item1="a"), ToReturn(item1="b")]


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        ({}, ContentType.JSON),
        ({"content-type": "foo/bar"}, ContentType.JSON),
        ({"content-type": "application/xml"}, ContentType.APPLICATION_XML),
        ({"content-type": "text/xml; charset=utf-8"}, ContentType.TEXT_XML),
        ({"content-type": "application/x-www-form-urlencoded"}, ContentType.URL_ENCODED),
    ],
)
def test_resolve_response_content_type(headers: dict[str, str], expected: ContentType) -> None:
    assert resolve_response_content_type(headers) is expected
