"""
Tests for the serializers behind each media type.
"""

import datetime
import io
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest

from rsvp import Body, Config, Html, data, html_templates
from rsvp.exceptions import (
    EncoderError,
    NotAStringError,
    NotBytesError,
    NotCsvError,
    NotHtmlError,
    PayloadShapeError,
    SinkError,
    UnhandledMediaTypeError,
)
from rsvp.gob import encode_float, encode_gob, encode_int, encode_uint
from rsvp.mediatypes import ExtensionHandler, default_registry
from rsvp.renderers import JSONRenderer, render
from rsvp.xml_encoding import encode_xml, escape_text


@dataclass
class Point:
    X: int
    Y: int


@dataclass
class Item:
    title: str
    tags: List[str] = field(default_factory=list)
    price: Optional[float] = None


@dataclass
class Feed:
    title: str
    items: List[Item] = field(default_factory=list)


def rendered(body, media_type, config=None):
    sink = io.BytesIO()
    render(body, media_type, sink, config or Config())
    return sink.getvalue()


class TestJSON:
    """JSON output is compact by default and always ends with a newline."""

    encoder = JSONRenderer()

    def test_compact(self):
        assert self.encoder.encode({"a": [1, 2], "b": None}) == '{"a":[1,2],"b":null}\n'

    def test_indent(self):
        assert self.encoder.encode({"a": [1, 2]}, indent="  ") == '{\n  "a": [\n    1,\n    2\n  ]\n}\n'

    def test_prefix_starts_every_following_line(self):
        assert self.encoder.encode({"a": 1}, prefix=">", indent="  ") == '{\n>  "a": 1\n>}\n'

    def test_non_ascii_is_kept(self):
        assert self.encoder.encode("café") == '"café"\n'

    def test_html_characters_are_not_escaped(self):
        assert self.encoder.encode("<b>&</b>") == '"<b>&</b>"\n'

    def test_dataclasses(self):
        assert self.encoder.encode(Point(1, 2)) == '{"X":1,"Y":2}\n'

    def test_bytes_are_base64(self):
        assert self.encoder.encode(b"hi") == '"aGk="\n'

    def test_dates(self):
        assert self.encoder.encode(datetime.date(2024, 1, 2)) == '"2024-01-02"\n'

    def test_nan_is_an_encoder_error(self):
        with pytest.raises(EncoderError) as exc_info:
            self.encoder.encode(float("nan"))

        assert exc_info.value.media_type == "application/json"

    def test_unserializable_is_an_encoder_error(self):
        with pytest.raises(EncoderError):
            self.encoder.encode(object())

    def test_config_formatting(self):
        config = Config(json_indent="\t")

        assert rendered(data([1]), "application/json", config) == b"[\n\t1\n]\n"


class TestXML:
    """Element-per-value XML."""

    def test_scalars(self):
        assert encode_xml("Hello") == "<string>Hello</string>"
        assert encode_xml(3) == "<int>3</int>"
        assert encode_xml(1.5) == "<float>1.5</float>"
        assert encode_xml(True) == "<bool>true</bool>"

    def test_none_is_empty(self):
        assert encode_xml(None) == ""

    def test_top_level_sequence(self):
        assert encode_xml(["a", "b"]) == "<string>a</string><string>b</string>"

    def test_mapping(self):
        assert encode_xml({"a": 1, "b": "x"}) == "<map><a>1</a><b>x</b></map>"

    def test_record_fields_and_repeated_sequences(self):
        item = Item(title="First", tags=["x", "y"])

        assert encode_xml(item) == "<Item><title>First</title><tags>x</tags><tags>y</tags></Item>"

    def test_xml_name_overrides_class_name(self):
        @dataclass
        class Channel:
            xml_name = "channel"
            title: str

        assert encode_xml(Channel("News")) == "<channel><title>News</title></channel>"

    def test_text_is_escaped(self):
        assert encode_xml("a<b & 'c'") == "<string>a&lt;b &amp; &#39;c&#39;</string>"

    def test_invalid_characters_are_replaced(self):
        assert escape_text("a\x00b") == "a\ufffdb"

    def test_whitespace_is_escaped(self):
        assert escape_text("a\tb\n") == "a&#x9;b&#xA;"

    def test_indent(self):
        feed = Feed(title="Posts", items=[Item(title="First")])

        assert encode_xml(feed, indent="  ") == (
            "<Feed>\n"
            "  <title>Posts</title>\n"
            "  <items>\n"
            "    <title>First</title>\n"
            "  </items>\n"
            "</Feed>"
        )

    def test_prefix_starts_every_line(self):
        assert encode_xml(Point(1, 2), prefix="> ") == (
            "> <Point>\n"
            "> <X>1</X>\n"
            "> <Y>2</Y>\n"
            "> </Point>"
        )

    def test_unsupported_types(self):
        with pytest.raises(EncoderError):
            encode_xml(object())

        with pytest.raises(EncoderError):
            encode_xml({"a": {1, 2}})


class TestGob:
    """The gob wire format."""

    @pytest.mark.parametrize("value, expected", [
        (0, b"\x00"),
        (127, b"\x7f"),
        (128, b"\xff\x80"),
        (256, b"\xfe\x01\x00"),
    ])
    def test_unsigned(self, value, expected):
        assert encode_uint(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (0, b"\x00"),
        (1, b"\x02"),
        (-1, b"\x01"),
        (-129, b"\xfe\x01\x01"),
    ])
    def test_signed(self, value, expected):
        assert encode_int(value) == expected

    def test_float_bytes_are_reversed(self):
        assert encode_float(17.0) == b"\xfe\x31\x40"

    def test_int64_overflow(self):
        with pytest.raises(EncoderError):
            encode_int(2 ** 63)

    def test_top_level_int(self):
        assert encode_gob(2) == bytes([0x03, 0x04, 0x00, 0x04])

    def test_top_level_string(self):
        assert encode_gob("hi") == bytes([0x05, 0x0C, 0x00, 0x02]) + b"hi"

    def test_top_level_bool(self):
        assert encode_gob(True) == bytes([0x03, 0x02, 0x00, 0x01])

    def test_empty_map(self):
        assert encode_gob({}) == bytes([
            0x0D, 0x7F, 0x04, 0x01, 0x02, 0xFF, 0x80, 0x00, 0x01, 0x0C, 0x01, 0x0C, 0x00, 0x00,
            0x04, 0xFF, 0x80, 0x00, 0x00,
        ])

    def test_struct(self):
        type_message = (
            bytes([0x1E, 0x7F, 0x03, 0x01, 0x01, 0x05]) + b"Point"
            + bytes([0x01, 0xFF, 0x80, 0x00, 0x01, 0x02])
            + bytes([0x01, 0x01]) + b"X" + bytes([0x01, 0x04, 0x00])
            + bytes([0x01, 0x01]) + b"Y" + bytes([0x01, 0x04, 0x00])
            + bytes([0x00, 0x00])
        )
        value_message = bytes([0x07, 0xFF, 0x80, 0x01, 0x2C, 0x01, 0x42, 0x00])

        assert encode_gob(Point(22, 33)) == type_message + value_message

    def test_zero_fields_are_skipped(self):
        assert encode_gob(Point(0, 33)).endswith(bytes([0x05, 0xFF, 0x80, 0x02, 0x42, 0x00]))

    def test_nested_types_are_sent_once(self):
        stream = encode_gob(Feed(title="Posts", items=[Item("a"), Item("b")]))

        assert stream.count(b"\x04Item") == 1

    def test_nil_cannot_be_encoded(self):
        with pytest.raises(EncoderError):
            encode_gob(None)

    def test_unsupported_types(self):
        with pytest.raises(EncoderError):
            encode_gob(object())

    def test_values_must_match_inferred_element_type(self):
        with pytest.raises(EncoderError):
            encode_gob([1, "two"])

    def test_field_annotations_must_be_supported(self):
        @dataclass
        class Holder:
            value: Dict[str, object]

        with pytest.raises(EncoderError):
            encode_gob(Holder({"a": 1}))


class Stats:
    def marshal_csv(self, writer):
        writer.writerow(["status", "number"])
        writer.writerow(["OK", 3])


class TestRenderDispatch:
    """The dispatcher picks the renderer for the negotiated media type."""

    def test_csv(self):
        assert rendered(data(Stats()), "text/csv") == b"status,number\nOK,3\n"

    def test_csv_needs_a_marshaler(self):
        with pytest.raises(NotCsvError):
            rendered(data({"a": 1}), "text/csv")

    def test_csv_marshaler_failure_is_an_encoder_error(self):
        class Failing:
            def marshal_csv(self, writer):
                raise ValueError("row 3 is invalid")

        with pytest.raises(EncoderError) as exc_info:
            rendered(data(Failing()), "text/csv")

        assert exc_info.value.media_type == "text/csv"
        assert "row 3 is invalid" in str(exc_info.value)

    def test_template_syntax_error_is_an_encoder_error(self):
        config = Config(html_template=html_templates({"broken": "{% if %}"}))

        with pytest.raises(EncoderError):
            rendered(Body(data="x", template_name="broken"), "text/html", config)

    def test_html_marker_is_written_verbatim(self):
        assert rendered(data(Html("<p>Hi</p>")), "text/html") == b"<p>Hi</p>"

    @pytest.mark.parametrize("payload, media_type, error", [
        ({"a": 1}, "text/plain", NotAStringError),
        ("plain", "text/html", NotHtmlError),
        ("text", "application/octet-stream", NotBytesError),
    ])
    def test_payload_shapes(self, payload, media_type, error):
        with pytest.raises(error) as exc_info:
            rendered(data(payload), media_type)

        assert isinstance(exc_info.value, PayloadShapeError)
        assert media_type in str(exc_info.value)

    def test_bytearray(self):
        assert rendered(data(bytearray(b"abc")), "application/octet-stream") == b"abc"

    def test_unhandled_media_type(self):
        with pytest.raises(UnhandledMediaTypeError):
            rendered(data(1), "application/x-unknown")

    def test_extension_handler(self):
        registry = default_registry()
        registry.register(
            "text/x-upper",
            handler=ExtensionHandler(
                claims=lambda media_type: media_type == "text/x-upper",
                render=lambda payload, sink: sink.write(payload.upper().encode("utf-8")),
            ),
        )

        assert rendered(data("shout"), "text/x-upper", Config(registry=registry)) == b"SHOUT"

    def test_failing_extension_handler(self):
        def fail(payload, sink):
            raise ValueError("boom")

        registry = default_registry()
        registry.register("text/x-fail", handler=ExtensionHandler(claims=lambda mt: True, render=fail))

        with pytest.raises(EncoderError) as exc_info:
            rendered(data("x"), "text/x-fail", Config(registry=registry))

        assert "boom" in str(exc_info.value)

    def test_sink_failures(self):
        class BrokenSink:
            def write(self, chunk):
                raise OSError("connection reset")

        with pytest.raises(SinkError):
            render(Body(data="x"), "text/plain", BrokenSink(), Config())


class TestPydanticModels:
    """Objects with model_dump() are encoded like dataclasses."""

    def test_json_and_xml(self):
        pydantic = pytest.importorskip("pydantic")

        class Article(pydantic.BaseModel):
            title: str
            views: int

        article = Article(title="Hello", views=3)

        assert JSONRenderer().encode(article) == '{"title":"Hello","views":3}\n'
        assert encode_xml(article) == "<Article><title>Hello</title><views>3</views></Article>"
