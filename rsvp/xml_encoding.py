"""
Element-per-value XML encoding for structured payloads.

Scalars are written under a tag naming their type (``<string>``, ``<int>``,
``<float>``, ``<bool>``, ``<bytes>``), mappings as ``<map>`` with one child
per key, and dataclasses or pydantic models under their class name with one
child per field. A top-level sequence writes its items one after another;
a sequence inside a record repeats the field element once per item.
"""

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, List

from .exceptions import EncoderError
from .mediatypes import XML

logger = logging.getLogger(__name__)

_ESCAPES = {
    ord('"'): "&#34;",
    ord("'"): "&#39;",
    ord("&"): "&amp;",
    ord("<"): "&lt;",
    ord(">"): "&gt;",
    ord("\t"): "&#x9;",
    ord("\n"): "&#xA;",
    ord("\r"): "&#xD;",
}


def _is_xml_char(char: str) -> bool:
    code = ord(char)
    return (
        code in (0x09, 0x0A, 0x0D)
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def escape_text(text: str) -> str:
    """Escape character data, replacing characters XML cannot carry with U+FFFD."""
    if not all(_is_xml_char(c) for c in text):
        text = "".join(c if _is_xml_char(c) else "\ufffd" for c in text)
    return text.translate(_ESCAPES)


def _is_record(value: Any) -> bool:
    return (dataclasses.is_dataclass(value) and not isinstance(value, type)) or hasattr(value, "model_dump")


def _record_name(value: Any) -> str:
    return getattr(type(value), "xml_name", None) or type(value).__name__


def _record_fields(value: Any):
    if dataclasses.is_dataclass(value):
        return [(f.name, getattr(value, f.name)) for f in dataclasses.fields(value)]
    return list(value.model_dump().items())


def _type_tag(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "bytes"
    if isinstance(value, Mapping):
        return "map"
    if _is_record(value):
        return _record_name(value)
    raise EncoderError(XML, f"unsupported type: {type(value).__name__}")


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class XmlPrinter:
    """
    Writes elements with optional indentation.

    With a prefix or indent set, every element begins on a new line that
    starts with the prefix followed by one indent per depth. A closing tag
    only gets its own line when the element had child elements.
    """

    def __init__(self, prefix: str = "", indent: str = ""):
        self.prefix = prefix
        self.indent = indent
        self.parts: List[str] = []
        self.depth = 0
        self.indented_in = False
        self.put_newline = False

    def write_indent(self, depth_delta: int):
        if not self.prefix and not self.indent:
            return
        if depth_delta < 0:
            self.depth -= 1
            if self.indented_in:
                self.indented_in = False
                return
            self.indented_in = False
        if self.put_newline:
            self.parts.append("\n")
        else:
            self.put_newline = True
        self.parts.append(self.prefix)
        self.parts.append(self.indent * self.depth)
        if depth_delta > 0:
            self.depth += 1
            self.indented_in = True

    def start(self, name: str):
        self.write_indent(1)
        self.parts.append(f"<{name}>")

    def end(self, name: str):
        self.write_indent(-1)
        self.parts.append(f"</{name}>")

    def text(self, text: str):
        self.parts.append(escape_text(text))

    def getvalue(self) -> str:
        return "".join(self.parts)


def _write_value(printer: XmlPrinter, value: Any, name: str):
    """Write ``value`` as element ``name``; sequences repeat the element."""
    if value is None:
        return

    if isinstance(value, (list, tuple)):
        for item in value:
            _write_value(printer, item, name)
        return

    printer.start(name)
    if isinstance(value, Mapping):
        for key, item in value.items():
            _write_value(printer, item, str(key))
    elif _is_record(value):
        for field_name, item in _record_fields(value):
            _write_value(printer, item, field_name)
    else:
        _type_tag(value)
        printer.text(_scalar_text(value))
    printer.end(name)


def _write_top_level(printer: XmlPrinter, value: Any):
    if value is None:
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _write_top_level(printer, item)
        return
    _write_value(printer, value, _type_tag(value))


def encode_xml(value: Any, prefix: str = "", indent: str = "") -> str:
    """
    Encode ``value`` as XML text.

    Raises:
        EncoderError: If the value, or anything nested in it, has no XML form
    """
    printer = XmlPrinter(prefix, indent)
    _write_top_level(printer, value)
    return printer.getvalue()
