"""
Encoder for the gob binary stream format (``application/vnd.golang.gob``).

A gob stream is a sequence of length-prefixed messages. A message starting
with a negative type id defines a type; one starting with a positive id
carries a value of that type. Types used by a value are defined before the
value is sent, and only once per encoder.

Python values map onto gob types as follows:

- ``bool``, ``int``, ``float``, ``str`` and ``bytes`` use the predefined types
- lists and tuples are slices, mappings are maps
- dataclasses are structs named after the class, with one field per
  dataclass field typed by its annotation

The element type of a collection is taken from its first item; empty
collections are slices or maps of strings.
"""

import dataclasses
import io
import logging
import struct
import types
import typing
from collections.abc import Mapping, Sequence
from typing import Any, BinaryIO, Dict, List, Tuple

from .exceptions import EncoderError
from .mediatypes import GOB

logger = logging.getLogger(__name__)

FIRST_USER_ID = 64

# Field numbers of wireType, structType and friends, as deltas from -1
_SLICE_T = 2
_STRUCT_T = 3
_MAP_T = 4

_MAX_INT = 2 ** 63 - 1
_MIN_INT = -(2 ** 63)


class GobType:
    """A gob type. Each subclass exposes ``key``, identifying structurally equal
    types, and ``go_name``, the type as Go would spell it."""


@dataclasses.dataclass(frozen=True)
class BuiltinType(GobType):
    id: int
    go_name: str
    python_types: Tuple[type, ...]

    @property
    def key(self) -> Tuple:
        return ("builtin", self.id)


BOOL = BuiltinType(1, "bool", (bool,))
INT = BuiltinType(2, "int", (int,))
FLOAT = BuiltinType(4, "float64", (float, int))
BYTES = BuiltinType(5, "[]uint8", (bytes, bytearray, memoryview))
STRING = BuiltinType(6, "string", (str,))


@dataclasses.dataclass(frozen=True)
class SliceType(GobType):
    elem: GobType

    @property
    def key(self) -> Tuple:
        return ("slice", self.elem.key)

    @property
    def go_name(self) -> str:
        return f"[]{self.elem.go_name}"


@dataclasses.dataclass(frozen=True)
class MapType(GobType):
    key_type: GobType
    elem: GobType

    @property
    def key(self) -> Tuple:
        return ("map", self.key_type.key, self.elem.key)

    @property
    def go_name(self) -> str:
        return f"map[{self.key_type.go_name}]{self.elem.go_name}"


class StructType(GobType):
    """A dataclass; ``fields`` is filled after creation so types may recurse."""

    def __init__(self, cls: type):
        self.cls = cls
        self.fields: List[Tuple[str, GobType]] = []

    @property
    def key(self) -> Tuple:
        return ("struct", self.cls)

    @property
    def go_name(self) -> str:
        return self.cls.__name__


def encode_uint(value: int) -> bytes:
    """Small values take one byte; larger ones a negated byte count then big-endian bytes."""
    if value < 0x80:
        return bytes([value])
    body = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return bytes([256 - len(body)]) + body


def encode_int(value: int) -> bytes:
    if not _MIN_INT <= value <= _MAX_INT:
        raise EncoderError(GOB, f"integer {value} overflows int64")
    if value < 0:
        return encode_uint((~value << 1) | 1)
    return encode_uint(value << 1)


def encode_float(value: float) -> bytes:
    # Byte-reversed IEEE 754 bits, so small exponents encode short
    return encode_uint(struct.unpack("<Q", struct.pack(">d", value))[0])


def encode_string(value: bytes) -> bytes:
    return encode_uint(len(value)) + value


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (bool, int, float, str, bytes, bytearray)) or isinstance(value, (list, tuple, Mapping)):
        return not value
    return False


class GobEncoder:
    """
    Writes gob messages to a binary sink.

    Type ids are allocated per encoder starting at 64. A slice or map gets
    its id after its element types; a struct before its field types.
    """

    def __init__(self, sink: BinaryIO):
        self.sink = sink
        self._ids: Dict[Tuple, int] = {}
        self._names: Dict[Tuple, str] = {}
        self._sent: set = set()
        self._structs: Dict[type, StructType] = {}
        self._next_id = FIRST_USER_ID

    # Type inference

    def type_of_value(self, value: Any) -> GobType:
        if value is None:
            raise EncoderError(GOB, "cannot encode nil value")
        if isinstance(value, bool):
            return BOOL
        if isinstance(value, int):
            return INT
        if isinstance(value, float):
            return FLOAT
        if isinstance(value, str):
            return STRING
        if isinstance(value, BYTES.python_types):
            return BYTES
        if isinstance(value, Mapping):
            for key, item in value.items():
                return MapType(self.type_of_value(key), self.type_of_value(item))
            return MapType(STRING, STRING)
        if isinstance(value, (list, tuple)):
            for item in value:
                return SliceType(self.type_of_value(item))
            return SliceType(STRING)
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return self.struct_type(type(value))
        raise EncoderError(GOB, f"type not supported: {type(value).__name__}")

    def type_of_annotation(self, annotation: Any) -> GobType:
        origin = typing.get_origin(annotation)
        args = typing.get_args(annotation)

        if origin is typing.Union or origin is getattr(types, "UnionType", None):
            options = [a for a in args if a is not type(None)]
            if len(options) == 1:
                return self.type_of_annotation(options[0])
            raise EncoderError(GOB, f"union field type not supported: {annotation}")

        if annotation is bool:
            return BOOL
        if annotation is int:
            return INT
        if annotation is float:
            return FLOAT
        if annotation is str:
            return STRING
        if annotation in BYTES.python_types:
            return BYTES

        if origin in (list, tuple, Sequence) or annotation in (list, tuple):
            elem = args[0] if args else str
            return SliceType(self.type_of_annotation(elem))
        if origin in (dict, Mapping) or annotation is dict:
            key, elem = args if args else (str, str)
            return MapType(self.type_of_annotation(key), self.type_of_annotation(elem))
        if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
            return self.struct_type(annotation)

        raise EncoderError(GOB, f"field type not supported: {annotation}")

    def struct_type(self, cls: type) -> StructType:
        if cls in self._structs:
            return self._structs[cls]
        struct_type = StructType(cls)
        self._structs[cls] = struct_type
        hints = typing.get_type_hints(cls)
        struct_type.fields = [
            (f.name, self.type_of_annotation(hints.get(f.name, f.type)))
            for f in dataclasses.fields(cls)
        ]
        return struct_type

    # Type ids and definitions

    def type_id(self, gob_type: GobType) -> int:
        if isinstance(gob_type, BuiltinType):
            return gob_type.id
        return self._ids[gob_type.key]

    def _allocate(self, gob_type: GobType):
        self._ids[gob_type.key] = self._next_id
        self._next_id += 1

    def register(self, gob_type: GobType, name: str = ""):
        if isinstance(gob_type, BuiltinType) or gob_type.key in self._ids:
            return
        if isinstance(gob_type, StructType):
            self._names[gob_type.key] = gob_type.go_name
            self._allocate(gob_type)
            for _, field_type in gob_type.fields:
                self.register(field_type, field_type.go_name)
        elif isinstance(gob_type, SliceType):
            self.register(gob_type.elem)
            self._names[gob_type.key] = name
            self._allocate(gob_type)
        elif isinstance(gob_type, MapType):
            self.register(gob_type.key_type)
            self.register(gob_type.elem)
            self._names[gob_type.key] = name
            self._allocate(gob_type)

    def _common_type(self, gob_type: GobType) -> bytes:
        name = self._names[gob_type.key]
        buf = b""
        delta = 1
        if name:
            buf += encode_uint(1) + encode_string(name.encode("utf-8"))
        else:
            delta = 2
        buf += encode_uint(delta) + encode_int(self.type_id(gob_type))
        return buf + encode_uint(0)

    def _wire_type(self, gob_type: GobType) -> bytes:
        if isinstance(gob_type, SliceType):
            inner = (
                encode_uint(1) + self._common_type(gob_type)
                + encode_uint(1) + encode_int(self.type_id(gob_type.elem))
                + encode_uint(0)
            )
            return encode_uint(_SLICE_T) + inner + encode_uint(0)
        if isinstance(gob_type, MapType):
            inner = (
                encode_uint(1) + self._common_type(gob_type)
                + encode_uint(1) + encode_int(self.type_id(gob_type.key_type))
                + encode_uint(1) + encode_int(self.type_id(gob_type.elem))
                + encode_uint(0)
            )
            return encode_uint(_MAP_T) + inner + encode_uint(0)

        inner = encode_uint(1) + self._common_type(gob_type)
        if gob_type.fields:
            inner += encode_uint(1) + encode_uint(len(gob_type.fields))
            for field_name, field_type in gob_type.fields:
                inner += (
                    encode_uint(1) + encode_string(field_name.encode("utf-8"))
                    + encode_uint(1) + encode_int(self.type_id(field_type))
                    + encode_uint(0)
                )
        inner += encode_uint(0)
        return encode_uint(_STRUCT_T) + inner + encode_uint(0)

    def send_type(self, gob_type: GobType):
        if isinstance(gob_type, BuiltinType) or gob_type.key in self._sent:
            return
        self._sent.add(gob_type.key)
        logger.debug(f"Sending gob type {gob_type.go_name} as id {self.type_id(gob_type)}")
        self._write_message(encode_int(-self.type_id(gob_type)) + self._wire_type(gob_type))

        if isinstance(gob_type, StructType):
            for _, field_type in gob_type.fields:
                self.send_type(field_type)
        elif isinstance(gob_type, SliceType):
            self.send_type(gob_type.elem)
        elif isinstance(gob_type, MapType):
            self.send_type(gob_type.key_type)
            self.send_type(gob_type.elem)

    # Values

    def encode_value(self, value: Any, gob_type: GobType) -> bytes:
        if isinstance(gob_type, BuiltinType):
            if value is None or not isinstance(value, gob_type.python_types) or (
                isinstance(value, bool) and gob_type is not BOOL
            ):
                raise EncoderError(GOB, f"expected {gob_type.go_name}, got {type(value).__name__}")
            if gob_type is BOOL:
                return encode_uint(1 if value else 0)
            if gob_type is INT:
                return encode_int(value)
            if gob_type is FLOAT:
                return encode_float(float(value))
            if gob_type is STRING:
                return encode_string(value.encode("utf-8"))
            return encode_string(bytes(value))

        if isinstance(gob_type, SliceType):
            if not isinstance(value, (list, tuple)):
                raise EncoderError(GOB, f"expected {gob_type.go_name}, got {type(value).__name__}")
            buf = encode_uint(len(value))
            for item in value:
                buf += self.encode_value(item, gob_type.elem)
            return buf

        if isinstance(gob_type, MapType):
            if not isinstance(value, Mapping):
                raise EncoderError(GOB, f"expected {gob_type.go_name}, got {type(value).__name__}")
            buf = encode_uint(len(value))
            for key, item in value.items():
                buf += self.encode_value(key, gob_type.key_type)
                buf += self.encode_value(item, gob_type.elem)
            return buf

        if not isinstance(value, gob_type.cls):
            raise EncoderError(GOB, f"expected {gob_type.go_name}, got {type(value).__name__}")
        return self.encode_struct(value, gob_type)

    def encode_struct(self, value: Any, struct_type: StructType) -> bytes:
        """Send non-zero fields as (field number delta, value), then a zero delta."""
        buf = b""
        last = -1
        for index, (field_name, field_type) in enumerate(struct_type.fields):
            field_value = getattr(value, field_name)
            if not isinstance(field_type, StructType) and _is_zero(field_value):
                continue
            if field_value is None:
                continue
            buf += encode_uint(index - last) + self.encode_value(field_value, field_type)
            last = index
        return buf + encode_uint(0)

    def _write_message(self, payload: bytes):
        self.sink.write(encode_uint(len(payload)) + payload)

    def encode(self, value: Any) -> None:
        """Write ``value``, preceded by any type definitions it needs."""
        gob_type = self.type_of_value(value)
        self.register(gob_type)
        self.send_type(gob_type)

        payload = encode_int(self.type_id(gob_type))
        if isinstance(gob_type, StructType):
            payload += self.encode_struct(value, gob_type)
        else:
            # Non-struct values are sent as a single-field struct
            payload += encode_uint(0) + self.encode_value(value, gob_type)
        self._write_message(payload)


def encode_gob(value: Any) -> bytes:
    """Encode ``value`` as a complete gob stream."""
    buf = io.BytesIO()
    GobEncoder(buf).encode(value)
    return buf.getvalue()
