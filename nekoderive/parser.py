"""Derivation of key/value views and a compact binary encoding for dataclasses.

The binary layout is the standard configuration of a common compact format:
little-endian, variable-length integers, length-prefixed strings and
sequences, and struct fields written one after another in declaration order.
"""

from __future__ import annotations

import dataclasses
import enum
import struct
import types
import typing
from typing import Annotated, Any, get_args, get_origin

from .helpers import (
    NumericKind,
    capitalize_first,
    is_string,
    named_fields,
    numeric_kind,
    struct_name,
)


class ParserError(ValueError):
    """Raised when a value cannot be encoded or bytes cannot be decoded."""


@dataclasses.dataclass(frozen=True)
class _ParserValue:
    """One field of a struct, tagged with the key it belongs to."""

    key: enum.Enum
    value: Any

    def __repr__(self) -> str:
        return f"{type(self).__name__}.{self.key.name}({self.value!r})"


def _variant_factory(value_cls: type, member: enum.Enum) -> staticmethod:
    def build(value: Any) -> _ParserValue:
        return value_cls(member, value)

    build.__name__ = member.name
    build.__qualname__ = f"{value_cls.__qualname__}.{member.name}"
    return staticmethod(build)


def parser(cls: type) -> type:
    """Class decorator adding key/value views and binary encoding to a dataclass.

    It attaches ``ParserKey``, an enum with one member per field named
    ``<Struct><Field>``, and ``ParserValue``, whose attributes of the same
    names build tagged values. The class gains ``to_hash_map``,
    ``to_hash_set``, ``to_bincode`` and the class method ``from_bincode``.
    """
    fields = named_fields(cls)
    name = struct_name(cls)
    variants = [(f"{name}{capitalize_first(field)}", field) for field, _ in fields]

    key_enum = enum.Enum(
        f"{name}ParserKey",
        variants,
        module=cls.__module__,
        qualname=f"{cls.__qualname__}.ParserKey",
    )
    value_cls = type(
        f"{name}ParserValue",
        (_ParserValue,),
        {"__module__": cls.__module__, "__qualname__": f"{cls.__qualname__}.ParserValue"},
    )
    members = [(key_enum[variant], field) for variant, field in variants]
    for member, _ in members:
        setattr(value_cls, member.name, _variant_factory(value_cls, member))

    def to_hash_map(self: Any) -> dict[enum.Enum, _ParserValue]:
        """Map each field key to its tagged value."""
        return {member: value_cls(member, getattr(self, field)) for member, field in members}

    def to_hash_set(self: Any) -> set[_ParserValue]:
        """Collect the tagged value of every field into a set."""
        return {value_cls(member, getattr(self, field)) for member, field in members}

    def to_bincode(self: Any) -> bytes:
        """Encode the instance to bytes."""
        return encode(self)

    def from_bincode(klass: type, data: bytes) -> Any:
        """Decode an instance from bytes."""
        return decode(klass, data)

    cls.ParserKey = key_enum
    cls.ParserValue = value_cls
    cls.to_hash_map = to_hash_map
    cls.to_hash_set = to_hash_set
    cls.to_bincode = to_bincode
    cls.from_bincode = classmethod(from_bincode)
    return cls


def encode(obj: Any) -> bytes:
    """Encode a dataclass instance or a plain scalar to bytes."""
    out = bytearray()
    _encode(type(obj), obj, out)
    return bytes(out)


def decode(cls: Any, data: bytes) -> Any:
    """Decode a value of type ``cls`` from the start of ``data``.

    Bytes after the decoded value are ignored.
    """
    reader = _Reader(bytes(data))
    return _decode(cls, reader)


# ---------------------------------------------------------------------------
# integers


def _int_bounds(kind: NumericKind) -> tuple[int, int]:
    if kind is NumericKind.INT:
        return NumericKind.I64.minimum, NumericKind.I64.maximum
    return kind.minimum, kind.maximum


def _is_signed(kind: NumericKind) -> bool:
    return _int_bounds(kind)[0] < 0


def _zigzag(number: int) -> int:
    return 2 * number if number >= 0 else -2 * number - 1


def _unzigzag(number: int) -> int:
    return (number >> 1) ^ -(number & 1)


def _write_varint(number: int, out: bytearray) -> None:
    if number < 251:
        out.append(number)
    elif number <= 0xFFFF:
        out.append(251)
        out += struct.pack("<H", number)
    elif number <= 0xFFFF_FFFF:
        out.append(252)
        out += struct.pack("<I", number)
    elif number <= 0xFFFF_FFFF_FFFF_FFFF:
        out.append(253)
        out += struct.pack("<Q", number)
    else:
        out.append(254)
        out += number.to_bytes(16, "little")


def _encode_number(kind: NumericKind, value: Any, out: bytearray) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParserError(f"expected a number for {kind.value}, got {value!r}")
    if kind.is_float():
        fmt = "<f" if kind is NumericKind.F32 else "<d"
        out += struct.pack(fmt, kind.coerce(value))
        return
    if not isinstance(value, int):
        raise ParserError(f"expected an integer for {kind.value}, got {value!r}")
    low, high = _int_bounds(kind)
    if not low <= value <= high:
        raise ParserError(f"integer {value} out of range for {kind.value}")
    if kind is NumericKind.U8:
        out.append(value)
    elif kind is NumericKind.I8:
        out.append(value & 0xFF)
    elif _is_signed(kind):
        _write_varint(_zigzag(value), out)
    else:
        _write_varint(value, out)


def _decode_number(kind: NumericKind, reader: _Reader) -> int | float:
    if kind is NumericKind.F32:
        return struct.unpack("<f", reader.take(4))[0]
    if kind is NumericKind.F64:
        return struct.unpack("<d", reader.take(8))[0]
    if kind is NumericKind.U8:
        return reader.byte()
    if kind is NumericKind.I8:
        raw = reader.byte()
        return raw - 256 if raw >= 128 else raw
    raw = reader.varint()
    number = _unzigzag(raw) if _is_signed(kind) else raw
    low, high = _int_bounds(kind)
    if not low <= number <= high:
        raise ParserError(f"integer {number} out of range for {kind.value}")
    return number


# ---------------------------------------------------------------------------
# reading


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise ParserError("unexpected end of input")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def varint(self) -> int:
        first = self.byte()
        if first < 251:
            return first
        if first == 251:
            return struct.unpack("<H", self.take(2))[0]
        if first == 252:
            return struct.unpack("<I", self.take(4))[0]
        if first == 253:
            return struct.unpack("<Q", self.take(8))[0]
        if first == 254:
            return int.from_bytes(self.take(16), "little")
        raise ParserError(f"invalid integer marker {first}")

    def length(self) -> int:
        number = self.varint()
        if number > 0xFFFF_FFFF_FFFF_FFFF:
            raise ParserError("length does not fit in 64 bits")
        return number


# ---------------------------------------------------------------------------
# type dispatch


def _optional_inner(tp: Any) -> Any:
    origin = get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = get_args(tp)
        others = [arg for arg in args if arg is not type(None)]
        if len(args) == 2 and len(others) == 1:
            return others[0]
    return None


def _is_dataclass_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def _is_enum_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, enum.Enum)


def _encode(tp: Any, value: Any, out: bytearray) -> None:
    if tp is bool or tp == "bool":
        if not isinstance(value, bool):
            raise ParserError(f"expected a bool, got {value!r}")
        out.append(1 if value else 0)
        return
    kind = numeric_kind(tp)
    if kind is not None:
        _encode_number(kind, value, out)
        return
    origin, args = get_origin(tp), get_args(tp)
    if origin is Annotated:
        _encode(args[0], value, out)
        return
    if is_string(tp):
        if not isinstance(value, str):
            raise ParserError(f"expected a string, got {value!r}")
        data = value.encode("utf-8")
        _write_varint(len(data), out)
        out += data
        return
    if tp is bytes or tp == "bytes":
        if not isinstance(value, (bytes, bytearray)):
            raise ParserError(f"expected bytes, got {value!r}")
        _write_varint(len(value), out)
        out += value
        return
    inner = _optional_inner(tp)
    if inner is not None:
        if value is None:
            out.append(0)
        else:
            out.append(1)
            _encode(inner, value, out)
        return
    if origin in (list, set, frozenset) or (origin is tuple and len(args) == 2 and args[1] is Ellipsis):
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ParserError(f"expected a sequence, got {value!r}")
        _write_varint(len(value), out)
        for item in value:
            _encode(args[0], item, out)
        return
    if origin is tuple:
        if not isinstance(value, tuple) or len(value) != len(args):
            raise ParserError(f"expected a tuple of {len(args)} items, got {value!r}")
        for item_type, item in zip(args, value):
            _encode(item_type, item, out)
        return
    if origin is dict:
        if not isinstance(value, dict):
            raise ParserError(f"expected a dict, got {value!r}")
        _write_varint(len(value), out)
        for key, item in value.items():
            _encode(args[0], key, out)
            _encode(args[1], item, out)
        return
    if _is_dataclass_type(tp):
        if not isinstance(value, tp):
            raise ParserError(f"expected {tp.__name__}, got {value!r}")
        for name, annotation in named_fields(tp):
            _encode(annotation, getattr(value, name), out)
        return
    if _is_enum_type(tp):
        if not isinstance(value, tp):
            raise ParserError(f"expected {tp.__name__}, got {value!r}")
        _write_varint(list(tp).index(value), out)
        return
    raise ParserError(f"unsupported type {tp!r}")


def _decode(tp: Any, reader: _Reader) -> Any:
    if tp is bool or tp == "bool":
        raw = reader.byte()
        if raw > 1:
            raise ParserError(f"invalid bool value {raw}")
        return raw == 1
    kind = numeric_kind(tp)
    if kind is not None:
        return _decode_number(kind, reader)
    origin, args = get_origin(tp), get_args(tp)
    if origin is Annotated:
        return _decode(args[0], reader)
    if is_string(tp):
        data = reader.take(reader.length())
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParserError(f"invalid UTF-8 in string: {exc}") from exc
    if tp is bytes or tp == "bytes":
        return reader.take(reader.length())
    inner = _optional_inner(tp)
    if inner is not None:
        tag = reader.byte()
        if tag == 0:
            return None
        if tag == 1:
            return _decode(inner, reader)
        raise ParserError(f"invalid option tag {tag}")
    if origin in (list, set, frozenset) or (origin is tuple and len(args) == 2 and args[1] is Ellipsis):
        items = [_decode(args[0], reader) for _ in range(reader.length())]
        return items if origin is list else origin(items)
    if origin is tuple:
        return tuple(_decode(item_type, reader) for item_type in args)
    if origin is dict:
        count = reader.length()
        result = {}
        for _ in range(count):
            key = _decode(args[0], reader)
            result[key] = _decode(args[1], reader)
        return result
    if _is_dataclass_type(tp):
        return _decode_struct(tp, reader)
    if _is_enum_type(tp):
        members = list(tp)
        index = reader.varint()
        if index >= len(members):
            raise ParserError(f"invalid variant {index} for {tp.__name__}")
        return members[index]
    raise ParserError(f"unsupported type {tp!r}")


def _decode_struct(cls: type, reader: _Reader) -> Any:
    values = {name: _decode(annotation, reader) for name, annotation in named_fields(cls)}
    init_names = {field.name for field in dataclasses.fields(cls) if field.init}
    instance = cls(**{name: value for name, value in values.items() if name in init_names})
    for name, value in values.items():
        if name not in init_names:
            object.__setattr__(instance, name, value)
    return instance