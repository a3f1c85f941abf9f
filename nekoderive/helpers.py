"""Field introspection and numeric type descriptions shared by the derivations."""

from __future__ import annotations

import ast
import builtins
import dataclasses
import enum
import inspect
import struct
import sys
from math import copysign, isinf, isnan
from typing import Annotated, Any, Union, get_args, get_origin


class NumericKind(enum.Enum):
    """A fixed-width numeric type that a field can be declared as."""

    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    ISIZE = "isize"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    USIZE = "usize"
    F32 = "f32"
    F64 = "f64"
    INT = "int"

    @property
    def minimum(self) -> int | float | None:
        """Smallest finite value of the kind, or None when unbounded."""
        return _BOUNDS[self][0]

    @property
    def maximum(self) -> int | float | None:
        """Largest finite value of the kind, or None when unbounded."""
        return _BOUNDS[self][1]

    def is_float(self) -> bool:
        """Whether the kind is a floating-point type."""
        return self in (NumericKind.F32, NumericKind.F64)

    def coerce(self, value: Any) -> int | float:
        """Convert ``value`` to this kind the way a numeric cast does.

        Floats become integers by truncation toward zero, saturating at the
        bounds of the kind; NaN becomes zero. Single-precision values are
        rounded to the nearest representable float32.
        """
        if self.is_float():
            number = float(value)
            return _to_f32(number) if self is NumericKind.F32 else number
        if isinstance(value, float):
            if isnan(value):
                return 0
            if isinf(value):
                if self.maximum is None:
                    raise OverflowError("cannot convert an infinite value to int")
                return self.maximum if value > 0 else self.minimum
        number = int(value)
        low, high = _BOUNDS[self]
        if low is not None:
            number = max(low, min(high, number))
        return number


def _int_bounds(bits: int, signed: bool) -> tuple[int, int]:
    if signed:
        return -(2 ** (bits - 1)), 2 ** (bits - 1) - 1
    return 0, 2**bits - 1


_F32_MAX = 3.4028234663852886e38

_BOUNDS: dict[NumericKind, tuple[Any, Any]] = {
    NumericKind.I8: _int_bounds(8, True),
    NumericKind.I16: _int_bounds(16, True),
    NumericKind.I32: _int_bounds(32, True),
    NumericKind.I64: _int_bounds(64, True),
    NumericKind.I128: _int_bounds(128, True),
    NumericKind.ISIZE: _int_bounds(64, True),
    NumericKind.U8: _int_bounds(8, False),
    NumericKind.U16: _int_bounds(16, False),
    NumericKind.U32: _int_bounds(32, False),
    NumericKind.U64: _int_bounds(64, False),
    NumericKind.U128: _int_bounds(128, False),
    NumericKind.USIZE: _int_bounds(64, False),
    NumericKind.F32: (-_F32_MAX, _F32_MAX),
    NumericKind.F64: (-sys.float_info.max, sys.float_info.max),
    NumericKind.INT: (None, None),
}

_BY_NAME: dict[str, NumericKind] = {kind.value: kind for kind in NumericKind}
_BY_NAME["float"] = NumericKind.F64


def _to_f32(number: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", number))[0]
    except OverflowError:
        return copysign(float("inf"), number)


i8 = Annotated[int, NumericKind.I8]
i16 = Annotated[int, NumericKind.I16]
i32 = Annotated[int, NumericKind.I32]
i64 = Annotated[int, NumericKind.I64]
i128 = Annotated[int, NumericKind.I128]
isize = Annotated[int, NumericKind.ISIZE]
u8 = Annotated[int, NumericKind.U8]
u16 = Annotated[int, NumericKind.U16]
u32 = Annotated[int, NumericKind.U32]
u64 = Annotated[int, NumericKind.U64]
u128 = Annotated[int, NumericKind.U128]
usize = Annotated[int, NumericKind.USIZE]
f32 = Annotated[float, NumericKind.F32]
f64 = Annotated[float, NumericKind.F64]


def numeric_kind(tp: Any) -> NumericKind | None:
    """Return the numeric kind a type annotation declares, or None."""
    if isinstance(tp, NumericKind):
        return tp
    if get_origin(tp) is Annotated:
        for meta in tp.__metadata__:
            if isinstance(meta, NumericKind):
                return meta
        tp = get_args(tp)[0]
    if isinstance(tp, str):
        return _BY_NAME.get(tp)
    if tp is int:
        return NumericKind.INT
    if tp is float:
        return NumericKind.F64
    return None


class _Unresolvable(Exception):
    """Raised when a textual annotation cannot be turned into a type."""


def _members(obj: Any) -> dict[str, Any]:
    try:
        return dict(inspect.getmembers(obj))
    except Exception:  # noqa: BLE001 - some objects refuse introspection
        return {}


_BUILTINS: dict[str, Any] = _members(builtins)


def _namespace(cls: type) -> dict[str, Any]:
    module = inspect.getmodule(cls)
    namespace = _members(module) if module is not None else {}
    namespace[cls.__name__] = cls
    return namespace


def _evaluate(node: ast.AST, namespace: dict[str, Any]) -> Any:
    if isinstance(node, ast.Name):
        if node.id in namespace:
            return namespace[node.id]
        if node.id in _BUILTINS:
            return _BUILTINS[node.id]
        raise _Unresolvable(node.id)
    if isinstance(node, ast.Attribute):
        members = _members(_evaluate(node.value, namespace))
        if node.attr not in members:
            raise _Unresolvable(node.attr)
        return members[node.attr]
    if isinstance(node, ast.Subscript):
        return _evaluate(node.value, namespace)[_evaluate(node.slice, namespace)]
    if isinstance(node, ast.Tuple):
        return tuple(_evaluate(element, namespace) for element in node.elts)
    if isinstance(node, ast.List):
        return [_evaluate(element, namespace) for element in node.elts]
    if isinstance(node, ast.Constant):
        if isinstance(node.value, str):
            return _resolve(node.value, namespace)
        return node.value
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return Union[_evaluate(node.left, namespace), _evaluate(node.right, namespace)]
    raise _Unresolvable(type(node).__name__)


def _resolve(annotation: Any, namespace: dict[str, Any]) -> Any:
    """Turn a textual annotation into the objects it names, where possible."""
    if not isinstance(annotation, str):
        return annotation
    try:
        tree = ast.parse(annotation.strip())
    except SyntaxError:
        return annotation
    if len(tree.body) != 1 or not isinstance(tree.body[0], ast.Expr):
        return annotation
    try:
        return _evaluate(tree.body[0].value, namespace)
    except (_Unresolvable, LookupError, AttributeError, TypeError):
        return annotation


def named_fields(cls: type) -> list[tuple[str, Any]]:
    """Return ``(name, annotation)`` for each field of a dataclass, in order."""
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError("Data is not a struct")
    namespace = _namespace(cls)
    return [(field.name, _resolve(field.type, namespace)) for field in dataclasses.fields(cls)]


def struct_name(cls: type) -> str:
    """Return the name of a class."""
    return cls.__name__


def is_numeric(tp: Any) -> bool:
    """Whether an annotation declares a numeric type."""
    return numeric_kind(tp) is not None


def is_string(tp: Any) -> bool:
    """Whether an annotation declares a string."""
    return tp is str or tp == "str"


def capitalize_first(name: str) -> str:
    """Upper-case the first character of ``name`` and keep the rest."""
    return name[:1].upper() + name[1:]