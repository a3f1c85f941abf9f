"""Derivation of in-place arithmetic methods for numeric dataclass fields."""

from __future__ import annotations

from math import copysign, isinf, isnan
from typing import Any, Callable

from .helpers import NumericKind, named_fields, numeric_kind, struct_name

Number = Any


def approach(value: Number, target: Number, max_delta: Number) -> Number:
    """Move ``value`` toward ``target`` by at most ``max_delta``."""
    if target >= value:
        return target if target - value <= max_delta else value + max_delta
    return target if value - target <= max_delta else value - max_delta


def discount(value: Number, percentage: Number, kind: NumericKind) -> Number:
    """Reduce ``value`` by ``percentage`` percent, never going below zero."""
    discounted = float(value) * (1.0 - float(percentage) / 100.0)
    if isnan(discounted) or discounted < 0.0:
        discounted = 0.0
    return kind.coerce(discounted)


def inflate(value: Number, percentage: Number, kind: NumericKind) -> Number:
    """Increase ``value`` by ``percentage`` percent, capped at the kind's maximum.

    A NaN or infinite percentage leaves the value unchanged.
    """
    pct = float(percentage)
    if isnan(pct) or isinf(pct):
        return value
    inflated = float(value) * (1.0 + pct / 100.0)
    maximum = kind.maximum
    if maximum is not None and inflated > float(maximum):
        return maximum
    return kind.coerce(inflated)


def _fit(kind: NumericKind, value: Number) -> Number:
    if kind.is_float():
        return kind.coerce(value)
    if not isinstance(value, int):
        raise TypeError(f"expected an integer for {kind.value}, got {value!r}")
    low, high = kind.minimum, kind.maximum
    if low is not None and not low <= value <= high:
        raise OverflowError(f"arithmetic overflow for {kind.value}")
    return value


def _divide(kind: NumericKind, left: Number, right: Number) -> Number:
    if kind.is_float():
        left, right = float(left), float(right)
        if right == 0.0:
            if isnan(left) or left == 0.0:
                return float("nan")
            return copysign(float("inf"), left) * copysign(1.0, right)
        return left / right
    if right == 0:
        raise ZeroDivisionError("attempt to divide by zero")
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


Factory = Callable[[str, NumericKind], Callable[..., None]]


def _arithmetic(operation: Callable[[NumericKind, Number, Number], Number]) -> Factory:
    def factory(name: str, kind: NumericKind) -> Callable[..., None]:
        def method(self: Any, other: Number) -> None:
            setattr(self, name, _fit(kind, operation(kind, getattr(self, name), other)))

        return method

    return factory


def _percentage(transform: Callable[[Number, Number, NumericKind], Number]) -> Factory:
    def factory(name: str, kind: NumericKind) -> Callable[..., None]:
        def method(self: Any, percentage: Number) -> None:
            setattr(self, name, transform(getattr(self, name), percentage, kind))

        return method

    return factory


def _approach_factory(name: str, kind: NumericKind) -> Callable[..., None]:
    def method(self: Any, target: Number, max_delta: Number) -> None:
        setattr(self, name, _fit(kind, approach(getattr(self, name), target, max_delta)))

    return method


_FACTORIES: list[tuple[str, Factory]] = [
    ("discount", _percentage(discount)),
    ("div", _arithmetic(_divide)),
    ("mul", _arithmetic(lambda _kind, a, b: a * b)),
    ("sub", _arithmetic(lambda _kind, a, b: a - b)),
    ("sum", _arithmetic(lambda _kind, a, b: a + b)),
    ("inflate", _percentage(inflate)),
    ("approach", _approach_factory),
]


def math(cls: type) -> type:
    """Class decorator adding arithmetic methods for every numeric field.

    For each field ``f`` it adds ``discount_f``, ``div_f``, ``mul_f``,
    ``sub_f``, ``sum_f``, ``inflate_f`` and ``approach_f``, each of which
    updates the field in place. Every field must be numeric.
    """
    for name, annotation in named_fields(cls):
        kind = numeric_kind(annotation)
        if kind is None:
            raise TypeError(f"field {name!r} of {struct_name(cls)} is not numeric")
        for prefix, factory in _FACTORIES:
            method = factory(name, kind)
            method.__name__ = f"{prefix}_{name}"
            method.__qualname__ = f"{cls.__qualname__}.{method.__name__}"
            setattr(cls, method.__name__, method)
    return cls