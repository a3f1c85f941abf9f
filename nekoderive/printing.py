"""Derivation of coloured, levelled printers for dataclasses and their fields."""

from __future__ import annotations

import copy
import dataclasses
import enum
import inspect
import pprint
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union

from .helpers import capitalize_first, named_fields, numeric_kind, struct_name

Transporter = Callable[[str], Union[None, Awaitable[None]]]

_RESET = "\x1b[0m"


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


_MISSING: Any = _Missing()


class Level(enum.Enum):
    """A severity level with the label and colour it is printed with."""

    RUST = ("RUST", "38;2;255;165;0")
    INFO = ("INFO", "38;2;0;191;255")
    SUCCESS = ("SUCCESS", "32")
    WARNING = ("WARNING", "33")
    ERROR = ("ERROR", "38;2;255;49;49")
    CRITICAL = ("CRITICAL", "31")
    PANIC = ("PANIC", "38;2;225;32;254")

    def __init__(self, label: str, sgr: str) -> None:
        self.label = label
        self.sgr = sgr

    def paint(self, text: str) -> str:
        """Wrap ``text`` in the terminal colour of this level."""
        return f"\x1b[{self.sgr}m{text}{_RESET}"


def _timestamp() -> str:
    now = datetime.now().astimezone()
    offset = now.strftime("%z")
    if len(offset) == 5:
        offset = f"{offset[:3]}:{offset[3:]}"
    return f"{now:%Y-%m-%d %H:%M:%S.%f} {offset}"


def _type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__qualname__
    kind = numeric_kind(tp)
    if kind is not None:
        return kind.value
    return str(tp)


@dataclasses.dataclass(frozen=True)
class Printer:
    """Builds and emits a levelled message about a struct or one of its fields.

    ``target`` and ``message`` return a new printer; the level methods render
    the message and hand it to the transporter, awaiting it when it is async.
    """

    name: str
    struct: str
    field: Optional[str] = None
    type_name: Optional[str] = None
    location: tuple[str, int, int] = ("<unknown>", 0, 0)
    transporter: Optional[Transporter] = dataclasses.field(default=None, repr=False, compare=False)
    value: Any = _MISSING
    text: Optional[str] = None

    def target(self, value: Any) -> Printer:
        """Return a printer aimed at ``value``."""
        return dataclasses.replace(self, value=value)

    def message(self, text: str) -> Printer:
        """Return a printer carrying the extra message ``text``."""
        return dataclasses.replace(self, text=str(text))

    def render(self, level: Level) -> str:
        """Format the coloured line for ``level``.

        Raises ValueError when no target has been set.
        """
        if self.value is _MISSING:
            raise ValueError(f"NekoPrint: target for {self.name} is required")
        path, line, column = self.location
        header = f"({_timestamp()} {path} {line}:{column}) @{level.label} =>"
        body = pprint.pformat(self.value)
        extra = self.text or ""
        if self.field is None:
            text = f"{header} {body} {extra}"
        else:
            text = f"{header} {self.struct}.{self.field}:{self.type_name} = {body} {extra}"
        return level.paint(text)

    async def _emit(self, level: Level) -> str:
        message = self.render(level)
        if self.transporter is not None:
            result = self.transporter(message)
            if inspect.isawaitable(result):
                await result
        return message

    async def rust(self) -> str:
        """Emit at the RUST level and return the message."""
        return await self._emit(Level.RUST)

    async def info(self) -> str:
        """Emit at the INFO level and return the message."""
        return await self._emit(Level.INFO)

    async def success(self) -> str:
        """Emit at the SUCCESS level and return the message."""
        return await self._emit(Level.SUCCESS)

    async def warning(self) -> str:
        """Emit at the WARNING level and return the message."""
        return await self._emit(Level.WARNING)

    async def err(self) -> str:
        """Emit at the ERROR level and return the message."""
        return await self._emit(Level.ERROR)

    async def critical(self) -> str:
        """Emit at the CRITICAL level and return the message."""
        return await self._emit(Level.CRITICAL)

    async def panic(self) -> str:
        """Emit at the PANIC level and return the message."""
        return await self._emit(Level.PANIC)


def _caller_location() -> tuple[str, int, int]:
    frame = inspect.currentframe()
    caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
    if caller is None:
        return ("<unknown>", 0, 0)
    return (caller.f_code.co_filename, caller.f_lineno, 1)


def _field_method(template: Printer, field: str) -> Callable[[Any], Printer]:
    def method(self: Any) -> Printer:
        return template.target(copy.deepcopy(getattr(self, field)))

    return method


def _derive(cls: type, transporter: Optional[Transporter], location: tuple[str, int, int]) -> type:
    name = struct_name(cls)
    for field, annotation in named_fields(cls):
        template = Printer(
            name=f"NekoPrint{name}{capitalize_first(field)}",
            struct=name,
            field=field,
            type_name=_type_name(annotation),
            location=location,
            transporter=transporter,
        )
        method = _field_method(template, field)
        method.__name__ = f"print_{field}"
        method.__qualname__ = f"{cls.__qualname__}.{method.__name__}"
        setattr(cls, method.__name__, method)

    whole = Printer(name=f"NekoPrint{name}", struct=name, location=location, transporter=transporter)

    def print_(self: Any) -> Printer:
        return whole.target(copy.deepcopy(self))

    print_.__name__ = "print"
    print_.__qualname__ = f"{cls.__qualname__}.print"
    cls.print = print_
    return cls


def printable(cls: Optional[type] = None, *, transporter: Optional[Transporter] = None) -> Any:
    """Class decorator adding ``print_<field>`` methods and ``print`` to a dataclass.

    Each returns a Printer aimed at a copy of the field or of the whole
    instance. ``transporter`` receives every rendered message; without one the
    message is only returned. Usable bare or with keyword arguments.
    """
    location = _caller_location()
    if cls is None:
        return lambda target_cls: _derive(target_cls, transporter, location)
    return _derive(cls, transporter, location)