# nekoderive

Class decorators that generate per-field helper methods for dataclasses.
There are no runtime dependencies beyond the standard library.

| Module                | Decorator   | What it adds                                                         |
|-----------------------|-------------|----------------------------------------------------------------------|
| `nekoderive.math`     | `math`      | in-place arithmetic methods for every numeric field                  |
| `nekoderive.parser`   | `parser`    | key/value views and a compact binary encoding                        |
| `nekoderive.printing` | `printable` | `print()` and `print_<field>()` methods that build coloured messages |

Each decorator is applied on top of `@dataclass`. If the class is not a
dataclass, the decorator raises `TypeError("Data is not a struct")`.

## Installation

```
pip install nekoderive
```

## Numeric field types

Field types are ordinary annotations. `int` and `float` work as written.
`float` is treated as a 64-bit float. A plain `int` is unbounded.

For fixed-width semantics, annotate with the aliases in `nekoderive.helpers`:
`i8`, `i16`, `i32`, `i64`, `i128`, `isize`, `u8`, `u16`, `u32`, `u64`, `u128`,
`usize`, `f32` and `f64`. Each is an `Annotated` type that carries a
`NumericKind` member.

`NumericKind` offers:

- `minimum` and `maximum`, the bounds of the kind.
- `is_float()`.
- `coerce(value)`, which works like a numeric cast:
  - floats are truncated toward zero and saturated at the bounds;
  - NaN becomes 0;
  - `f32` values are rounded to single precision.

The module also provides these functions:

- `numeric_kind(tp)`
- `is_numeric(tp)`
- `is_string(tp)`
- `named_fields(cls)`, which gives `(name, annotation)` pairs and resolves string annotations where it can
- `struct_name(cls)`
- `capitalize_first(name)`

## `math`

For each field `f`, `math` adds these methods. Each one updates the field in place:

- `sum_f(other)`, `sub_f(other)`, `mul_f(other)` and `div_f(other)`.
  - For fixed-width integer kinds, a result outside the kind's range raises `OverflowError`.
  - Integer division truncates toward zero.
  - Integer division by zero raises `ZeroDivisionError`.
  - Float division by zero gives an infinity or NaN.
- `discount_f(percentage)` reduces the value by a percentage and never goes below zero.
- `inflate_f(percentage)` increases the value by a percentage and caps it at the kind's maximum. A NaN or infinite percentage leaves the value unchanged.
- `approach_f(target, max_delta)` moves the value toward `target` by at most `max_delta`.

Every field of the class must be numeric. Otherwise `math` raises `TypeError`.

The helpers `approach`, `discount` and `inflate` are also available as plain functions.

```python
from dataclasses import dataclass
from nekoderive.helpers import u8
from nekoderive.math import math

@math
@dataclass
class Account:
    balance: int = 100
    level: u8 = 100

acct = Account()
acct.discount_balance(25)        # 75
acct.approach_balance(100, 10)   # 85
acct.inflate_level(255)          # capped at 255
print(acct.balance, acct.level)  # 85 255
```

## `parser`

`parser` attaches two things to the class.

`ParserKey` is an enum with one member per field, named `<Struct><Field>`,
for example `UserName`.

`ParserValue` is a class with attributes of the same names. Each attribute
builds a hashable tagged value, for example `User.ParserValue.UserName("Abby")`.

It also adds these methods:

- `to_hash_map()` returns a dict from each key to its tagged value.
- `to_hash_set()` returns a set of the tagged values.
- `to_bincode()` encodes the instance to bytes.
- `from_bincode(data)` is a class method that decodes an instance.

The same encoding is available as `encode(obj)` and `decode(cls, data)`.

The layout is little-endian. Integers use a variable-length form, with
zig-zag for signed kinds. A plain `int` is encoded as a 64-bit signed value.
Strings, bytes and collections are length-prefixed. Fields are written in
declaration order.

Supported field types:

- `bool`
- the numeric types above
- `str` and `bytes`
- `Optional[...]`
- `list`, `set`, `frozenset`, and `tuple` (fixed or `tuple[X, ...]`)
- `dict`
- nested dataclasses
- enums, encoded by member index

Bytes after the decoded value are ignored. Values that do not fit and
malformed input raise `ParserError`, which is a subclass of `ValueError`.

```python
from dataclasses import dataclass
from nekoderive.parser import parser

@parser
@dataclass
class User:
    name: str
    age: int

user = User("Abby", 18)
views = user.to_hash_map()
assert views[User.ParserKey.UserName] == User.ParserValue.UserName("Abby")
assert User.from_bincode(user.to_bincode()) == user
```

## `printable`

`printable` adds `print()` and `print_<field>()` methods. Each returns a
`Printer` aimed at a deep copy of the whole instance or of that field.

A printer is immutable:

- `message(text)` returns a new printer that carries the text.
- `target(value)` returns a new printer aimed at another value.

Each level method formats a line, colours it with ANSI escapes, and returns
it. The level methods are coroutines: `rust`, `info`, `success`, `warning`,
`err`, `critical` and `panic`. A line looks like this:

```
(<timestamp> <file> <line>:<column>) @INFO => User.id:int = 1 hello
```

The file and line are where the decorator was applied. The whole-instance
form omits `User.id:int =`.

If a `transporter` callable is given, it receives every message and is
awaited when it returns an awaitable. `render(level)` formats the line for
a `Level` without emitting it. A printer with no target raises `ValueError`.

```python
import asyncio
from dataclasses import dataclass
from nekoderive.printing import printable

async def transporter(message):
    print(message)

@printable(transporter=transporter)
@dataclass
class User:
    id: int
    name: str

asyncio.run(User(1, "name").print_id().message("hello").info())
```

## What the package does not do

- It has no builder or validating-constructor decorator, so fields have no generated setters.
- It has no decorator for encrypting fields.
- It has no command-line interface.

## Running the tests

```
pip install -e .[test]
pytest
```