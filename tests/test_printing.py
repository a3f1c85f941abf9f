import re
from dataclasses import dataclass, field

import pytest

from nekoderive.helpers import i32
from nekoderive.printing import Level, Printer, printable

RECEIVED: list[str] = []


def _collect(message: str) -> None:
    RECEIVED.append(message)
    assert "message" in message


def _define():
    """Return fresh, undecorated Friend and User dataclasses."""

    @dataclass
    class Friend:
        id: i32 = 0
        name: str = ""

    @dataclass
    class User:
        id: i32 = 0
        name: str = ""
        friend: Friend = field(default_factory=Friend)

    Friend.__qualname__ = "Friend"
    User.__qualname__ = "User"
    return Friend, User


ANSI = re.compile(r"\x1b\[[0-9;]*m")


def _plain(text: str) -> str:
    return ANSI.sub("", text)


def _user(friend_cls, user_cls):
    return user_cls(id=1, name="name", friend=friend_cls(id=1, name="name"))


LEVEL_METHODS = [
    ("err", Level.ERROR),
    ("info", Level.INFO),
    ("success", Level.SUCCESS),
    ("warning", Level.WARNING),
    ("critical", Level.CRITICAL),
    ("panic", Level.PANIC),
    ("rust", Level.RUST),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("method,level", LEVEL_METHODS)
async def test_print_user_levels(method, level):
    friend_cls, user_cls = _define()
    user_cls = printable(user_cls, transporter=_collect)
    user = _user(friend_cls, user_cls)
    RECEIVED.clear()
    for printer in (
        user.print_id().message(f"{method} id message"),
        user.print_name().message(f"{method} name message"),
        user.print().message("custom message for all"),
    ):
        result = await getattr(printer, method)()
        assert f"@{level.label} =>" in _plain(result)
        assert result.startswith(f"\x1b[{level.sgr}m")
        assert result.endswith("\x1b[0m")
    assert len(RECEIVED) == 3
    assert all("message" in m for m in RECEIVED)


@pytest.mark.asyncio
async def test_field_message_format():
    friend_cls, user_cls = _define()
    user_cls = printable(user_cls, transporter=_collect)
    user = _user(friend_cls, user_cls)
    raw = await user.print_id().message("info id message").info()
    result = _plain(raw)
    assert result.endswith(" @INFO => User.id:i32 = 1 info id message")
    assert result.startswith("(")
    pattern = (
        r"\(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{6} [+-]\d{2}:\d{2} \S*test_printing\.py \d+:1\) "
        r"@INFO => User\.id:i32 = 1 info id message"
    )
    assert bool(re.fullmatch(pattern, result)) is True


@pytest.mark.asyncio
async def test_string_field_and_type_names():
    friend_cls, user_cls = _define()
    user_cls = printable(user_cls, transporter=_collect)
    user = _user(friend_cls, user_cls)
    name_line = _plain(await user.print_name().message("message").success())
    assert "User.name:str = 'name' message" in name_line
    friend_line = _plain(await user.print_friend().message("message").warning())
    assert "User.friend:Friend = Friend(id=1, name='name') message" in friend_line


@pytest.mark.asyncio
async def test_whole_struct_message():
    friend_cls, user_cls = _define()
    user_cls = printable(user_cls, transporter=_collect)
    user = _user(friend_cls, user_cls)
    line = _plain(await user.print().message("custom message for all").critical())
    assert line.endswith(
        "@CRITICAL => User(id=1, name='name', friend=Friend(id=1, name='name')) custom message for all"
    )


def test_printer_names():
    friend_cls, user_cls = _define()
    friend_cls = printable(friend_cls, transporter=_collect)
    user_cls = printable(user_cls, transporter=_collect)
    user = _user(friend_cls, user_cls)
    assert user.print_id().name == "NekoPrintUserId"
    assert user.print_friend().name == "NekoPrintUserFriend"
    assert user.print().name == "NekoPrintUser"
    assert friend_cls().print_name().name == "NekoPrintFriendName"


def test_printer_holds_a_copy():
    friend_cls, user_cls = _define()
    user_cls = printable(user_cls, transporter=_collect)
    user = _user(friend_cls, user_cls)
    printer = user.print()
    user.friend.name = "changed"
    assert printer.value.friend.name == "name"


def test_target_and_message_return_new_printers():
    base = Printer(name="NekoPrintThing", struct="Thing")
    aimed = base.target(5).message("hello")
    assert aimed.value == 5
    assert aimed.text == "hello"
    assert base.text is None
    with pytest.raises(ValueError, match="NekoPrintThing is required"):
        base.render(Level.INFO)


@pytest.mark.asyncio
async def test_missing_target_raises():
    with pytest.raises(ValueError, match="target for NekoPrintThing"):
        await Printer(name="NekoPrintThing", struct="Thing").panic()


@pytest.mark.asyncio
async def test_async_transporter_is_awaited():
    seen = []

    async def sink(message):
        seen.append(_plain(message))

    @dataclass
    class Item:
        count: int = 3

    item_cls = printable(Item, transporter=sink)
    returned = await item_cls().print_count().message("done").info()
    assert seen == [_plain(returned)]
    assert seen[0].endswith("Item.count:int = 3 done")


@pytest.mark.asyncio
async def test_bare_decorator_without_transporter():
    @dataclass
    class Point:
        x: int = 2

    point_cls = printable(Point)
    line = _plain(await point_cls().print_x().err())
    assert line.endswith("@ERROR => Point.x:int = 2 ")


def test_non_dataclass_rejected():
    class Plain:
        pass

    with pytest.raises(TypeError):
        printable(Plain)


def test_level_paint():
    assert Level.SUCCESS.paint("ok") == "\x1b[32mok\x1b[0m"
    assert Level.PANIC.paint("x") == "\x1b[38;2;225;32;254mx\x1b[0m"