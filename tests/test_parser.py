from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pytest

from nekoderive.helpers import f64, i32, u8, u16, u32
from nekoderive.parser import ParserError, decode, encode, parser


@parser
@dataclass(frozen=True)
class Friend:
    name: str


def _user_class():
    @dataclass
    class User:
        name: str
        friend: Friend
        age: u8

    User.__qualname__ = "User"
    return User


User = parser(_user_class())


@dataclass
class Numbers:
    small: u16
    negative: i32
    tiny: u32


@dataclass
class Collections:
    tags: list[str]
    nickname: Optional[str]
    scores: dict[str, u8]
    active: bool
    ratio: f64


def make_user(cls=None):
    cls = cls or User
    return cls(age=18, friend=Friend(name="John"), name="Abby")


def test_parser_hash_map():
    user = make_user()
    mapping = user.to_hash_map()
    assert mapping[User.ParserKey.UserName] == User.ParserValue.UserName("Abby")
    assert mapping[User.ParserKey.UserAge] == User.ParserValue.UserAge(18)
    assert mapping[User.ParserKey.UserFriend] == User.ParserValue.UserFriend(Friend(name="John"))
    assert len(mapping) == 3
    assert decode(User, encode(user)).to_hash_map() == mapping


def test_parser_hash_set():
    user = make_user()
    values = user.to_hash_set()
    assert User.ParserValue.UserName("Abby") in values
    assert User.ParserValue.UserAge(18) in values
    assert User.ParserValue.UserFriend(Friend(name="John")) in values
    assert values == {
        User.ParserValue.UserName("Abby"),
        User.ParserValue.UserAge(18),
        User.ParserValue.UserFriend(Friend(name="John")),
    }
    assert decode(User, encode(user)).to_hash_set() == values


def test_parser_bincode_round_trip():
    user = make_user()
    data = user.to_bincode()
    assert data == encode(user)
    assert User.from_bincode(data) == user
    assert decode(User, data) == user


def test_bincode_layout_of_user():
    assert encode(make_user()) == b"\x04Abby\x04John\x12"
    assert make_user().to_bincode() == b"\x04Abby\x04John\x12"


def test_key_enum_names_and_order():
    parsed = parser(_user_class())
    assert [member.name for member in parsed.ParserKey] == ["UserName", "UserFriend", "UserAge"]
    assert parsed.ParserKey.__name__ == "UserParserKey"
    assert parsed.ParserValue.__name__ == "UserParserValue"


def test_values_of_different_variants_differ():
    parsed = parser(_user_class())
    assert parsed.ParserValue.UserName("18") != parsed.ParserValue.UserAge(18)
    assert parsed.ParserValue.UserName("x").key is parsed.ParserKey.UserName
    assert parsed.ParserValue.UserName("x").value == "x"


def test_value_repr():
    parsed = parser(_user_class())
    assert repr(parsed.ParserValue.UserAge(18)) == "UserParserValue.UserAge(18)"


def test_friend_hash_map():
    friend = Friend(name="Ann")
    mapping = friend.to_hash_map()
    assert mapping == {Friend.ParserKey.FriendName: Friend.ParserValue.FriendName("Ann")}
    assert decode(Friend, encode(friend)).to_hash_map() == mapping


def test_varint_layout():
    assert encode(Numbers(small=300, negative=-1, tiny=250)) == b"\xfb\x2c\x01\x01\xfa"


def test_larger_varints():
    data = encode(Numbers(small=1, negative=-2, tiny=70000))
    assert data == b"\x01\x03\xfc\x70\x11\x01\x00"
    assert decode(Numbers, data) == Numbers(small=1, negative=-2, tiny=70000)


def test_utf8_string_is_length_prefixed():
    assert encode(Friend(name="é")) == b"\x02\xc3\xa9"


def test_collections_round_trip():
    value = Collections(
        tags=["a", "bc"], nickname=None, scores={"x": 1, "y": 200}, active=True, ratio=1.5
    )
    assert decode(Collections, encode(value)) == value
    other = Collections(tags=[], nickname="nick", scores={}, active=False, ratio=-0.25)
    assert decode(Collections, encode(other)) == other


def test_bool_and_option_bytes():
    value = Collections(tags=[], nickname="n", scores={}, active=True, ratio=1.0)
    assert encode(value) == b"\x00\x01\x01n\x00\x01" + b"\x00\x00\x00\x00\x00\x00\xf0\x3f"


def test_trailing_bytes_are_ignored():
    data = encode(make_user()) + b"\xff\xff"
    assert User.from_bincode(data) == make_user()
    assert decode(User, data) == make_user()


def test_truncated_input_raises():
    data = encode(make_user())
    with pytest.raises(ParserError):
        User.from_bincode(data[:-1])


def test_invalid_utf8_raises():
    with pytest.raises(ParserError):
        decode(Friend, b"\x02\xff\xfe")


def test_out_of_range_decode_raises():
    with pytest.raises(ParserError):
        decode(Numbers, b"\xfc\x70\x11\x01\x00\x00\x00")


def test_invalid_bool_raises():
    with pytest.raises(ParserError):
        decode(bool, b"\x02")


def test_out_of_range_encode_raises():
    user = User(name="Abby", friend=Friend(name="John"), age=300)
    with pytest.raises(ParserError):
        encode(user)


def test_wrong_type_encode_raises():
    user = User(name=5, friend=Friend(name="John"), age=18)
    with pytest.raises(ParserError):
        encode(user)


def test_parser_requires_dataclass():
    class Plain:
        pass

    with pytest.raises(TypeError):
        parser(Plain)


def test_scalar_round_trip():
    assert decode(str, encode("hello")) == "hello"
    assert encode(True) == b"\x01"
    assert decode(int, encode(-5)) == -5