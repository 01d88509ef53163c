"""Typed values: atomic value kinds, list values and mutable values."""

from __future__ import annotations

import copy as _copy
import ipaddress
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from numbers import Real
from typing import Any, Iterable, Iterator

PROP_PERSISTENT = 0x01
"""Mutable value property: the value is persistent."""

PROP_SYNCHRONIZED = 0x02
"""Mutable value property: the value is synchronized with the peer."""

_INT_MIN = -(2**63)
_UINT_MAX = 2**64 - 1
_WORD_MAX = 2**32 - 1


class TypeTag(IntEnum):
    """Type identifiers of values."""

    UNKNOWN = 0
    BOOL = 1
    INT = 2
    COUNT = 3
    COUNTER = 4
    DOUBLE = 5
    TIME = 6
    INTERVAL = 7
    STRING = 8
    PATTERN = 9
    ENUM = 10
    TIMER = 11
    PORT = 12
    IPADDR = 13
    SUBNET = 14
    ANY = 15
    TABLE = 16
    UNION = 17
    RECORD = 18
    LIST = 19
    FUNC = 20
    FILE = 21
    VECTOR = 22
    ERROR = 23
    PACKET = 24
    SET = 25


class InternalTag(IntEnum):
    """How a value of a given type is stored and serialized."""

    INT = 1
    UNSIGNED = 2
    DOUBLE = 3
    STRING = 4
    IPADDR = 5
    SUBNET = 6
    OTHER = 7
    ERROR = 8


class Protocol(IntEnum):
    """Transport protocols a port may belong to."""

    ICMP = 1
    TCP = 6
    UDP = 17


class UnsupportedTypeError(ValueError):
    """Raised when a value type cannot be created or assigned."""


_INTERNAL_TAGS = {
    TypeTag.BOOL: InternalTag.INT,
    TypeTag.INT: InternalTag.INT,
    TypeTag.ENUM: InternalTag.INT,
    TypeTag.COUNT: InternalTag.UNSIGNED,
    TypeTag.COUNTER: InternalTag.UNSIGNED,
    TypeTag.PORT: InternalTag.UNSIGNED,
    TypeTag.DOUBLE: InternalTag.DOUBLE,
    TypeTag.TIME: InternalTag.DOUBLE,
    TypeTag.INTERVAL: InternalTag.DOUBLE,
    TypeTag.STRING: InternalTag.STRING,
    TypeTag.IPADDR: InternalTag.IPADDR,
    TypeTag.SUBNET: InternalTag.SUBNET,
    TypeTag.UNKNOWN: InternalTag.ERROR,
    TypeTag.ERROR: InternalTag.ERROR,
}


def _to_tag(tag: Any) -> TypeTag:
    try:
        return TypeTag(tag)
    except ValueError:
        raise UnsupportedTypeError(f"unknown type identifier {tag!r}") from None


def internal_tag_of(tag: int) -> InternalTag:
    """The internal storage tag used for values of type ``tag``."""
    return _INTERNAL_TAGS.get(_to_tag(tag), InternalTag.OTHER)


@dataclass(frozen=True)
class Port:
    """A transport-layer port number with its protocol."""

    num: int
    proto: int


@dataclass(frozen=True)
class Addr:
    """An IP address held as four 32-bit words; IPv4 uses the mapped form."""

    words: tuple[int, int, int, int] = (0, 0, 0, 0)

    def __post_init__(self) -> None:
        words = tuple(self.words)
        if len(words) != 4:
            raise ValueError("an address has exactly four words")
        for word in words:
            if not isinstance(word, int) or not 0 <= word <= _WORD_MAX:
                raise ValueError(f"address word out of range: {word!r}")
        object.__setattr__(self, "words", words)

    @classmethod
    def from_ipv4(cls, value: int | str) -> Addr:
        """An IPv4-mapped address from an integer or dotted-quad string."""
        return cls((0, 0, 0xFFFF, int(ipaddress.IPv4Address(value))))

    def is_v4(self) -> bool:
        """Whether this is an IPv4-mapped address."""
        return self.words[:3] == (0, 0, 0xFFFF)

    def __str__(self) -> str:
        if self.is_v4():
            return str(ipaddress.IPv4Address(self.words[3]))
        return str(ipaddress.IPv6Address(struct.pack("!4I", *self.words)))


@dataclass(frozen=True)
class Subnet:
    """A network address with a prefix width."""

    net: Addr = field(default_factory=Addr)
    width: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.net, Addr):
            raise TypeError("subnet network must be an Addr")
        if not isinstance(self.width, int) or not 0 <= self.width <= 128:
            raise ValueError(f"subnet width out of range: {self.width!r}")


@dataclass(frozen=True)
class ValType:
    """The type of a value, optionally with a type name (e.g. for enums)."""

    tag: TypeTag
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tag", _to_tag(self.tag))

    @property
    def internal_tag(self) -> InternalTag:
        return internal_tag_of(self.tag)


def _as_type(val_type: Any) -> ValType | None:
    if val_type is None or isinstance(val_type, ValType):
        return val_type
    return ValType(_to_tag(val_type))


def _default(val_type: ValType | None) -> Any:
    if val_type is None:
        return None
    if val_type.tag is TypeTag.BOOL:
        return False
    if val_type.tag is TypeTag.PORT:
        return Port(0, 0)
    return {
        InternalTag.INT: 0,
        InternalTag.UNSIGNED: 0,
        InternalTag.DOUBLE: 0.0,
        InternalTag.STRING: b"",
        InternalTag.IPADDR: Addr(),
        InternalTag.SUBNET: Subnet(),
    }.get(val_type.internal_tag)


def _coerce(tag: TypeTag, data: Any) -> Any:
    if tag is TypeTag.BOOL:
        return bool(data)
    if tag in (TypeTag.INT, TypeTag.COUNT, TypeTag.COUNTER, TypeTag.ENUM):
        if not isinstance(data, int):
            raise TypeError(f"{tag.name} value must be an integer")
        if not _INT_MIN <= data <= _UINT_MAX:
            raise ValueError(f"{tag.name} value out of 64-bit range: {data}")
        return int(data)
    if tag in (TypeTag.DOUBLE, TypeTag.TIME, TypeTag.INTERVAL):
        if not isinstance(data, Real):
            raise TypeError(f"{tag.name} value must be a number")
        return float(data)
    if tag is TypeTag.STRING:
        if isinstance(data, str):
            return data.encode("utf-8")
        if isinstance(data, (bytes, bytearray, memoryview)):
            return bytes(data)
        raise TypeError("STRING value must be str or bytes")
    if tag is TypeTag.PORT:
        if not isinstance(data, Port):
            raise TypeError("PORT value must be a Port")
        if data.proto not in set(Protocol):
            raise ValueError(f"unsupported port protocol {data.proto}")
        return data
    if tag is TypeTag.IPADDR:
        if not isinstance(data, Addr):
            raise TypeError("IPADDR value must be an Addr")
        return data
    if tag is TypeTag.SUBNET:
        if not isinstance(data, Subnet):
            raise TypeError("SUBNET value must be a Subnet")
        return data
    raise UnsupportedTypeError(f"type {tag.name} cannot be assigned here")


class Val:
    """A value with a type. A value without a type is unassigned."""

    def __init__(self, val_type: ValType | int | None = None, value: Any = None) -> None:
        self.val_type = _as_type(val_type)
        self._value = _default(self.val_type)
        if value is not None:
            self.assign(value)

    def assign(self, data: Any) -> None:
        """Store ``data``; assigning None marks the value as unassigned."""
        if data is None:
            self.val_type = None
            self._value = None
            return
        if self.val_type is None:
            raise ValueError("cannot assign to a val without a type")
        self._value = _coerce(self.val_type.tag, data)

    def data(self) -> Any:
        """The stored value, or None if there is none."""
        return self._value

    def type_tag(self) -> TypeTag:
        """The value's type tag; UNKNOWN for an unassigned value."""
        return self.val_type.tag if self.val_type is not None else TypeTag.UNKNOWN

    def copy(self) -> Val:
        """A deep, independent copy of this value."""
        return _copy.deepcopy(self)

    def _compares_payload(self) -> bool:
        return (
            self.val_type is not None
            and self.val_type.internal_tag is not InternalTag.OTHER
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Val):
            return NotImplemented
        if self.val_type != other.val_type:
            return False
        if not self._compares_payload():
            return True
        return self._value == other._value

    def __hash__(self) -> int:
        payload = self._value if self._compares_payload() else None
        return hash((self.val_type, payload))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.val_type!r}, {self._value!r})"


class ListVal(Val):
    """An ordered list of values sharing one element type tag."""

    def __init__(self, type_tag: int = TypeTag.UNKNOWN, items: Iterable[Val] = ()) -> None:
        super().__init__(ValType(TypeTag.LIST))
        if not isinstance(type_tag, int) or not 0 <= type_tag <= 255:
            raise ValueError(f"element type tag out of range: {type_tag!r}")
        self.element_tag = int(type_tag)
        self._items: list[Val] = []
        for item in items:
            self.append(item)

    def append(self, val: Val) -> None:
        """Add ``val`` at the end; the list takes it as is, without copying."""
        if not isinstance(val, Val):
            raise TypeError("list elements must be Val instances")
        self._items.append(val)

    def pop_front(self) -> Val:
        """Remove and return the first element."""
        if not self._items:
            raise IndexError("pop from an empty list value")
        return self._items.pop(0)

    def front(self) -> Val:
        """The first element, left in place."""
        if not self._items:
            raise IndexError("front of an empty list value")
        return self._items[0]

    def data(self) -> list[Val]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Val]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ListVal):
            return NotImplemented
        return self.element_tag == other.element_tag and self._items == other._items

    def __hash__(self) -> int:
        return hash((self.element_tag, tuple(self._items)))


class MutableVal(Val):
    """A value bound to an identifier name, carrying property flags.

    Two mutable values compare equal when their identifier names and
    properties match.
    """

    def __init__(
        self,
        val_type: ValType | int | None = None,
        value: Any = None,
        name: str | None = None,
        props: int = 0,
    ) -> None:
        super().__init__(val_type, value)
        if not isinstance(props, int) or not 0 <= props <= 0xFF:
            raise ValueError(f"properties out of range: {props!r}")
        self.name = name
        self.props = props

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MutableVal):
            return NotImplemented
        return self.name == other.name and self.props == other.props

    def __hash__(self) -> int:
        return hash((self.name, self.props))


_PLAIN_TAGS = frozenset(
    {
        TypeTag.BOOL,
        TypeTag.INT,
        TypeTag.COUNT,
        TypeTag.COUNTER,
        TypeTag.DOUBLE,
        TypeTag.TIME,
        TypeTag.INTERVAL,
        TypeTag.STRING,
        TypeTag.TIMER,
        TypeTag.PORT,
        TypeTag.IPADDR,
        TypeTag.SUBNET,
        TypeTag.ENUM,
    }
)


def new_val(tag: int, type_name: str | None = None) -> Val:
    """Create an empty value of the given type."""
    tag = _to_tag(tag)
    if tag in _PLAIN_TAGS:
        return Val(ValType(tag, type_name))
    if tag in (TypeTag.SET, TypeTag.TABLE):
        from .tables import TableVal

        table_val = TableVal(None, None, None)
        table_val.val_type = ValType(tag, type_name)
        return table_val
    if tag is TypeTag.RECORD:
        from .records import RecordVal

        return RecordVal(None, type_name)
    if tag is TypeTag.VECTOR:
        from .records import VectorVal

        return VectorVal(None, type_name)
    raise UnsupportedTypeError(f"unsupported value type {tag.name}")