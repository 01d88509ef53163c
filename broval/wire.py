"""Binary encoding of value payloads: primitives, addresses, ports."""

from __future__ import annotations

import struct
from typing import Any

from .values import (
    Addr,
    InternalTag,
    Port,
    Protocol,
    Subnet,
    TypeTag,
    UnsupportedTypeError,
    Val,
    ValType,
)

_PORT_PROTO_BITS = {
    Protocol.TCP: 0x10000,
    Protocol.UDP: 0x20000,
    Protocol.ICMP: 0x30000,
}
_PORT_BITS_PROTO = {bits: proto for proto, bits in _PORT_PROTO_BITS.items()}

_UINT32 = struct.Struct(">I")
_UINT64 = struct.Struct(">Q")
_DOUBLE = struct.Struct(">d")

_UNWRITABLE_TAGS = frozenset(
    {
        TypeTag.UNKNOWN,
        TypeTag.PATTERN,
        TypeTag.TIMER,
        TypeTag.ANY,
        TypeTag.UNION,
        TypeTag.FUNC,
        TypeTag.FILE,
        TypeTag.ERROR,
        TypeTag.PACKET,
    }
)


class DecodeError(ValueError):
    """Raised when encoded data is truncated or malformed."""


def encode_port(port: Port) -> int:
    """The 64-bit wire form of a port: protocol bits above the port number."""
    value = port.num & 0xFFFF
    return value | _PORT_PROTO_BITS.get(port.proto, 0)


def decode_port(value: int) -> Port:
    """A port from its wire form; an unknown protocol gives protocol 0."""
    proto = _PORT_BITS_PROTO.get(value & 0xF0000, 0)
    return Port(value & 0xFFFF, int(proto))


class Writer:
    """Accumulates encoded data in network byte order."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def write_char(self, value: int) -> None:
        """Write a single byte."""
        value = int(value)
        if not -0x80 <= value <= 0xFF:
            raise ValueError(f"char value out of range: {value}")
        self._buf.append(value & 0xFF)

    def write_int(self, value: int) -> None:
        """Write an unsigned 32-bit integer."""
        value = int(value)
        if not -(2**31) <= value <= 2**32 - 1:
            raise ValueError(f"int value out of range: {value}")
        self._buf += _UINT32.pack(value & 0xFFFFFFFF)

    def write_int64(self, value: int) -> None:
        """Write a 64-bit integer; negative values use two's complement."""
        value = int(value)
        if not -(2**63) <= value <= 2**64 - 1:
            raise ValueError(f"int64 value out of range: {value}")
        self._buf += _UINT64.pack(value & 0xFFFFFFFFFFFFFFFF)

    def write_double(self, value: float) -> None:
        """Write an IEEE 754 double."""
        self._buf += _DOUBLE.pack(float(value))

    def write_string(self, value: bytes | str | None) -> None:
        """Write a length-prefixed string; None writes an empty string."""
        if value is None:
            data = b""
        elif isinstance(value, str):
            data = value.encode("utf-8")
        else:
            data = bytes(value)
        self.write_int(len(data))
        self._buf += data

    def write_addr(self, addr: Addr) -> None:
        """Write an address: one word for IPv4, four words otherwise."""
        words = addr.words[3:] if addr.is_v4() else addr.words
        self.write_int(len(words))
        for word in words:
            self.write_int(word)

    def write_subnet(self, subnet: Subnet) -> None:
        """Write a subnet's network address followed by its width."""
        self.write_addr(subnet.net)
        self.write_int(subnet.width)

    def getvalue(self) -> bytes:
        """Everything written so far."""
        return bytes(self._buf)


class Reader:
    """Reads encoded data written by :class:`Writer`."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise DecodeError(
                f"need {count} bytes at offset {self._pos}, "
                f"only {len(self._data) - self._pos} left"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def read_char(self) -> int:
        return self._take(1)[0]

    def read_int(self) -> int:
        return _UINT32.unpack(self._take(4))[0]

    def read_int64(self) -> int:
        return _UINT64.unpack(self._take(8))[0]

    def read_double(self) -> float:
        return _DOUBLE.unpack(self._take(8))[0]

    def read_string(self) -> bytes:
        return self._take(self.read_int())

    def read_addr(self) -> Addr:
        count = self.read_int()
        if count == 1:
            return Addr((0, 0, 0xFFFF, self.read_int()))
        if count == 4:
            return Addr(tuple(self.read_int() for _ in range(4)))
        raise DecodeError(f"bad IP address word length: {count}")

    def read_subnet(self) -> Subnet:
        net = self.read_addr()
        width = self.read_int()
        try:
            return Subnet(net, width)
        except ValueError as exc:
            raise DecodeError(str(exc)) from None

    def at_end(self) -> bool:
        """Whether all data has been consumed."""
        return self._pos >= len(self._data)


def write_payload(writer: Writer, val: Val) -> None:
    """Write the payload of ``val`` as its internal storage kind dictates.

    Values of composite kinds carry no payload here and write nothing.
    """
    if val.val_type is None:
        raise ValueError("cannot write a val without a type")
    tag = val.val_type.tag
    if tag in _UNWRITABLE_TAGS:
        raise UnsupportedTypeError(f"type {tag.name} cannot be written")
    internal = val.val_type.internal_tag
    data: Any = val.data()
    if internal in (InternalTag.INT, InternalTag.UNSIGNED):
        if tag is TypeTag.PORT:
            writer.write_int64(encode_port(data))
        else:
            writer.write_int64(int(data))
    elif internal is InternalTag.DOUBLE:
        writer.write_double(data)
    elif internal is InternalTag.STRING:
        writer.write_string(data)
    elif internal is InternalTag.IPADDR:
        writer.write_addr(data)
    elif internal is InternalTag.SUBNET:
        writer.write_subnet(data)
    elif internal is not InternalTag.OTHER:
        raise UnsupportedTypeError(f"unknown internal type tag {internal!r}")


def read_payload(reader: Reader, val_type: ValType | int) -> Val:
    """Read a payload of type ``val_type`` and return it as a new value."""
    if not isinstance(val_type, ValType):
        val_type = ValType(val_type)
    tag = val_type.tag
    internal = val_type.internal_tag
    val = Val(val_type)
    if internal in (InternalTag.INT, InternalTag.UNSIGNED):
        raw = reader.read_int64()
        if tag is TypeTag.PORT:
            port = decode_port(raw)
            if port.proto == 0:
                raise DecodeError(f"unknown port protocol bits in {raw:#x}")
            val.assign(port)
        elif internal is InternalTag.INT and raw >= 2**63:
            val.assign(raw - 2**64)
        else:
            val.assign(raw)
    elif internal is InternalTag.DOUBLE:
        val.assign(reader.read_double())
    elif internal is InternalTag.STRING:
        val.assign(reader.read_string())
    elif internal is InternalTag.IPADDR:
        val.assign(reader.read_addr())
    elif internal is InternalTag.SUBNET:
        val.assign(reader.read_subnet())
    elif internal is InternalTag.OTHER:
        if tag in (TypeTag.FUNC, TypeTag.FILE):
            raise DecodeError(f"values of type {tag.name} cannot be read")
    else:
        raise DecodeError(f"unsupported internal type tag {internal.name}")
    return val