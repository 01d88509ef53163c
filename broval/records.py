"""Records and the record and vector values that carry them."""

from __future__ import annotations

from typing import Any, Iterator, Sequence

from .values import (
    InternalTag,
    MutableVal,
    TypeTag,
    UnsupportedTypeError,
    Val,
    ValType,
)
from .vector import Vector
from .wire import DecodeError, Reader, Writer, read_payload, write_payload


class Record:
    """An ordered collection of values, each with an optional field name."""

    def __init__(self) -> None:
        self._fields: list[tuple[str | None, Val]] = []

    def add(self, name: str | None, val: Val) -> None:
        """Append ``val`` under ``name``; the record takes it without copying."""
        if not isinstance(val, Val):
            raise TypeError("record elements must be Val instances")
        if name is not None and not isinstance(name, str):
            raise TypeError("field names must be strings or None")
        self._fields.append((name, val))

    def get(self, name: str) -> Val:
        """The first value stored under field ``name``."""
        for field_name, val in self._fields:
            if field_name is not None and field_name == name:
                return val
        raise KeyError(name)

    def nth(self, index: int) -> Val:
        """The value at position ``index``."""
        if not isinstance(index, int) or not 0 <= index < len(self._fields):
            raise IndexError(f"record index out of range: {index!r}")
        return self._fields[index][1]

    def names(self) -> list[str | None]:
        """Field names in order."""
        return [name for name, _ in self._fields]

    def copy(self) -> Record:
        """A record holding independent copies of every value."""
        result = Record()
        for name, val in self._fields:
            result.add(name, val.copy())
        return result

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[tuple[str | None, Val]]:
        return iter(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self._fields == other._fields

    def __hash__(self) -> int:
        return hash(tuple(val for _, val in self._fields))

    def __repr__(self) -> str:
        return f"Record({self._fields!r})"


def _write_header(writer: Writer, val: MutableVal) -> None:
    writer.write_char(val.props)
    writer.write_string(val.name)


def _read_header(reader: Reader, val: MutableVal) -> None:
    props = reader.read_char()
    raw = reader.read_string()
    try:
        name = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"identifier name is not valid UTF-8: {exc}") from None
    val.props = props
    val.name = name or None


def _write_element(writer: Writer, val: Val) -> None:
    writer.write_char(1 if val.val_type is not None else 0)
    if val.val_type is None:
        return
    nested_write = getattr(val, "write", None)
    if callable(nested_write):
        nested_write(writer)
    else:
        write_payload(writer, val)


def _read_value(reader: Reader, spec: Any) -> Val:
    """Read one value described by ``spec``.

    A spec is a type (``ValType`` or tag) for atomic values, a list of
    ``(name, spec)`` pairs for a record, or a one-element tuple holding the
    element spec for a vector.
    """
    if isinstance(spec, list):
        record_val = RecordVal(None, None)
        record_val.read(reader, spec)
        return record_val
    if isinstance(spec, tuple):
        if len(spec) != 1:
            raise ValueError("a vector spec is a one-element tuple")
        vector_val = VectorVal(None, None)
        vector_val.read(reader, spec[0])
        return vector_val
    val_type = spec if isinstance(spec, ValType) else ValType(spec)
    if val_type.internal_tag is InternalTag.OTHER:
        raise UnsupportedTypeError(
            f"type {val_type.tag.name} needs a structured spec to be read"
        )
    return read_payload(reader, val_type)


def _read_element(reader: Reader, spec: Any) -> Val:
    if reader.read_char():
        return _read_value(reader, spec)
    return Val()


class RecordVal(MutableVal):
    """A value holding a record, with the field types taken from it."""

    def __init__(self, record: Record | None = None, type_name: str | None = None) -> None:
        super().__init__(ValType(TypeTag.RECORD, type_name))
        self._record: Record | None = None
        self.field_types: list[tuple[str, ValType]] = []
        if record is not None:
            self.assign(record)

    def assign(self, data: Any) -> None:
        """Store a copy of record ``data``; None marks the value unassigned."""
        if data is None:
            self.val_type = None
            self._record = None
            self.field_types = []
            return
        if self.val_type is None:
            raise ValueError("cannot assign to a val without a type")
        if not isinstance(data, Record):
            raise TypeError("RECORD value must be a Record")
        field_types = []
        for name, val in data:
            if val.val_type is None:
                raise ValueError("cannot create a record field type from a val without type")
            if name is None:
                raise ValueError("val in record has no field name")
            field_types.append((name, val.val_type))
        self._record = data.copy()
        self.field_types = field_types

    def data(self) -> Record | None:
        return self._record

    def write(self, writer: Writer) -> None:
        """Write the identifier header, the field count and each field."""
        if self._record is None:
            raise ValueError("record val holds no record")
        _write_header(writer, self)
        writer.write_int(len(self._record))
        for _, val in self._record:
            _write_element(writer, val)

    def read(self, reader: Reader, field_types: Sequence[tuple[str, Any]]) -> None:
        """Replace the record with one read from ``reader``.

        ``field_types`` gives a ``(name, spec)`` pair for each field. On
        failure the value is left holding no record.
        """
        self._record = None
        _read_header(reader, self)
        specs = list(field_types)
        record = Record()
        count = reader.read_int()
        for index in range(count):
            if index >= len(specs):
                raise DecodeError(f"record type field {index} has no name")
            name, spec = specs[index]
            record.add(name, _read_element(reader, spec))
        self._record = record
        self.field_types = [
            (name, val.val_type) for name, val in record if val.val_type is not None
        ]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordVal):
            return NotImplemented
        return self._record == other._record

    def __hash__(self) -> int:
        return hash(self._record)

    def __repr__(self) -> str:
        return f"RecordVal({self._record!r})"


class VectorVal(MutableVal):
    """A value holding a vector."""

    def __init__(self, vector: Vector | None = None, type_name: str | None = None) -> None:
        super().__init__(ValType(TypeTag.VECTOR, type_name))
        self._vector: Vector | None = None
        if vector is not None:
            self.assign(vector)

    def assign(self, data: Any) -> None:
        """Store a copy of vector ``data``; None marks the value unassigned."""
        if data is None:
            self.val_type = None
            self._vector = None
            return
        if self.val_type is None:
            raise ValueError("cannot assign to a val without a type")
        if not isinstance(data, Vector):
            raise TypeError("VECTOR value must be a Vector")
        self._vector = data.copy()

    def data(self) -> Vector | None:
        return self._vector

    def write(self, writer: Writer) -> None:
        """Write the identifier header, the length and each element."""
        if self._vector is None:
            raise ValueError("vector val holds no vector")
        _write_header(writer, self)
        writer.write_int(len(self._vector))
        for val in self._vector:
            _write_element(writer, val)

    def read(self, reader: Reader, element_type: Any) -> None:
        """Replace the vector with one read from ``reader``.

        Every element is read with ``element_type`` as its spec. On failure
        the value is left holding no vector.
        """
        self._vector = None
        _read_header(reader, self)
        vector = Vector()
        for _ in range(reader.read_int()):
            vector.append(_read_element(reader, element_type))
        self._vector = vector

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VectorVal):
            return NotImplemented
        return self._vector == other._vector

    def __hash__(self) -> int:
        return hash(self._vector)

    def __repr__(self) -> str:
        return f"VectorVal({self._vector!r})"