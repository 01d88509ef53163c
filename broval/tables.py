"""Tables keyed by values, and the table values that carry them."""

from __future__ import annotations

from typing import Any, Iterator, Sequence

from .records import Record, RecordVal, VectorVal
from .values import (
    InternalTag,
    ListVal,
    MutableVal,
    TypeTag,
    UnsupportedTypeError,
    Val,
    ValType,
)
from .wire import DecodeError, Reader, Writer, read_payload, write_payload


def _normalize_key(key: Any) -> tuple[Val, TypeTag]:
    """Bring a key into stored form and return it with its key type.

    Atomic keys are stored as the value itself. Composite keys (records or
    list values with more than one element) are stored as a list value and
    reported with type LIST. A one-element composite is an atomic key.
    """
    if isinstance(key, Record):
        items = [val for _, val in key]
    elif isinstance(key, ListVal):
        items = list(key)
    elif isinstance(key, Val):
        if key.val_type is None:
            raise ValueError("table keys must have a type")
        return key, key.type_tag()
    else:
        raise TypeError("table keys must be Val, ListVal or Record instances")
    if not items:
        raise ValueError("a composite table key needs at least one element")
    if len(items) == 1:
        return _normalize_key(items[0])
    for item in items:
        if item.val_type is None:
            raise ValueError("composite key elements must have a type")
    return ListVal(TypeTag.UNKNOWN, items), TypeTag.LIST


class Table:
    """A mapping from keys to values, or a set when values are None.

    All keys share one key type and all values one value type; the first
    insertion fixes them.
    """

    def __init__(self) -> None:
        self._entries: dict[Val, Val | None] = {}
        self.key_type: TypeTag = TypeTag.UNKNOWN
        self.val_type: TypeTag = TypeTag.UNKNOWN

    def insert(self, key: Any, val: Val | None) -> None:
        """Map ``key`` to ``val``; the table takes both without copying.

        ``key`` is a value, or a record or list value for composite keys.
        ``val`` is None for set members.
        """
        stored_key, key_type = _normalize_key(key)
        if val is not None and not isinstance(val, Val):
            raise TypeError("table values must be Val instances or None")
        val_type = val.type_tag() if val is not None else TypeTag.UNKNOWN
        if self.key_type is not TypeTag.UNKNOWN and self.key_type != key_type:
            raise TypeError(
                f"key of type {key_type.name} does not match "
                f"table key type {self.key_type.name}"
            )
        if self.val_type is not TypeTag.UNKNOWN and self.val_type != val_type:
            raise TypeError(
                f"value of type {val_type.name} does not match "
                f"table value type {self.val_type.name}"
            )
        self.key_type = key_type
        self.val_type = val_type
        self._entries[stored_key] = val

    def find(self, key: Any) -> Val | None:
        """The value stored under ``key``; None for a set member."""
        stored_key, _ = _normalize_key(key)
        return self._entries[stored_key]

    def __contains__(self, key: Any) -> bool:
        try:
            stored_key, _ = _normalize_key(key)
        except (TypeError, ValueError):
            return False
        return stored_key in self._entries

    def copy(self) -> Table:
        """A table holding independent copies of every key and value."""
        result = Table()
        for key, val in self._entries.items():
            result._entries[key.copy()] = val.copy() if val is not None else None
        result.key_type = self.key_type
        result.val_type = self.val_type
        return result

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> list[tuple[Val, Val | None]]:
        """The ``(key, value)`` pairs in insertion order."""
        return list(self._entries.items())

    def __iter__(self) -> Iterator[Val]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return (
            self.key_type == other.key_type
            and self.val_type == other.val_type
            and self._entries == other._entries
        )

    def __hash__(self) -> int:
        return hash((len(self._entries), frozenset(self._entries.items())))

    def __repr__(self) -> str:
        return f"Table({self._entries!r})"


def _read_spec(reader: Reader, spec: Any) -> Val:
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


def _write_value(writer: Writer, val: Val) -> None:
    nested_write = getattr(val, "write", None)
    if callable(nested_write):
        nested_write(writer)
    else:
        write_payload(writer, val)


def _infer_types(table: Table) -> tuple[list[ValType] | None, ValType | None]:
    for key, val in table.items():
        if isinstance(key, ListVal):
            index_types = [item.val_type for item in key]
        else:
            index_types = [key.val_type]
        yield_type = val.val_type if val is not None else None
        return index_types, yield_type
    return None, None


class TableVal(MutableVal):
    """A value holding a table (or a set, when there is no yield type)."""

    def __init__(
        self,
        table: Table | None = None,
        index_types: Sequence[Any] | None = None,
        yield_type: Any = None,
    ) -> None:
        tag = TypeTag.SET if yield_type is None else TypeTag.TABLE
        super().__init__(ValType(tag))
        self.index_types: list[Any] | None = (
            list(index_types) if index_types is not None else None
        )
        self.yield_type = yield_type
        self._table: Table | None = None
        if table is not None:
            self.assign(table)

    def assign(self, data: Any) -> None:
        """Store a copy of table ``data``; None marks the value unassigned.

        When no index types are known yet, they are taken from the table's
        first entry.
        """
        if data is None:
            self.val_type = None
            self._table = None
            return
        if self.val_type is None:
            raise ValueError("cannot assign to a val without a type")
        if not isinstance(data, Table):
            raise TypeError("TABLE value must be a Table")
        self._table = data.copy()
        if self.index_types is None:
            index_types, yield_type = _infer_types(self._table)
            self.index_types = index_types
            if self.yield_type is None and yield_type is not None:
                self.yield_type = yield_type
                self.val_type = ValType(TypeTag.TABLE, self.val_type.name)

    def data(self) -> Table | None:
        return self._table

    def has_atomic_key(self) -> bool:
        """Whether the table is indexed by a single value."""
        return self.index_types is not None and len(self.index_types) == 1

    def write(self, writer: Writer) -> None:
        """Write the identifier header, table options and every entry.

        No attributes and no expiration expression are ever written.
        """
        if self._table is None:
            raise ValueError("table val holds no table")
        writer.write_char(self.props)
        writer.write_string(self.name)
        writer.write_double(0.0)
        writer.write_char(0)
        writer.write_char(0)
        for key, val in self._table.items():
            items = list(key) if isinstance(key, ListVal) else [key]
            writer.write_char(1)
            writer.write_char(TypeTag.UNKNOWN)
            writer.write_int(len(items))
            for item in items:
                _write_value(writer, item)
            if self.yield_type is not None:
                if val is None:
                    raise ValueError("table entry has no value but table yields one")
                _write_value(writer, val)
            writer.write_double(0.0)
            writer.write_double(0.0)
        writer.write_char(0)

    def read(self, reader: Reader) -> None:
        """Replace the table with one read from ``reader``.

        Keys are read with :attr:`index_types` and values with
        :attr:`yield_type`. On failure the value is left holding no table.
        """
        if self.index_types is None:
            raise ValueError("index types are needed to read a table")
        self._table = None
        props = reader.read_char()
        raw = reader.read_string()
        try:
            name = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"identifier name is not valid UTF-8: {exc}") from None
        self.props = props
        self.name = name or None
        reader.read_double()  # expiration time, unused
        if reader.read_char():
            raise DecodeError("table attributes cannot be read")
        if reader.read_char():
            raise DecodeError("table expiration expression cannot be read")
        table = Table()
        while reader.read_char():
            element_tag = reader.read_char()
            count = reader.read_int()
            if count == 0:
                raise DecodeError("table key has no elements")
            if count > len(self.index_types):
                raise DecodeError(
                    f"table key has {count} elements, "
                    f"index type has {len(self.index_types)}"
                )
            items = [_read_spec(reader, spec) for spec in self.index_types[:count]]
            val = (
                _read_spec(reader, self.yield_type)
                if self.yield_type is not None
                else None
            )
            reader.read_double()  # last access time, unused
            reader.read_double()  # expiry time, unused
            key = items[0] if count == 1 else ListVal(element_tag, items)
            try:
                table.insert(key, val)
            except TypeError as exc:
                raise DecodeError(str(exc)) from None
        self._table = table

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TableVal):
            return NotImplemented
        return self._table == other._table

    def __hash__(self) -> int:
        return hash(self._table)

    def __repr__(self) -> str:
        return f"TableVal({self._table!r})"