# broval

`broval` models the values exchanged between Bro peers (booleans, integers,
counts, doubles, times, intervals, strings, ports, addresses, subnets, enums,
lists, records, vectors, sets and tables) and reads and writes them in the
binary peer wire format.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `broval.values`: the type tags `TypeTag` and `InternalTag`
  (`internal_tag_of(tag)` maps one to the other), `Protocol`, the frozen
  building blocks `Port`, `Addr` (four 32-bit words; `Addr.from_ipv4()`
  builds an IPv4-mapped address, `is_v4()` tests for one) and `Subnet`, the
  type descriptor `ValType`, and the value classes `Val`, `ListVal` and
  `MutableVal`. A `Val` without a type is unassigned; `assign(None)` makes it
  so. `new_val(tag, type_name)` creates an empty value of a supported type;
  an unsupported type raises `UnsupportedTypeError`.
- `broval.vector`: `Vector`, an ordered sequence of values with `append`,
  `get`, `set` and `copy`. Appending takes the value as is; `copy()` copies
  every element. Bad indices raise `IndexError`.
- `broval.records`: `Record` (values with optional field names, looked up
  with `get(name)` or `nth(index)`), and the values `RecordVal` and
  `VectorVal`, which store copies of what they are given and have `write`
  and `read` methods for the wire format.
- `broval.tables`: `Table` (keys mapped to values or, for sets, to `None`;
  the first insertion fixes the key and value types, and a `Record` or
  `ListVal` of several values forms a composite key) and `TableVal`, with
  `has_atomic_key`, `write` and `read`.
- `broval.wire`: `Writer` and `Reader` for the big-endian encoding of chars,
  32- and 64-bit integers, doubles, length-prefixed strings, addresses and
  subnets; `write_payload` and `read_payload` for single atomic values; and
  `encode_port` / `decode_port` for the protocol-tagged port encoding.
  Truncated or malformed input raises `DecodeError`.
- `broval.constants`: protocol and data-format versions, `MessageType`,
  `ConnPhase`, `Capability`, `ContentType`, `IOMessage` and `CallbackStyle`.
- `broval.sync`: `Semaphore`, a thread-based counting semaphore starting at
  zero that also reports how many callers are blocked in `decrement`.
- `broval.shm`: `SharedBuffer`, a fixed-size shared memory segment that must
  be attached before its memory is used.

## Examples

Atomic values:

```python
from broval.values import TypeTag, new_val
from broval.wire import Reader, Writer, read_payload, write_payload

count = new_val(TypeTag.COUNT, None)
count.assign(42)

writer = Writer()
write_payload(writer, count)
decoded = read_payload(Reader(writer.getvalue()), count.val_type)
assert decoded.data() == 42
```

Records are read back with a list of `(name, spec)` pairs, where a spec is a
type tag or `ValType`, a list of pairs for a nested record, or a one-element
tuple holding the element spec for a vector:

```python
from broval.records import Record, RecordVal
from broval.values import TypeTag, Val
from broval.wire import Reader, Writer

rec = Record()
rec.add("seq", Val(TypeTag.COUNT, 1))
rec.add("src_time", Val(TypeTag.TIME, 1.5))
sent = RecordVal(rec, None)

writer = Writer()
sent.write(writer)

received = RecordVal(None, None)
received.read(Reader(writer.getvalue()), [("seq", TypeTag.COUNT), ("src_time", TypeTag.TIME)])
assert received == sent
```

Tables:

```python
from broval.tables import Table
from broval.values import TypeTag, Val

table = Table()
table.insert(Val(TypeTag.INT, 10), Val(TypeTag.STRING, "foo"))
table.insert(Val(TypeTag.INT, 20), Val(TypeTag.STRING, "bar"))
assert table.find(Val(TypeTag.INT, 20)).data() == b"bar"
```

## What the package does not do

`broval` covers values and their encoding only. It does not open or manage
connections to peers, frame messages, register or dispatch event handlers,
or send and receive events; a program that talks to a peer has to supply
that itself. Type objects are not serialized: readers are told the expected
types. Table attributes and expiration expressions are never written and
cannot be read.