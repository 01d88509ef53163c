import pytest
from hypothesis import given
from hypothesis import strategies as st

from broval.records import Record
from broval.tables import Table, TableVal
from broval.values import ListVal, TypeTag, Val, new_val
from broval.wire import DecodeError, Reader, Writer


def ival(n):
    return Val(TypeTag.INT, n)


def sval(s):
    return Val(TypeTag.STRING, s)


def dval(d):
    return Val(TypeTag.DOUBLE, d)


def composite(i, s, d):
    rec = Record()
    rec.add(None, ival(i))
    rec.add(None, sval(s))
    rec.add(None, dval(d))
    return rec


def int_to_str():
    table = Table()
    table.insert(ival(10), sval("foo"))
    table.insert(ival(20), sval("bar"))
    table.insert(ival(30), sval("baz"))
    return table


def str_to_double():
    table = Table()
    table.insert(sval("foo"), dval(1.1))
    table.insert(sval("bar"), dval(2.2))
    table.insert(sval("baz"), dval(3.3))
    return table


def int_str_double_to_int():
    table = Table()
    table.insert(composite(1, "foo", 1.1), ival(10))
    table.insert(composite(2, "bar", 2.2), ival(20))
    table.insert(composite(3, "baz", 3.3), ival(30))
    return table


def roundtrip(table_val, index_types, yield_type):
    writer = Writer()
    table_val.write(writer)
    reader = Reader(writer.getvalue())
    result = TableVal(None, index_types, yield_type)
    result.read(reader)
    assert reader.at_end()
    return result


def test_int_to_str_dump_and_lookup():
    table = int_to_str()
    dumped = [(k.data(), v.data()) for k, v in table.items()]
    assert dumped == [(10, b"foo"), (20, b"bar"), (30, b"baz")]
    assert (table.key_type, table.val_type) == (TypeTag.INT, TypeTag.STRING)
    assert table.find(ival(20)).data() == b"bar"


def test_str_to_double_dump_and_lookup():
    table = str_to_double()
    dumped = [(k.data(), v.data()) for k, v in table.items()]
    assert dumped == [(b"foo", 1.1), (b"bar", 2.2), (b"baz", 3.3)]
    assert (table.key_type, table.val_type) == (TypeTag.STRING, TypeTag.DOUBLE)
    assert table.find(sval("bar")).data() == 2.2


def test_composite_dump_and_lookup():
    table = int_str_double_to_int()
    assert (table.key_type, table.val_type) == (TypeTag.LIST, TypeTag.INT)
    first_key, first_val = table.items()[0]
    assert [v.data() for v in first_key] == [1, b"foo", 1.1]
    assert first_val.data() == 10
    assert table.find(composite(2, "bar", 2.2)).data() == 20


def test_missing_key_raises():
    with pytest.raises(KeyError):
        int_to_str().find(ival(40))


def test_contains():
    table = int_to_str()
    assert ival(10) in table
    assert ival(11) not in table


def test_key_type_mismatch():
    table = int_to_str()
    with pytest.raises(TypeError):
        table.insert(sval("x"), sval("y"))


def test_value_type_mismatch():
    table = int_to_str()
    with pytest.raises(TypeError):
        table.insert(ival(40), dval(1.0))


def test_empty_composite_key_rejected():
    with pytest.raises(ValueError):
        Table().insert(Record(), ival(1))


def test_single_element_composite_is_atomic():
    table = Table()
    table.insert(ListVal(TypeTag.INT, [ival(5)]), sval("x"))
    assert table.key_type == TypeTag.INT
    assert table.find(ival(5)).data() == b"x"


def test_set_member_has_no_value():
    table = Table()
    table.insert(ival(1), None)
    assert table.find(ival(1)) is None
    assert table.val_type == TypeTag.UNKNOWN
    assert len(table) == 1


def test_insert_replaces_existing():
    table = int_to_str()
    table.insert(ival(10), sval("new"))
    assert len(table) == 3
    assert table.find(ival(10)).data() == b"new"


def test_copy_is_independent():
    table = int_to_str()
    dup = table.copy()
    assert dup == table
    dup.find(ival(10)).assign("changed")
    assert table.find(ival(10)).data() == b"foo"


def test_table_val_copies_on_assign():
    table = int_to_str()
    tv = TableVal(table, [TypeTag.INT], TypeTag.STRING)
    table.insert(ival(40), sval("qux"))
    assert len(tv.data()) == 3


def test_has_atomic_key():
    assert TableVal(None, [TypeTag.INT], TypeTag.STRING).has_atomic_key()
    assert not TableVal(
        None, [TypeTag.INT, TypeTag.STRING, TypeTag.DOUBLE], TypeTag.INT
    ).has_atomic_key()
    assert not TableVal(None, None, None).has_atomic_key()


def test_inferred_index_types():
    tv = TableVal(int_str_double_to_int())
    assert [t.tag for t in tv.index_types] == [
        TypeTag.INT,
        TypeTag.STRING,
        TypeTag.DOUBLE,
    ]
    assert tv.yield_type.tag == TypeTag.INT
    assert tv.type_tag() == TypeTag.TABLE


def test_set_val_type_tag():
    assert TableVal(None, [TypeTag.INT], None).type_tag() == TypeTag.SET


def test_assign_none_unassigns():
    tv = TableVal(int_to_str(), [TypeTag.INT], TypeTag.STRING)
    tv.assign(None)
    assert tv.data() is None
    assert tv.type_tag() == TypeTag.UNKNOWN


def test_assign_wrong_type():
    tv = TableVal(None, [TypeTag.INT], TypeTag.STRING)
    with pytest.raises(TypeError):
        tv.assign({1: 2})


def test_new_val_set_and_table():
    assert new_val(TypeTag.SET).type_tag() == TypeTag.SET
    assert new_val(TypeTag.TABLE).type_tag() == TypeTag.TABLE


def test_roundtrip_atomic():
    tv = TableVal(int_to_str(), [TypeTag.INT], TypeTag.STRING)
    result = roundtrip(tv, [TypeTag.INT], TypeTag.STRING)
    assert result.data() == tv.data()
    assert result.data().find(ival(30)).data() == b"baz"


def test_roundtrip_composite():
    tv = TableVal(
        int_str_double_to_int(),
        [TypeTag.INT, TypeTag.STRING, TypeTag.DOUBLE],
        TypeTag.INT,
    )
    result = roundtrip(
        tv, [TypeTag.INT, TypeTag.STRING, TypeTag.DOUBLE], TypeTag.INT
    )
    assert result.data() == tv.data()
    assert result.data().find(composite(3, "baz", 3.3)).data() == 30


def test_roundtrip_set_with_name_and_props():
    table = Table()
    table.insert(sval("a"), None)
    table.insert(sval("b"), None)
    tv = TableVal(table, [TypeTag.STRING], None)
    tv.name = "my_set"
    tv.props = 2
    result = roundtrip(tv, [TypeTag.STRING], None)
    assert result.name == "my_set"
    assert result.props == 2
    assert sorted(k.data() for k, _ in result.data().items()) == [b"a", b"b"]


def test_write_encoding_of_single_count_set():
    table = Table()
    table.insert(Val(TypeTag.COUNT, 5), None)
    writer = Writer()
    TableVal(table, [TypeTag.COUNT], None).write(writer)
    expected = (
        b"\x00"
        + b"\x00\x00\x00\x00"
        + b"\x00" * 8
        + b"\x00\x00"
        + b"\x01\x00\x00\x00\x00\x01"
        + (5).to_bytes(8, "big")
        + b"\x00" * 16
        + b"\x00"
    )
    assert writer.getvalue() == expected


def test_write_without_table_raises():
    with pytest.raises(ValueError):
        TableVal(None, [TypeTag.INT], None).write(Writer())


def test_read_without_index_types_raises():
    with pytest.raises(ValueError):
        TableVal(None, None, None).read(Reader(b""))


def _header(writer, attrs=0, expr=0):
    writer.write_char(0)
    writer.write_string(None)
    writer.write_double(0.0)
    writer.write_char(attrs)
    writer.write_char(expr)


def test_read_rejects_attributes():
    writer = Writer()
    _header(writer, attrs=1)
    tv = TableVal(None, [TypeTag.INT], None)
    with pytest.raises(DecodeError):
        tv.read(Reader(writer.getvalue()))
    assert tv.data() is None


def test_read_rejects_expression():
    writer = Writer()
    _header(writer, expr=1)
    with pytest.raises(DecodeError):
        TableVal(None, [TypeTag.INT], None).read(Reader(writer.getvalue()))


def test_read_key_type_mismatch():
    writer = Writer()
    _header(writer)
    writer.write_char(1)
    writer.write_char(0)
    writer.write_int(1)
    writer.write_int64(7)
    writer.write_double(0.0)
    writer.write_double(0.0)
    writer.write_char(1)
    writer.write_char(0)
    writer.write_int(2)
    writer.write_int64(8)
    writer.write_int64(9)
    writer.write_double(0.0)
    writer.write_double(0.0)
    writer.write_char(0)
    tv = TableVal(None, [TypeTag.INT, TypeTag.INT], None)
    with pytest.raises(DecodeError):
        tv.read(Reader(writer.getvalue()))
    assert tv.data() is None


def test_read_empty_key_rejected():
    writer = Writer()
    _header(writer)
    writer.write_char(1)
    writer.write_char(0)
    writer.write_int(0)
    with pytest.raises(DecodeError):
        TableVal(None, [TypeTag.INT], None).read(Reader(writer.getvalue()))


def test_read_truncated():
    tv = TableVal(int_to_str(), [TypeTag.INT], TypeTag.STRING)
    writer = Writer()
    tv.write(writer)
    data = writer.getvalue()[:-5]
    result = TableVal(None, [TypeTag.INT], TypeTag.STRING)
    with pytest.raises(DecodeError):
        result.read(Reader(data))
    assert result.data() is None


def test_table_val_equality():
    a = TableVal(int_to_str(), [TypeTag.INT], TypeTag.STRING)
    b = TableVal(int_to_str(), [TypeTag.INT], TypeTag.STRING)
    c = TableVal(str_to_double(), [TypeTag.STRING], TypeTag.DOUBLE)
    assert a == b
    assert hash(a) == hash(b)
    assert not a == c


@given(
    st.dictionaries(
        st.integers(min_value=-(2**63), max_value=2**63 - 1),
        st.text(max_size=10),
        max_size=8,
    )
)
def test_roundtrip_property(entries):
    table = Table()
    for key, value in entries.items():
        table.insert(ival(key), sval(value))
    tv = TableVal(table, [TypeTag.INT], TypeTag.STRING)
    result = roundtrip(tv, [TypeTag.INT], TypeTag.STRING)
    decoded = {k.data(): v.data() for k, v in result.data().items()}
    assert decoded == {k: v.encode("utf-8") for k, v in entries.items()}