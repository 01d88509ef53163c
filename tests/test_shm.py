import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from broval.shm import SharedBuffer


@pytest.fixture
def buffer():
    shared = SharedBuffer(64)
    yield shared
    shared.close()


def test_size_is_reported(buffer):
    assert buffer.size() == 64


def test_memory_has_requested_length(buffer):
    buffer.attach()
    with buffer.memory() as view:
        assert len(view) == buffer.size()


def test_new_segment_is_zeroed(buffer):
    buffer.attach()
    with buffer.memory() as view:
        assert bytes(view) == bytes(64)


def test_written_data_persists_between_views(buffer):
    buffer.attach()
    with buffer.memory() as view:
        view[:5] = b"hello"
    with buffer.memory() as view:
        assert bytes(view[:5]) == b"hello"


def test_memory_requires_attach(buffer):
    with pytest.raises(RuntimeError):
        buffer.memory()


def test_attach_counts_users(buffer):
    assert buffer.attach() == 1
    assert buffer.attach() == 2
    assert buffer.detach() == 1
    with buffer.memory() as view:
        assert len(view) == 64
    assert buffer.detach() == 0
    with pytest.raises(RuntimeError):
        buffer.memory()


def test_detach_without_attach_fails(buffer):
    with pytest.raises(RuntimeError):
        buffer.detach()


@pytest.mark.parametrize("size", [0, -1])
def test_non_positive_size_rejected(size):
    with pytest.raises(ValueError):
        SharedBuffer(size)


def test_non_integer_size_rejected():
    with pytest.raises(TypeError):
        SharedBuffer(1.5)


def test_closed_buffer_rejects_use():
    shared = SharedBuffer(16)
    shared.attach()
    shared.close()
    with pytest.raises(RuntimeError):
        shared.memory()
    with pytest.raises(RuntimeError):
        shared.attach()


def test_close_twice_is_harmless():
    shared = SharedBuffer(16)
    shared.close()
    shared.close()
    with pytest.raises(RuntimeError):
        shared.detach()


def test_context_manager_attaches_and_closes():
    with SharedBuffer(8) as shared:
        with shared.memory() as view:
            view[:] = b"abcdefgh"
            assert bytes(view) == b"abcdefgh"
    with pytest.raises(RuntimeError):
        shared.memory()


@settings(max_examples=25, deadline=None)
@given(st.binary(min_size=1, max_size=128))
def test_round_trip_of_arbitrary_bytes(data):
    shared = SharedBuffer(len(data))
    try:
        shared.attach()
        with shared.memory() as view:
            view[:] = data
        with shared.memory() as view:
            assert bytes(view) == data
    finally:
        shared.close()