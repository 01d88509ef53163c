"""Fixed-size shared memory segments with attach/detach bookkeeping."""

from __future__ import annotations

from multiprocessing import shared_memory


class SharedBuffer:
    """A shared memory segment of a fixed size.

    The segment must be attached before its memory is used. Views returned
    by :meth:`memory` must be released before :meth:`close` is called.
    """

    def __init__(self, size: int) -> None:
        if not isinstance(size, int) or isinstance(size, bool):
            raise TypeError("size must be an integer")
        if size <= 0:
            raise ValueError("size must be positive")
        self._size = size
        self._shm = shared_memory.SharedMemory(create=True, size=size)
        self._attached = 0
        self._closed = False

    @property
    def name(self) -> str:
        """System name of the underlying segment."""
        return self._shm.name

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("shared buffer is closed")

    def attach(self) -> int:
        """Register a user of the segment; returns the number of users."""
        self._check_open()
        self._attached += 1
        return self._attached

    def detach(self) -> int:
        """Unregister a user of the segment; returns the remaining users."""
        self._check_open()
        if self._attached == 0:
            raise RuntimeError("shared buffer is not attached")
        self._attached -= 1
        return self._attached

    def memory(self) -> memoryview:
        """A writable view of exactly :meth:`size` bytes of the segment."""
        self._check_open()
        if self._attached == 0:
            raise RuntimeError("shared buffer must be attached before use")
        return self._shm.buf[: self._size]

    def size(self) -> int:
        """Size of the segment in bytes, as requested."""
        return self._size

    def close(self) -> None:
        """Release and remove the segment. Calling it again does nothing."""
        if self._closed:
            return
        self._shm.close()
        self._shm.unlink()
        self._attached = 0
        self._closed = True

    def __enter__(self) -> SharedBuffer:
        self.attach()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()