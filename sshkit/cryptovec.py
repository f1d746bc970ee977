"""A byte buffer that zeroes its memory whenever it shrinks, grows or is released."""

from __future__ import annotations

from typing import Iterator, Protocol, Union

BytesLike = Union[bytes, bytearray, memoryview]


class _Writer(Protocol):
    def write(self, data: bytes) -> int | None: ...


def _next_power_of_two(n: int) -> int:
    """Smallest power of two greater than or equal to ``n`` (1 for 0)."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


class CryptoVec:
    """A growable byte buffer meant for secrets.

    Memory that falls out of use is overwritten with zeros on truncation,
    on reallocation and when the buffer is wiped or collected. The backing
    storage grows to powers of two.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, data: BytesLike | str | None = None) -> None:
        self._buf = bytearray()
        self._size = 0
        if data is None:
            return
        if isinstance(data, str):
            data = data.encode("utf-8")
        view = memoryview(data).cast("B")
        self._buf = bytearray(_next_power_of_two(len(view)))
        self._buf[: len(view)] = view
        self._size = len(view)

    @classmethod
    def new_zeroed(cls, size: int) -> CryptoVec:
        """Create a buffer holding ``size`` zero bytes."""
        if size < 0:
            raise ValueError("size must not be negative")
        vec = cls()
        vec._buf = bytearray(_next_power_of_two(size))
        vec._size = size
        return vec

    @classmethod
    def with_capacity(cls, capacity: int) -> CryptoVec:
        """Create an empty buffer with room for at least ``capacity`` bytes."""
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        vec = cls()
        vec._buf = bytearray(_next_power_of_two(capacity))
        return vec

    @classmethod
    def from_slice(cls, data: BytesLike) -> CryptoVec:
        """Create a buffer holding a copy of ``data``."""
        vec = cls()
        vec.extend(data)
        return vec

    @property
    def capacity(self) -> int:
        """Number of bytes the buffer can hold without reallocating."""
        return len(self._buf)

    def _view(self) -> memoryview:
        return memoryview(self._buf)[: self._size]

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0

    def is_empty(self) -> bool:
        """Return True if the buffer holds no bytes."""
        return self._size == 0

    def __getitem__(self, index: int | slice) -> int | bytes:
        if isinstance(index, slice):
            return bytes(self._view()[index])
        return self._view()[index]

    def __setitem__(self, index: int | slice, value: int | BytesLike) -> None:
        view = self._view()
        if isinstance(index, slice):
            data = memoryview(value).cast("B")  # type: ignore[arg-type]
            target = view[index]
            if len(target) != len(data):
                raise ValueError("slice assignment cannot change the buffer length")
            target[:] = data
        else:
            view[index] = value  # type: ignore[index]

    def __bytes__(self) -> bytes:
        return bytes(self._view())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CryptoVec):
            return self._view() == other._view()
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self._view() == other
        return NotImplemented

    def __iter__(self) -> Iterator[int]:
        return iter(self._view())

    def __repr__(self) -> str:
        return f"CryptoVec(len={self._size}, capacity={self.capacity})"

    def __copy__(self) -> CryptoVec:
        return self.copy()

    def copy(self) -> CryptoVec:
        """Return an independent buffer with the same contents."""
        clone = CryptoVec()
        clone.extend(self._view())
        return clone

    def resize(self, size: int) -> None:
        """Set the length to ``size``, padding with zeros at the end.

        Truncated bytes are zeroed; when the buffer must grow beyond its
        capacity, the old storage is zeroed after being copied.
        """
        if size < 0:
            raise ValueError("size must not be negative")
        if self._size < size <= self.capacity:
            self._size = size
        elif size <= self._size:
            self._buf[size : self._size] = bytes(self._size - size)
            self._size = size
        else:
            new_buf = bytearray(_next_power_of_two(size))
            old = self._buf
            new_buf[: self._size] = old[: self._size]
            old[: self._size] = bytes(self._size)
            self._buf = new_buf
            self._size = size

    def clear(self) -> None:
        """Empty the buffer, zeroing its contents but keeping its storage."""
        self.resize(0)

    def push(self, byte: int) -> None:
        """Append one byte."""
        if not 0 <= byte <= 0xFF:
            raise ValueError("byte must be in range(0, 256)")
        size = self._size
        self.resize(size + 1)
        self._buf[size] = byte

    def push_u32_be(self, value: int) -> None:
        """Append ``value`` as a big-endian 32-bit unsigned integer."""
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError("value does not fit in 32 unsigned bits")
        self.extend(value.to_bytes(4, "big"))

    def read_u32_be(self, i: int) -> int:
        """Read a big-endian 32-bit unsigned integer starting at ``i``."""
        if i < 0 or i + 4 > self._size:
            raise IndexError("not enough bytes to read a u32")
        return int.from_bytes(self._buf[i : i + 4], "big")

    def read(self, n_bytes: int, reader) -> int:
        """Read up to ``n_bytes`` from ``reader`` and append them.

        Returns the number of bytes appended. If the reader raises, the
        buffer is restored to its previous length and the error propagates.
        """
        cur = self._size
        self.resize(cur + n_bytes)
        target = memoryview(self._buf)[cur : cur + n_bytes]
        try:
            if hasattr(reader, "readinto"):
                n = reader.readinto(target) or 0
            else:
                chunk = reader.read(n_bytes) or b""
                n = len(chunk)
                target[:n] = chunk
        except BaseException:
            target.release()
            self.resize(cur)
            raise
        target.release()
        self.resize(cur + n)
        return n

    def write_all_from(self, offset: int, writer: _Writer) -> int:
        """Write the bytes from ``offset`` onwards to ``writer``.

        Returns the number of bytes the writer reports as written.
        """
        if not 0 <= offset < self._size:
            raise IndexError("offset out of range")
        data = self._view()[offset:]
        written = writer.write(data)
        return len(data) if written is None else written

    def resize_mut(self, n: int) -> memoryview:
        """Grow by ``n`` zero bytes and return a writable view of them.

        The view is only valid until the buffer is next reallocated.
        """
        size = self._size
        self.resize(size + n)
        return memoryview(self._buf)[size : size + n]

    def extend(self, data: BytesLike) -> None:
        """Append a copy of ``data``."""
        view = memoryview(data).cast("B")
        size = self._size
        self.resize(size + len(view))
        self._buf[size : size + len(view)] = view

    def write(self, data: BytesLike) -> int:
        """Append ``data``, file-style; returns the number of bytes taken."""
        self.extend(data)
        return memoryview(data).nbytes

    def flush(self) -> None:
        """Zero any spare storage past the current length.

        Nothing is held back for output, so the contents are unchanged.
        """
        spare = len(self._buf) - self._size
        if spare > 0:
            self._buf[self._size :] = bytes(spare)

    def wipe(self) -> None:
        """Zero the whole storage and release it."""
        buf = getattr(self, "_buf", None)
        if buf:
            buf[:] = bytes(len(buf))
        self._buf = bytearray()
        self._size = 0

    def __enter__(self) -> CryptoVec:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __del__(self) -> None:
        try:
            self.wipe()
        except Exception:
            pass