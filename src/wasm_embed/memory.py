"""Read-only view over an instance's exported linear memory."""

from typing import Any

import numpy as np

from .errors import OutOfBoundsError


class MemoryView:
    """A byte-addressable window over linear memory.

    The view holds no copy of the memory: size and contents are fetched
    from the engine on every access, so growth performed by the guest is
    visible on the next read. Only valid while the owning instance lives.
    """

    PAGE_SIZE = 65536

    def __init__(self, engine: Any, handle: Any, memory: Any) -> None:
        self._engine = engine
        self._handle = handle
        self._memory = memory

    @property
    def size(self) -> int:
        """Current size in bytes."""
        return self._engine.memory_size(self._handle, self._memory)

    @property
    def pages(self) -> int:
        return self.size // self.PAGE_SIZE

    def __len__(self) -> int:
        return self.size

    def _check_bounds(self, offset: int, length: int) -> int:
        size = self.size
        if offset < 0 or length < 0 or offset + length > size:
            raise OutOfBoundsError(offset, length, size)
        return size

    def read(self, offset: int, length: int) -> bytes:
        """Read ``length`` bytes starting at ``offset``."""
        self._check_bounds(offset, length)
        if length == 0:
            return b""
        return self._engine.memory_read(
            self._handle, self._memory, offset, offset + length
        )

    def __getitem__(self, index: int | slice) -> int | bytes:
        if isinstance(index, slice):
            if index.step not in (None, 1):
                raise ValueError("Memory slices do not support a step")
            start = 0 if index.start is None else index.start
            stop = self.size if index.stop is None else index.stop
            return self.read(start, max(stop - start, 0))
        return self.read(index, 1)[0]

    def read_cstring(self, offset: int, encoding: str = "utf-8") -> str:
        """Read a NUL-terminated string starting at ``offset``."""
        size = self._check_bounds(offset, 0)
        chunk_size = 256
        data = bytearray()
        position = offset
        while position < size:
            chunk = self.read(position, min(chunk_size, size - position))
            end = chunk.find(b"\x00")
            if end != -1:
                data += chunk[:end]
                return data.decode(encoding, errors="replace")
            data += chunk
            position += len(chunk)
        # Reached the end of memory without a terminator
        raise OutOfBoundsError(offset, len(data) + 1, size)

    def read_array(self, dtype: Any, offset: int = 0, count: int = 1) -> np.ndarray:
        """Read ``count`` little-endian elements of ``dtype`` as an array copy."""
        dt = np.dtype(dtype).newbyteorder("<")
        raw = self.read(offset, dt.itemsize * count)
        return np.frombuffer(raw, dtype=dt, count=count).copy()

    def __repr__(self) -> str:
        return f"<MemoryView {self.size} bytes>"
