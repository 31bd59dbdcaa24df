"""
Copyright 2025 DNAi inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

"""
Fixed-size bit set over archive entry indices.

A Bitset records which entries an operation should act on. Its size is
the archive's entry count at creation and never changes; bits are only
ever set, never cleared.
"""

from typing import Iterator, Optional

from .errors import AllocationError


class Bitset:
    """Set of entry indices in ``range(size)``, backed by a bytearray.

    Example:
        with Bitset(archive.get_num_entries()) as selected:
            selected.set(0)
            assert selected.is_set(0)
    """

    def __init__(self, size: int):
        """Create a bit set for ``size`` entries, all unset.

        Raises:
            AllocationError: If size is not a non-negative integer or the
                storage cannot be allocated.
        """
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise AllocationError(f"Cannot create bit set of size {size!r}")
        try:
            self._bits: Optional[bytearray] = bytearray((size + 7) // 8)
        except (MemoryError, OverflowError) as e:
            raise AllocationError(f"Cannot allocate bit set for {size} entries") from e
        self._size = size

    def _storage(self) -> bytearray:
        if self._bits is None:
            raise ValueError("Bitset has been released")
        return self._bits

    def _check(self, index: int) -> None:
        if not 0 <= index < self._size:
            raise IndexError(f"Bit index {index} out of range 0..{self._size - 1}")

    def __len__(self) -> int:
        return self._size

    def set(self, index: int) -> None:
        """Mark ``index``."""
        bits = self._storage()
        self._check(index)
        bits[index >> 3] |= 1 << (index & 7)

    def set_all(self) -> None:
        """Mark every index. Calling it again changes nothing."""
        bits = self._storage()
        if not self._size:
            return
        bits[:] = b"\xff" * len(bits)
        # keep padding bits clear so equality and count stay exact
        tail = self._size & 7
        if tail:
            bits[-1] = (1 << tail) - 1

    def is_set(self, index: int) -> bool:
        """Return whether ``index`` is marked."""
        bits = self._storage()
        self._check(index)
        return bool(bits[index >> 3] & (1 << (index & 7)))

    def indices(self) -> Iterator[int]:
        """Yield marked indices in ascending order."""
        bits = self._storage()
        for byte_pos, byte in enumerate(bits):
            if not byte:
                continue
            for bit in range(8):
                if byte & (1 << bit):
                    yield (byte_pos << 3) | bit

    __iter__ = indices

    def count(self) -> int:
        """Number of marked indices."""
        return sum(bin(byte).count("1") for byte in self._storage())

    def release(self) -> None:
        """Free the storage. Later calls are no-ops; other use raises ValueError."""
        self._bits = None

    @property
    def released(self) -> bool:
        return self._bits is None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return self._size == other._size and self._storage() == other._storage()

    __hash__ = None

    def __repr__(self) -> str:
        if self._bits is None:
            return f"Bitset(size={self._size}, released)"
        return f"Bitset(size={self._size}, set={list(self.indices())})"

    def __enter__(self) -> "Bitset":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
