"""
Intcode VM — Growable Flat Memory

Memory is a single arena of Python ints indexed by plain non-negative
integers. There is no fixed size: any read or write past the current end
extends the arena with zero cells up to and including the accessed index.
The arena never shrinks.

Instructions and data share the arena, so programs can (and do) rewrite
their own code.
"""

from typing import Callable, Dict, Iterable, List

from ..errors import InvalidAddress


class Memory:
    """Auto-growing integer memory.

    The image passed in is copied; the caller's sequence is never mutated.
    Write watchpoints fire callback(addr, old_val, new_val) on every write
    to the watched address.
    """

    def __init__(self, image: Iterable[int] = ()):
        self._cells: List[int] = list(image)
        self._watchpoints: Dict[int, List[Callable]] = {}

    def __len__(self) -> int:
        return len(self._cells)

    # --- Core read/write ---

    def _ensure(self, addr: int):
        if addr < 0:
            raise InvalidAddress(f"negative address {addr}")
        if addr >= len(self._cells):
            self._cells.extend([0] * (addr + 1 - len(self._cells)))

    def read(self, addr: int) -> int:
        """Read the cell at addr, growing memory if addr is past the end."""
        self._ensure(addr)
        return self._cells[addr]

    def write(self, addr: int, value: int):
        """Write value at addr, growing memory if addr is past the end."""
        self._ensure(addr)
        old = self._cells[addr]
        if addr in self._watchpoints:
            for cb in self._watchpoints[addr]:
                cb(addr, old, value)
        self._cells[addr] = value

    def peek(self, addr: int) -> int:
        """Read without growing memory. Cells past the end read as 0."""
        if 0 <= addr < len(self._cells):
            return self._cells[addr]
        return 0

    # --- Watchpoints ---

    def add_watchpoint(self, addr: int, callback: Callable):
        """Call callback(addr, old_val, new_val) on every write to addr."""
        if addr not in self._watchpoints:
            self._watchpoints[addr] = []
        self._watchpoints[addr].append(callback)

    # --- Snapshots ---

    def snapshot(self) -> List[int]:
        """Copy of the current cells."""
        return list(self._cells)

    @staticmethod
    def diff_snapshots(snap_a: List[int], snap_b: List[int]) -> Dict[int, tuple]:
        """Compare two snapshots, return {addr: (old, new)} for changes.

        Cells that only exist in the longer snapshot compare against 0,
        matching what a read of the shorter memory would have returned.
        """
        changes = {}
        for i in range(max(len(snap_a), len(snap_b))):
            old = snap_a[i] if i < len(snap_a) else 0
            new = snap_b[i] if i < len(snap_b) else 0
            if old != new:
                changes[i] = (old, new)
        return changes

    # --- Dump ---

    def dump(self, start: int = 0, length: int = 64, per_line: int = 8) -> str:
        """Text dump of memory for debugging. Does not grow memory."""
        lines = []
        end = min(start + length, len(self._cells))
        for addr in range(start, end, per_line):
            row = self._cells[addr:min(addr + per_line, end)]
            lines.append(f"{addr:06d}  " + " ".join(f"{v:>8d}" for v in row))
        return "\n".join(lines)
