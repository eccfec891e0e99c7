"""
Intcode VM — Memory Tests

Growth on out-of-range access, copy-on-create, watchpoints, snapshots.
"""

import pytest

from intcode_vm.errors import InvalidAddress
from intcode_vm.mem.memory import Memory


class TestGrowth:
    """Every access past the end extends memory with zero cells."""

    def test_read_past_end_grows(self):
        mem = Memory([1, 2])
        assert mem.read(10) == 0
        assert len(mem) == 11
        assert all(mem.read(i) == 0 for i in range(2, 11))

    def test_write_past_end_grows(self):
        mem = Memory([1, 2])
        mem.write(5, 42)
        assert len(mem) == 6
        assert mem.snapshot() == [1, 2, 0, 0, 0, 42]

    @pytest.mark.parametrize("index", [0, 1, 3, 17, 1000])
    def test_length_after_access(self, index):
        """Length is at least index + 1 after any access."""
        mem = Memory([7, 8, 9])
        mem.read(index)
        assert len(mem) >= index + 1

    def test_in_range_access_does_not_grow(self):
        mem = Memory([1, 2, 3])
        mem.write(2, 5)
        assert len(mem) == 3

    def test_never_shrinks(self):
        mem = Memory([1])
        mem.read(50)
        mem.write(0, 9)
        assert len(mem) == 51

    def test_negative_address_rejected(self):
        mem = Memory([1, 2, 3])
        with pytest.raises(InvalidAddress):
            mem.read(-1)
        with pytest.raises(InvalidAddress):
            mem.write(-3, 0)

    def test_peek_does_not_grow(self):
        mem = Memory([4, 5])
        assert mem.peek(1) == 5
        assert mem.peek(10) == 0
        assert mem.peek(-1) == 0
        assert len(mem) == 2


class TestLoad:
    def test_image_is_copied(self):
        """Writes never reach the caller's list."""
        image = [1, 0, 0, 0, 99]
        mem = Memory(image)
        mem.write(0, 2)
        assert image == [1, 0, 0, 0, 99]

    def test_big_values_kept_exact(self):
        mem = Memory([2 ** 100])
        assert mem.read(0) == 2 ** 100


class TestWatchpoints:
    def test_watchpoint_fires_on_write(self):
        mem = Memory([0, 0, 0])
        hits = []
        mem.add_watchpoint(1, lambda addr, old, new: hits.append((addr, old, new)))
        mem.write(1, 5)
        mem.write(2, 6)
        assert hits == [(1, 0, 5)]

    def test_watchpoint_past_end(self):
        """A watched cell beyond the image reports 0 as its old value."""
        mem = Memory([0])
        hits = []
        mem.add_watchpoint(4, lambda addr, old, new: hits.append((old, new)))
        mem.write(4, 7)
        assert hits == [(0, 7)]

    def test_reads_do_not_fire(self):
        mem = Memory([0])
        hits = []
        mem.add_watchpoint(0, lambda a, o, n: hits.append(n))
        mem.read(0)
        assert hits == []


class TestSnapshots:
    def test_diff_snapshots(self):
        mem = Memory([1, 2, 3])
        before = mem.snapshot()
        mem.write(1, 20)
        mem.write(4, 7)
        assert Memory.diff_snapshots(before, mem.snapshot()) == {1: (2, 20), 4: (0, 7)}

    def test_dump_does_not_grow(self):
        mem = Memory([1, 2, 3])
        text = mem.dump(0, 100)
        assert text.startswith("000000")
        assert len(mem) == 3
