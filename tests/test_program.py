"""
Intcode VM — Program State Machine Tests

RUNNING → SUSPENDED (output) → ... → HALTED, with AWAITING_INPUT as a
resumable detour and FAULTED as a dead end.
"""

import pytest

from intcode_vm.emu import Program, ProgramState
from intcode_vm.errors import (
    InputExhausted, InvalidOpcode, ProgramFaulted, ProgramHalted,
)


class TestLifecycle:
    def test_initial_state(self):
        program = Program([99])
        assert program.state is ProgramState.RUNNING
        assert program.ip == 0
        assert program.relative_base == 0

    def test_suspend_then_halt(self):
        program = Program([104, 5, 99])
        assert program.next_output() == 5
        assert program.state is ProgramState.SUSPENDED
        assert program.next_output() is None
        assert program.state is ProgramState.HALTED
        assert program.halted

    def test_resume_after_halt_is_invalid(self):
        program = Program([99])
        assert program.next_output() is None
        with pytest.raises(ProgramHalted):
            program.next_output()
        with pytest.raises(ProgramHalted):
            program.feed(1)

    def test_zero_output_is_not_halt(self):
        """An emitted 0 must not be mistaken for 'no value'."""
        program = Program([104, 0, 99])
        assert program.next_output() == 0
        assert not program.halted

    def test_outputs_drains(self):
        assert Program([104, 1, 104, 2, 104, 3, 99]).outputs() == [1, 2, 3]

    def test_iteration(self):
        assert list(Program([104, 7, 104, 8, 99])) == [7, 8]

    def test_initial_inputs(self):
        program = Program([3, 0, 4, 0, 99], inputs=[11])
        assert program.next_output() == 11

    def test_inputs_between_calls(self):
        """Each call may queue more input before resuming."""
        image = [3, 11, 3, 12, 1, 11, 12, 13, 4, 13, 99, 0, 0, 0]
        program = Program(image, [2])
        with pytest.raises(InputExhausted):
            program.next_output()
        assert program.next_output([40]) == 42

    def test_pending_inputs(self):
        program = Program([99], inputs=[1, 2])
        program.feed(3)
        assert program.pending_inputs == [1, 2, 3]

    def test_repr(self):
        assert "RUNNING" in repr(Program([99], name="amp0"))


class TestInputExhaustion:
    def test_empty_queue_raises(self):
        program = Program([3, 0, 4, 0, 99])
        with pytest.raises(InputExhausted) as exc:
            program.next_output()
        assert exc.value.ip == 0
        assert program.state is ProgramState.AWAITING_INPUT

    def test_recoverable(self):
        """State is untouched; the same IN runs again once input arrives."""
        program = Program([3, 0, 4, 0, 99])
        with pytest.raises(InputExhausted):
            program.next_output()
        assert program.memory.snapshot() == [3, 0, 4, 0, 99]
        assert program.ip == 0
        assert program.next_output([8]) == 8
        assert program.next_output() is None

    def test_short_program_memory_untouched(self):
        program = Program([3])
        with pytest.raises(InputExhausted):
            program.next_output()
        assert program.memory.snapshot() == [3]
        assert program.ip == 0

    def test_feed_then_resume(self):
        program = Program([3, 0, 4, 0, 99])
        with pytest.raises(InputExhausted):
            program.next_output()
        program.feed(3)
        assert program.next_output() == 3


class TestFaultIsolation:
    def test_fault_is_terminal(self):
        program = Program([1, 0, 0, 0, 42])
        with pytest.raises(InvalidOpcode):
            program.next_output()
        assert program.state is ProgramState.FAULTED
        with pytest.raises(ProgramFaulted):
            program.next_output()

    def test_other_instances_unaffected(self):
        bad = Program([42])
        good = Program([104, 1, 99])
        with pytest.raises(InvalidOpcode):
            bad.next_output()
        assert good.next_output() == 1

    def test_instances_do_not_share_memory(self):
        image = [1101, 1, 1, 0, 99]
        a, b = Program(image), Program(image)
        a.next_output()
        assert a.memory.read(0) == 2
        assert b.memory.read(0) == 1101
