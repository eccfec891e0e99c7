"""
Intcode VM — Execution Engine and Program State Machine

This module integrates:
  - Memory (mem/memory.py)
  - Instruction decoder (cpu/decoder.py)
  - Operand resolution for the three addressing modes
  - The step/run loop and the resumable Program wrapper

Execution model:
  1. Fetch the instruction word at ip
  2. Decode opcode + parameter modes
  3. Resolve operands (reads) / destination address (writes)
  4. Execute the handler: mutate memory, move ip, maybe emit/consume a value
  5. Stop on OUTPUT, HALT, or NEED_INPUT; otherwise continue

Stop reasons (IntcodeMachine.run):
  - OUTPUT:      an OUT instruction produced one value (take_output())
  - HALT:        opcode 99 executed
  - NEED_INPUT:  an IN instruction found the input queue empty; nothing was
                 changed, resuming re-executes the same IN

Everything else (bad opcode, bad mode digit, immediate write, running off
the end of memory, overflow of a configured word width) raises an
IntcodeError subclass.
"""

import logging
from collections import deque
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from .config import MachineConfig
from .cpu.decoder import (
    decode_word, Instruction, ParameterMode,
    ADD, MUL, IN, OUT, JNZ, JZ, LT, EQ, ARB, HALT,
)
from .errors import (
    IntcodeError, IllegalImmediateWrite, InputExhausted, InvalidAddress,
    ProgramFaulted, ProgramHalted, UnterminatedProgram, WordOverflow,
)
from .mem.memory import Memory

log = logging.getLogger(__name__)


class StopReason(Enum):
    OUTPUT = 'OUTPUT'
    HALT = 'HALT'
    NEED_INPUT = 'NEED_INPUT'


class IntcodeMachine:
    """Intcode CPU: memory, instruction pointer, relative base, input queue.

    Usage:
        vm = IntcodeMachine([104, 42, 99])
        vm.run()            # StopReason.OUTPUT
        vm.take_output()    # 42
        vm.run()            # StopReason.HALT
    """

    def __init__(self, image: Iterable[int], config: Optional[MachineConfig] = None):
        self.config = config or MachineConfig()
        self.mem = Memory(image)
        self.ip: int = 0
        self.relative_base: int = 0
        self.inputs: deque = deque()
        self.steps: int = 0

        for addr, value in enumerate(self.mem.snapshot()):
            self._check_word(value, addr)

        self._output: Optional[int] = None

        self._trace = self.config.trace
        self._trace_output: List[str] = []

        # Instruction dispatch table (built in _build_dispatch)
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # I/O
    # ══════════════════════════════════════════════

    def push_input(self, values: Iterable[int]):
        """Append values to the pending-input queue."""
        for value in values:
            self.inputs.append(value)

    def take_output(self) -> Optional[int]:
        """Return the value emitted by the last OUT and clear it."""
        value, self._output = self._output, None
        return value

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        ip = self.ip
        if ip >= len(self.mem):
            raise UnterminatedProgram("ran past end of memory without HALT", ip)

        instr = decode_word(self.mem.read(ip), ip)

        line = None
        if self._trace:
            raw = [self.mem.peek(ip + 1 + i) for i in range(instr.arity)]
            line = f"{ip:06d}: {instr.mnemonic:6s} {raw} rb={self.relative_base}"

        reason = self._dispatch[instr.opcode](instr)
        if reason is StopReason.NEED_INPUT:
            return reason

        self.steps += 1
        if line is not None:
            self._trace_output.append(line)
            log.debug(line)
        return reason

    def run(self) -> StopReason:
        """Run until an output, a halt, or an input with an empty queue."""
        while True:
            reason = self.step()
            if reason is not None:
                return reason

    # ══════════════════════════════════════════════
    # Operand resolution
    # ══════════════════════════════════════════════

    def resolve_read(self, mode: ParameterMode, slot: int) -> int:
        """Effective value of the parameter stored at slot."""
        if mode == ParameterMode.IMMEDIATE:
            return self.mem.read(slot)
        return self.mem.read(self._address(mode, slot))

    def resolve_write(self, mode: ParameterMode, slot: int) -> int:
        """Effective address of the destination parameter stored at slot."""
        if mode == ParameterMode.IMMEDIATE:
            raise IllegalImmediateWrite("destination parameter in immediate mode", self.ip)
        return self._address(mode, slot)

    def _address(self, mode: ParameterMode, slot: int) -> int:
        addr = self.mem.read(slot)
        if mode == ParameterMode.RELATIVE:
            addr += self.relative_base
        if addr < 0:
            raise InvalidAddress(f"negative effective address {addr}", self.ip)
        return addr

    def _param(self, instr: Instruction, index: int) -> int:
        return self.resolve_read(instr.mode(index), self.ip + 1 + index)

    def _store(self, instr: Instruction, index: int, value: int):
        addr = self.resolve_write(instr.mode(index), self.ip + 1 + index)
        self._check_word(value, addr)
        self.mem.write(addr, value)

    def _check_word(self, value: int, addr: int):
        if not self.config.fits(value):
            raise WordOverflow(
                f"value {value} at [{addr}] exceeds {self.config.word_bits}-bit word",
                self.ip)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(instr) -> Optional[StopReason]
    # Each handler moves ip itself (advance by width, or jump).

    def _build_dispatch(self) -> dict:
        return {
            ADD:  self._op_add,
            MUL:  self._op_mul,
            IN:   self._op_in,
            OUT:  self._op_out,
            JNZ:  self._op_jnz,
            JZ:   self._op_jz,
            LT:   self._op_lt,
            EQ:   self._op_eq,
            ARB:  self._op_arb,
            HALT: self._op_halt,
        }

    def _op_add(self, instr):
        self._store(instr, 2, self._param(instr, 0) + self._param(instr, 1))
        self.ip += instr.width

    def _op_mul(self, instr):
        self._store(instr, 2, self._param(instr, 0) * self._param(instr, 1))
        self.ip += instr.width

    def _op_in(self, instr):
        # A NEED_INPUT stop must leave ip, memory and queue unchanged.
        if instr.mode(0) == ParameterMode.IMMEDIATE:
            raise IllegalImmediateWrite("destination parameter in immediate mode", self.ip)
        if not self.inputs:
            return StopReason.NEED_INPUT
        self._store(instr, 0, self.inputs.popleft())
        self.ip += instr.width

    def _op_out(self, instr):
        self._output = self._param(instr, 0)
        self.ip += instr.width
        return StopReason.OUTPUT

    def _op_jnz(self, instr):
        if self._param(instr, 0) != 0:
            self._jump(self._param(instr, 1))
        else:
            self.ip += instr.width

    def _op_jz(self, instr):
        if self._param(instr, 0) == 0:
            self._jump(self._param(instr, 1))
        else:
            self.ip += instr.width

    def _op_lt(self, instr):
        self._store(instr, 2, 1 if self._param(instr, 0) < self._param(instr, 1) else 0)
        self.ip += instr.width

    def _op_eq(self, instr):
        self._store(instr, 2, 1 if self._param(instr, 0) == self._param(instr, 1) else 0)
        self.ip += instr.width

    def _op_arb(self, instr):
        base = self.relative_base + self._param(instr, 0)
        if not self.config.fits(base):
            raise WordOverflow(f"relative base {base} exceeds {self.config.word_bits}-bit word", self.ip)
        self.relative_base = base
        self.ip += instr.width

    def _op_halt(self, instr):
        return StopReason.HALT

    def _jump(self, target: int):
        if target < 0:
            raise InvalidAddress(f"jump to negative address {target}", self.ip)
        self.ip = target

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Enable instruction trace logging."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()


class ProgramState(Enum):
    RUNNING = 'RUNNING'
    SUSPENDED = 'SUSPENDED'            # returned a value from OUT
    AWAITING_INPUT = 'AWAITING_INPUT'  # IN with empty queue, resumable
    HALTED = 'HALTED'
    FAULTED = 'FAULTED'


class Program:
    """One resumable VM instance.

    next_output() runs until the next OUT (returns the value) or HALT
    (returns None). Values can be queued between calls, which is what
    lets several programs be wired into a feedback loop.

    An IN with nothing queued raises InputExhausted but leaves the program
    resumable in AWAITING_INPUT: queue more input and call again. Any other
    fault is fatal to this program only.
    """

    def __init__(self, image: Iterable[int], inputs: Iterable[int] = (),
                 config: Optional[MachineConfig] = None, name: str = "program"):
        self.name = name
        self.machine = IntcodeMachine(image, config)
        self.machine.push_input(inputs)
        self.state = ProgramState.RUNNING

    @property
    def halted(self) -> bool:
        return self.state == ProgramState.HALTED

    @property
    def memory(self) -> Memory:
        return self.machine.mem

    @property
    def ip(self) -> int:
        return self.machine.ip

    @property
    def relative_base(self) -> int:
        return self.machine.relative_base

    @property
    def pending_inputs(self) -> List[int]:
        return list(self.machine.inputs)

    def feed(self, *values: int):
        """Queue input values without resuming."""
        self._check_resumable()
        self.machine.push_input(values)

    def next_output(self, inputs: Iterable[int] = ()) -> Optional[int]:
        """Queue inputs, then run to the next output (value) or halt (None)."""
        self._check_resumable()
        self.machine.push_input(inputs)
        self.state = ProgramState.RUNNING

        try:
            reason = self.machine.run()
        except IntcodeError:
            self.state = ProgramState.FAULTED
            log.debug("%s faulted at ip=%d", self.name, self.machine.ip)
            raise

        if reason is StopReason.OUTPUT:
            self.state = ProgramState.SUSPENDED
            return self.machine.take_output()
        if reason is StopReason.HALT:
            self.state = ProgramState.HALTED
            log.debug("%s halted after %d steps", self.name, self.machine.steps)
            return None

        self.state = ProgramState.AWAITING_INPUT
        raise InputExhausted("input instruction with empty input queue", self.machine.ip)

    def outputs(self, inputs: Iterable[int] = ()) -> List[int]:
        """Run to completion and collect every output."""
        result = []
        value = self.next_output(inputs)
        while value is not None:
            result.append(value)
            value = self.next_output()
        return result

    def __iter__(self) -> Iterator[int]:
        while not self.halted:
            value = self.next_output()
            if value is None:
                return
            yield value

    def _check_resumable(self):
        if self.state == ProgramState.HALTED:
            raise ProgramHalted(f"{self.name} already halted", self.machine.ip)
        if self.state == ProgramState.FAULTED:
            raise ProgramFaulted(f"{self.name} faulted earlier", self.machine.ip)

    def __repr__(self):
        return f"Program({self.name!r}, state={self.state.name}, ip={self.machine.ip})"
