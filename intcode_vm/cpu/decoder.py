"""
Intcode VM — Instruction Decoder

An instruction word packs the operation code in its two least-significant
decimal digits and one parameter-mode digit per parameter above that:

    word = 1002   ->  opcode 02 (MUL), modes: p0=0 (POS), p1=1 (IMM), p2=0

Mode digits are read least-significant first. Parameters with no digit
(leading zeros dropped from the decimal form) default to POSITION.

Addressing modes:
  POSITION   operand is an address; the value lives at mem[operand]
  IMMEDIATE  operand is the value itself (illegal as a write target)
  RELATIVE   operand is an address offset from the relative base
"""

from enum import IntEnum
from typing import List, NamedTuple, Optional, Tuple

from ..errors import InvalidAddressingDigit, InvalidOpcode


class ParameterMode(IntEnum):
    POSITION = 0
    IMMEDIATE = 1
    RELATIVE = 2


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: opcode -> (mnemonic, arity)
# Instruction width is arity + 1 (the instruction word itself).

ADD  = 1
MUL  = 2
IN   = 3
OUT  = 4
JNZ  = 5
JZ   = 6
LT   = 7
EQ   = 8
ARB  = 9
HALT = 99

OPCODES = {
    ADD:  ('ADD',  3),
    MUL:  ('MUL',  3),
    IN:   ('IN',   1),
    OUT:  ('OUT',  1),
    JNZ:  ('JNZ',  2),   # jump-if-true
    JZ:   ('JZ',   2),   # jump-if-false
    LT:   ('LT',   3),
    EQ:   ('EQ',   3),
    ARB:  ('ARB',  1),   # adjust relative base
    HALT: ('HALT', 0),
}


class Instruction(NamedTuple):
    """A decoded instruction word."""
    opcode: int
    modes: Tuple[ParameterMode, ...]

    @property
    def mnemonic(self) -> str:
        return OPCODES[self.opcode][0]

    @property
    def arity(self) -> int:
        return OPCODES[self.opcode][1]

    @property
    def width(self) -> int:
        return self.arity + 1

    def mode(self, index: int) -> ParameterMode:
        """Mode of parameter index; POSITION when no digit was encoded."""
        if index < len(self.modes):
            return self.modes[index]
        return ParameterMode.POSITION


def decode_word(word: int, ip: Optional[int] = None) -> Instruction:
    """Split an instruction word into (opcode, modes).

    Raises InvalidOpcode / InvalidAddressingDigit. ip is only used to
    annotate the exception.
    """
    if word < 0:
        raise InvalidOpcode(word, word, ip)
    opcode = word % 100
    if opcode not in OPCODES:
        raise InvalidOpcode(opcode, word, ip)

    modes = []
    rest = word // 100
    while rest:
        digit = rest % 10
        try:
            modes.append(ParameterMode(digit))
        except ValueError:
            raise InvalidAddressingDigit(digit, word, ip) from None
        rest //= 10
    return Instruction(opcode, tuple(modes))


def encode_word(opcode: int, modes=()) -> int:
    """Inverse of decode_word. Handy for hand-assembling test programs."""
    word = opcode
    scale = 100
    for mode in modes:
        word += int(mode) * scale
        scale *= 10
    return word


def _format_operand(mode: ParameterMode, raw: int) -> str:
    if mode == ParameterMode.POSITION:
        return f"[{raw}]"
    if mode == ParameterMode.RELATIVE:
        return f"[rb{raw:+d}]"
    return f"#{raw}"


def disassemble(memory, start: int = 0, end: Optional[int] = None) -> List[str]:
    """Produce a listing of memory[start:end].

    memory is anything with read() and len() (Memory, or a plain list via
    Memory(list)). Cells that do not decode, or whose operands would run
    past end, are listed as DATA and the walk continues at the next cell.
    """
    if end is None:
        end = len(memory)
    lines = []
    addr = start
    while addr < end:
        word = memory.read(addr)
        try:
            instr = decode_word(word)
        except (InvalidOpcode, InvalidAddressingDigit):
            instr = None
        if instr is None or addr + instr.width > end:
            lines.append(f"{addr:06d}  {word:<12d} DATA   {word}")
            addr += 1
            continue
        raw = [memory.read(addr + 1 + i) for i in range(instr.arity)]
        operands = ", ".join(
            _format_operand(instr.mode(i), v) for i, v in enumerate(raw))
        lines.append(f"{addr:06d}  {word:<12d} {instr.mnemonic:6s} {operands}".rstrip())
        addr += instr.width
    return lines
