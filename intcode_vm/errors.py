"""
Intcode VM — Fault Types

Every fault the machine can raise derives from IntcodeError so callers
driving several programs (amplifier loops) can catch one type per stage.
Faults carry the instruction pointer they were raised at, when there is one.
"""

from typing import Optional


class IntcodeError(Exception):
    """Base class for all VM faults."""
    def __init__(self, message: str, ip: Optional[int] = None):
        self.ip = ip
        super().__init__(f"ip={ip}: {message}" if ip is not None else message)


class InvalidOpcode(IntcodeError):
    """Decoded operation code is not part of the instruction set."""
    def __init__(self, opcode: int, word: int, ip: Optional[int] = None):
        self.opcode = opcode
        self.word = word
        super().__init__(f"invalid opcode {opcode} (word {word})", ip)


class InvalidAddressingDigit(IntcodeError):
    """A parameter-mode digit outside {0, 1, 2}."""
    def __init__(self, digit: int, word: int, ip: Optional[int] = None):
        self.digit = digit
        self.word = word
        super().__init__(f"unknown parameter mode {digit} in word {word}", ip)


class IllegalImmediateWrite(IntcodeError):
    """Destination parameter encoded in immediate mode."""


class InputExhausted(IntcodeError):
    """Input instruction reached with an empty input queue.

    Recoverable: the machine state is left untouched, so the caller can
    queue more input and resume at the same instruction.
    """


class UnterminatedProgram(IntcodeError):
    """Instruction pointer ran off the end of memory without a halt."""


class InvalidAddress(IntcodeError):
    """Negative effective address."""


class WordOverflow(IntcodeError):
    """Value does not fit the configured integer width."""


class ProgramHalted(IntcodeError):
    """Resume attempted on a program that already executed HALT."""


class ProgramFaulted(IntcodeError):
    """Resume attempted on a program that previously raised a fatal fault."""


class ProgramFormatError(IntcodeError):
    """Program text could not be parsed into integers."""
    def __init__(self, message: str, field: int = -1):
        self.field = field
        super().__init__(f"field {field}: {message}" if field >= 0 else message)
