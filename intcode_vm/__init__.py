"""
Intcode VM
==========
A sequential virtual machine for Intcode programs: flat self-modifying
integer memory, three addressing modes, a relative base, and a
suspend/resume contract for wiring several machines into a loop.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────────┐    ┌─────────────┐
    │  Image   │───>│  Memory  │───>│ IntcodeMachine│───>│   Program   │
    │ (ints)   │    │ (arena)  │    │ decode + step │    │ next_output │
    └──────────┘    └──────────┘    └──────────────┘    └─────────────┘
                                                               │
                                                    ┌──────────┴─────────┐
                                                    │ pipeline.py chains │
                                                    │ serial_link.py     │
                                                    └────────────────────┘

    - mem/memory.py:   growable arena, zero-filled on out-of-range access
    - cpu/decoder.py:  instruction word -> opcode + parameter modes
    - emu.py:          operand resolution, dispatch table, Program states
    - pipeline.py:     amplifier chains, feedback loop, noun/verb search
    - loader.py:       comma-separated program text
    - serial_link.py:  run a Program against a serial line
"""

__version__ = "0.4.0"

from .config import MachineConfig, WORD_PROFILES
from .cpu.decoder import Instruction, ParameterMode, decode_word, disassemble
from .emu import IntcodeMachine, Program, ProgramState, StopReason
from .errors import *
from .loader import load_program, parse_program, patch
from .mem.memory import Memory
from .pipeline import (
    FeedbackLoop, final_memory, max_signal, run_chain, run_feedback_loop,
    run_to_completion, search_noun_verb,
)


def run_source(source: str, inputs=(), *, word: str = "bigint") -> list:
    """Parse program text, run it with inputs, return all outputs."""
    return run_to_completion(parse_program(source), inputs,
                             MachineConfig.from_profile(word))
