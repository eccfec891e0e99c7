"""
Intcode VM — Machine Configuration
==================================

Integer width profiles and the constants used by the amplifier and
noun/verb helpers. The VM itself only reads MachineConfig; everything
else here is consumed by pipeline.py and the intcodekit CLI.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
#  INTEGER WIDTH PROFILES
# =============================================================================
# The oldest programs fit in 32 bits; relative-mode programs need headroom
# beyond 64-bit decimal magnitude. None means Python's unbounded int.
WORD_PROFILES = {
    "i32":    {"bits": 32,   "description": "32-bit signed (position/immediate programs)"},
    "i64":    {"bits": 64,   "description": "64-bit signed"},
    "i128":   {"bits": 128,  "description": "128-bit signed (relative-mode programs)"},
    "bigint": {"bits": None, "description": "Unbounded Python int (default)"},
}

DEFAULT_WORD_PROFILE = "bigint"


# =============================================================================
#  AMPLIFIER CONFIGURATION
# =============================================================================
SERIAL_PHASES = range(0, 5)     # one pass through the chain
FEEDBACK_PHASES = range(5, 10)  # loop until every stage halts
INITIAL_SIGNAL = 0


# =============================================================================
#  NOUN / VERB SEARCH
# =============================================================================
NOUN_ADDR = 1
VERB_ADDR = 2
SEARCH_RANGE = range(0, 99)


# =============================================================================
#  SERIAL LINK
# =============================================================================
SERIAL_BAUD = 115200
SERIAL_TIMEOUT = 2.0
SERIAL_ENCODING = "ascii"


@dataclass(frozen=True)
class MachineConfig:
    """Per-machine settings.

    word_bits: signed width every stored value must fit in, or None.
    trace:     record one trace line per executed instruction.
    """
    word_bits: Optional[int] = None
    trace: bool = False

    @classmethod
    def from_profile(cls, name: str, trace: bool = False) -> "MachineConfig":
        if name not in WORD_PROFILES:
            raise KeyError(f"Unknown word profile: {name}")
        return cls(word_bits=WORD_PROFILES[name]["bits"], trace=trace)

    @property
    def word_min(self) -> Optional[int]:
        if self.word_bits is None:
            return None
        return -(1 << (self.word_bits - 1))

    @property
    def word_max(self) -> Optional[int]:
        if self.word_bits is None:
            return None
        return (1 << (self.word_bits - 1)) - 1

    def fits(self, value: int) -> bool:
        if self.word_bits is None:
            return True
        return self.word_min <= value <= self.word_max
