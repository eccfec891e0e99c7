"""
Intcode VM — Program Loading

Programs are distributed as one line of comma-separated signed integers.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import NOUN_ADDR, VERB_ADDR
from .errors import ProgramFormatError
from .mem.memory import Memory


def parse_program(text: str) -> List[int]:
    """Parse "1,0,0,3,99" into [1, 0, 0, 3, 99].

    Whitespace (including newlines) around fields is ignored, as are empty
    fields such as a trailing comma.
    """
    image = []
    for i, field in enumerate(text.strip().split(',')):
        field = field.strip()
        if not field:
            continue
        try:
            image.append(int(field))
        except ValueError:
            raise ProgramFormatError(f"not an integer: {field!r}", i) from None
    if not image:
        raise ProgramFormatError("empty program")
    return image


def load_program(path: Union[str, Path]) -> List[int]:
    """Read and parse a program file."""
    return parse_program(Path(path).read_text(encoding="utf-8"))


def format_program(image: Sequence[int]) -> str:
    return ",".join(str(v) for v in image)


def patch(image: Sequence[int], noun: Optional[int] = None,
          verb: Optional[int] = None) -> List[int]:
    """Copy of image with the noun (cell 1) and verb (cell 2) replaced.

    A short image is zero-extended to reach the patched cell.
    """
    patched = Memory(image)
    if noun is not None:
        patched.write(NOUN_ADDR, noun)
    if verb is not None:
        patched.write(VERB_ADDR, verb)
    return patched.snapshot()
