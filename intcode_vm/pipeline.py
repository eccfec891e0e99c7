"""
Intcode VM — Whole-Program Helpers and Amplifier Pipelines
==========================================================

Callers built on Program.next_output():

  run_to_completion   one program, all outputs
  final_memory        one program with no I/O, memory at halt
  search_noun_verb    brute-force cells 1/2 until memory[0] hits a target
  run_chain           serial amplifier chain, one pass
  FeedbackLoop        amplifier chain wired back on itself, run until every
                      stage has halted
  max_signal          best phase permutation for either layout

Every stage in a chain is a separate Program with its own memory copy, so
a fault in one stage never touches another.
"""

import logging
from itertools import permutations, product
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import FEEDBACK_PHASES, INITIAL_SIGNAL, SEARCH_RANGE, SERIAL_PHASES, MachineConfig
from .emu import Program
from .errors import InputExhausted, IntcodeError
from .loader import patch

log = logging.getLogger(__name__)


def run_to_completion(image: Sequence[int], inputs: Iterable[int] = (),
                      config: Optional[MachineConfig] = None) -> List[int]:
    """Outputs of one program run from start to halt."""
    return Program(image, inputs, config).outputs()


def final_memory(image: Sequence[int], noun: Optional[int] = None,
                 verb: Optional[int] = None,
                 config: Optional[MachineConfig] = None) -> List[int]:
    """Run a program that does no I/O and return its memory at halt.

    Any OUT is drained and ignored.
    """
    program = Program(patch(image, noun, verb), config=config)
    program.outputs()
    return program.memory.snapshot()


def search_noun_verb(image: Sequence[int], target: int,
                     search: Iterable[int] = SEARCH_RANGE,
                     config: Optional[MachineConfig] = None) -> Optional[Tuple[int, int]]:
    """First (noun, verb) for which memory[0] == target at halt, else None.

    Combinations that fault are skipped.
    """
    values = list(search)
    for noun, verb in product(values, values):
        try:
            result = final_memory(image, noun, verb, config)[0]
        except IntcodeError as e:
            log.debug("noun=%d verb=%d faulted: %s", noun, verb, e)
            continue
        if result == target:
            log.info("Found noun=%d verb=%d -> %d", noun, verb, target)
            return noun, verb
    return None


# ──────────────────────────────────────────────
# Amplifier chains
# ──────────────────────────────────────────────

def run_chain(image: Sequence[int], phases: Sequence[int],
              signal: int = INITIAL_SIGNAL,
              config: Optional[MachineConfig] = None) -> int:
    """Serial chain: each stage gets [phase, signal], emits the next signal."""
    for i, phase in enumerate(phases):
        stage = Program(image, [phase], config, name=f"amp{i}")
        value = stage.next_output([signal])
        if value is None:
            raise IntcodeError(f"amp{i} halted without producing a signal")
        signal = value
    return signal


class FeedbackLoop:
    """Amplifier stages wired in a cycle.

    Stage i is primed with phases[i]. One round passes the signal through
    every stage in order; the last stage's output goes back into stage 0.
    The loop is finished when every stage has halted; the result is the
    last signal the final stage emitted.
    """

    def __init__(self, image: Sequence[int], phases: Sequence[int],
                 signal: int = INITIAL_SIGNAL,
                 config: Optional[MachineConfig] = None):
        self.stages = [
            Program(image, [phase], config, name=f"amp{i}")
            for i, phase in enumerate(phases)
        ]
        self.signal = signal
        self.last_output: Optional[int] = None
        self.rounds = 0

    @property
    def halted(self) -> bool:
        return all(stage.halted for stage in self.stages)

    def step(self) -> bool:
        """Run one round. Returns False once the signal stops flowing."""
        if self.halted:
            return False
        signal: Optional[int] = self.signal
        for stage in self.stages:
            if stage.halted:
                return False
            signal = stage.next_output([signal])
            if signal is None:
                return False
        self.signal = signal
        self.last_output = signal
        self.rounds += 1
        return True

    def run(self) -> Optional[int]:
        while self.step():
            pass
        self._drain()
        log.debug("feedback loop done after %d rounds, signal=%s", self.rounds, self.last_output)
        return self.last_output

    def _drain(self):
        # Stages after the one that halted first may still be mid-program.
        # Their late outputs have no consumer and are dropped.
        for stage in self.stages:
            while not stage.halted:
                try:
                    if stage.next_output() is None:
                        break
                except InputExhausted:
                    log.warning("%s still waiting for input after the loop stopped", stage.name)
                    break


def run_feedback_loop(image: Sequence[int], phases: Sequence[int],
                      signal: int = INITIAL_SIGNAL,
                      config: Optional[MachineConfig] = None) -> Optional[int]:
    return FeedbackLoop(image, phases, signal, config).run()


def max_signal(image: Sequence[int], phase_range: Optional[Iterable[int]] = None,
               feedback: bool = False,
               config: Optional[MachineConfig] = None) -> Tuple[int, Tuple[int, ...]]:
    """Best (signal, phases) over every permutation of phase_range."""
    if phase_range is None:
        phase_range = FEEDBACK_PHASES if feedback else SERIAL_PHASES
    runner = run_feedback_loop if feedback else run_chain
    best: Optional[Tuple[int, Tuple[int, ...]]] = None
    for phases in permutations(phase_range):
        signal = runner(image, phases, config=config)
        if signal is not None and (best is None or signal > best[0]):
            best = (signal, phases)
    if best is None:
        raise IntcodeError("no phase permutation produced a signal")
    return best
