#!/usr/bin/env python3
"""
intcodekit — Intcode VM Toolkit
================================

One CLI for everything:
    intcodekit run       — Run a program, print its outputs
    intcodekit disasm    — Disassemble a program image
    intcodekit amp       — Amplifier chain / feedback loop / best phases
    intcodekit nounverb  — Run with a noun/verb, or search for a target
    intcodekit serial    — Serve a program over a serial port

Usage:
    python intcodekit.py <command> [options]
    python intcodekit.py <command> --help

Examples:
    python intcodekit.py run day5.txt -i 5
    python intcodekit.py run day9.txt --interactive --word i128
    python intcodekit.py disasm day9.txt --end 40
    python intcodekit.py amp day7.txt --feedback
    python intcodekit.py amp day7.txt --phases 9,8,7,6,5 --feedback
    python intcodekit.py nounverb day2.txt --target 19690720
    python intcodekit.py serial day9.txt --port /dev/ttyUSB0
"""

import argparse
import logging
import sys
import os

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from intcode_vm import __version__
from intcode_vm.config import DEFAULT_WORD_PROFILE, SERIAL_BAUD, SERIAL_TIMEOUT, WORD_PROFILES, MachineConfig
from intcode_vm.cpu.decoder import disassemble
from intcode_vm.emu import Program
from intcode_vm.errors import InputExhausted, IntcodeError
from intcode_vm.loader import load_program
from intcode_vm.log_setup import setup_logging
from intcode_vm.mem.memory import Memory
from intcode_vm.pipeline import final_memory, max_signal, run_chain, run_feedback_loop, search_noun_verb

log = logging.getLogger("intcodekit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intcodekit",
        description="Intcode VM Toolkit — run, disassemble, chain, search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  run        Run a program and print every output
  disasm     Disassemble a program image
  amp        Amplifier chain or feedback loop
  nounverb   Patch cells 1/2, or search for a target result
  serial     Serve a program over a serial port
""",
    )
    parser.add_argument("--version", action="version", version=f"intcodekit {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity (-v info, -vv debug)")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Suppress all log output except errors")
    parser.add_argument("--log-file", help="Write a detailed log to file")
    parser.add_argument("--word", default=DEFAULT_WORD_PROFILE,
                        choices=list(WORD_PROFILES.keys()),
                        help=f"Integer width profile (default: {DEFAULT_WORD_PROFILE})")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run a program and print every output")
    p_run.add_argument("program", help="Program file (comma-separated integers)")
    p_run.add_argument("-i", "--input", type=int, action="append", default=[],
                       help="Queue an input value (repeatable)")
    p_run.add_argument("--interactive", action="store_true",
                       help="Prompt on stdin whenever the program needs input")
    p_run.add_argument("--trace", action="store_true",
                       help="Print an instruction trace to stderr when done")
    p_run.add_argument("--dump", action="store_true",
                       help="Print memory at halt")
    p_run.add_argument("--watch", type=int, action="append", default=[], metavar="ADDR",
                       help="Report every write to ADDR on stderr (repeatable)")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble a program image")
    p_dis.add_argument("program", help="Program file")
    p_dis.add_argument("--start", type=int, default=0, help="First address")
    p_dis.add_argument("--end", type=int, default=None, help="End address (exclusive)")

    # ── amp ──────────────────────────────────────────────────────────────
    p_amp = sub.add_parser("amp", help="Amplifier chain or feedback loop")
    p_amp.add_argument("program", help="Program file")
    p_amp.add_argument("--phases", help="Comma-separated phases; omit to search all permutations")
    p_amp.add_argument("--feedback", action="store_true",
                       help="Wire the last stage back to the first")
    p_amp.add_argument("--signal", type=int, default=0, help="Initial signal (default: 0)")

    # ── nounverb ─────────────────────────────────────────────────────────
    p_nv = sub.add_parser("nounverb", help="Patch cells 1/2, or search for a target")
    p_nv.add_argument("program", help="Program file")
    p_nv.add_argument("--noun", type=int, help="Value for cell 1")
    p_nv.add_argument("--verb", type=int, help="Value for cell 2")
    p_nv.add_argument("--target", type=int, help="Search noun/verb so that cell 0 == TARGET")

    # ── serial ───────────────────────────────────────────────────────────
    p_ser = sub.add_parser("serial", help="Serve a program over a serial port")
    p_ser.add_argument("program", help="Program file")
    p_ser.add_argument("--port", required=True,
                       help="Device or pyserial URL (COM3, /dev/ttyUSB0, socket://host:port)")
    p_ser.add_argument("--baud", type=int, default=SERIAL_BAUD)
    p_ser.add_argument("--timeout", type=float, default=SERIAL_TIMEOUT,
                       help="Seconds to wait for an input line")
    p_ser.add_argument("-i", "--input", type=int, action="append", default=[],
                       help="Queue an input value before serving (repeatable)")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    if args.quiet:
        console_level = logging.ERROR
    elif args.verbose >= 2:
        console_level = logging.DEBUG
    elif args.verbose == 1:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING
    setup_logging("intcode_vm", console_level=console_level, log_file=args.log_file)
    setup_logging("intcodekit", console_level=console_level, log_file=args.log_file)

    try:
        handler = COMMANDS[args.command]
        return handler(args) or 0
    except (IntcodeError, OSError, ValueError, EOFError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _config(args, trace: bool = False) -> MachineConfig:
    return MachineConfig.from_profile(args.word, trace=trace)


def _parse_phases(text: str):
    return [int(p) for p in text.replace(" ", "").split(",") if p]


def _read_stdin_value() -> int:
    return int(input("input: ").strip())


def _report_write(addr: int, old: int, new: int):
    print(f"watch [{addr}] {old} -> {new}", file=sys.stderr)


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    image = load_program(args.program)
    log.info("Loaded %d cells from %s", len(image), args.program)
    program = Program(image, args.input, _config(args, trace=args.trace),
                      name=os.path.basename(args.program))
    for addr in args.watch:
        program.memory.add_watchpoint(addr, _report_write)
    count = 0
    while True:
        try:
            value = program.next_output()
        except InputExhausted:
            if not args.interactive:
                raise
            program.feed(_read_stdin_value())
            continue
        if value is None:
            break
        print(value)
        count += 1
    log.info("Halted after %d steps, %d outputs", program.machine.steps, count)

    if args.trace:
        print(program.machine.get_trace(), file=sys.stderr)
    if args.dump:
        print(program.memory.dump(0, len(program.memory)))


# ── disasm ───────────────────────────────────────────────────────────────
def cmd_disasm(args):
    mem = Memory(load_program(args.program))
    end = len(mem) if args.end is None else min(args.end, len(mem))
    for line in disassemble(mem, args.start, end):
        print(line)


# ── amp ──────────────────────────────────────────────────────────────────
def cmd_amp(args):
    image = load_program(args.program)
    config = _config(args)
    if args.phases:
        phases = _parse_phases(args.phases)
        runner = run_feedback_loop if args.feedback else run_chain
        signal = runner(image, phases, args.signal, config)
        print(signal)
        return

    signal, phases = max_signal(image, feedback=args.feedback, config=config)
    log.info("Best phases: %s", ",".join(str(p) for p in phases))
    print(f"{signal} {','.join(str(p) for p in phases)}")


# ── nounverb ─────────────────────────────────────────────────────────────
def cmd_nounverb(args):
    image = load_program(args.program)
    config = _config(args)
    if args.target is None:
        print(final_memory(image, args.noun, args.verb, config)[0])
        return

    found = search_noun_verb(image, args.target, config=config)
    if found is None:
        print(f"No noun/verb produces {args.target}", file=sys.stderr)
        return 1
    noun, verb = found
    print(f"{noun} {verb} {100 * noun + verb}")


# ── serial ───────────────────────────────────────────────────────────────
def cmd_serial(args):
    from intcode_vm.serial_link import SerialConsole, open_port

    program = Program(load_program(args.program), args.input, _config(args),
                      name=os.path.basename(args.program))
    port = open_port(args.port, args.baud, args.timeout)
    try:
        sent = SerialConsole(program, port).serve()
    finally:
        port.close()
    print(f"Sent {len(sent)} values to {args.port}")


COMMANDS = {
    "run": cmd_run,
    "disasm": cmd_disasm,
    "amp": cmd_amp,
    "nounverb": cmd_nounverb,
    "serial": cmd_serial,
}


if __name__ == "__main__":
    sys.exit(main())
