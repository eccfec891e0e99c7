"""
Intcode VM — Serial Console
===========================

Drives a Program over a serial line: every output is written as one
decimal line, and whenever the program needs input one line is read from
the port and queued.

  TX: b"42\\n"         (one line per OUT)
  RX: b"-7\\n"         (one line per IN that found the queue empty)

open_port() goes through serial.serial_for_url, so besides real devices
("/dev/ttyUSB0", "COM3") it accepts pyserial URLs such as "loop://" or
"socket://host:port".
"""

import logging
from typing import List, Optional

import serial

from .config import SERIAL_BAUD, SERIAL_ENCODING, SERIAL_TIMEOUT
from .emu import Program
from .errors import InputExhausted, IntcodeError

log = logging.getLogger(__name__)


class SerialLinkError(IntcodeError):
    """Serial port failure or malformed input line."""


def open_port(url: str, baud: int = SERIAL_BAUD,
              timeout: float = SERIAL_TIMEOUT) -> serial.SerialBase:
    """Open a port by device name or pyserial URL."""
    try:
        return serial.serial_for_url(url, baudrate=baud, timeout=timeout,
                                     write_timeout=timeout)
    except (serial.SerialException, ValueError) as e:
        raise SerialLinkError(f"cannot open {url}: {e}") from e


class SerialConsole:
    """Bridge between one Program and one serial port."""

    def __init__(self, program: Program, port: serial.SerialBase):
        self.program = program
        self.port = port
        self.sent: List[int] = []
        self.received: List[int] = []

    def send(self, value: int):
        line = f"{value}\n".encode(SERIAL_ENCODING)
        try:
            self.port.write(line)
            self.port.flush()
        except serial.SerialException as e:
            raise SerialLinkError(f"write failed: {e}") from e
        self.sent.append(value)
        log.debug("TX %d", value)

    def receive(self) -> int:
        try:
            raw = self.port.readline()
        except serial.SerialException as e:
            raise SerialLinkError(f"read failed: {e}") from e
        if not raw:
            raise SerialLinkError("timed out waiting for input", self.program.ip)
        text = raw.decode(SERIAL_ENCODING, errors="replace").strip()
        try:
            value = int(text)
        except ValueError:
            raise SerialLinkError(f"not an integer: {text!r}", self.program.ip) from None
        self.received.append(value)
        log.debug("RX %d", value)
        return value

    def step(self) -> Optional[int]:
        """Resume until the next output or halt, reading input as needed."""
        while True:
            try:
                return self.program.next_output()
            except InputExhausted:
                self.program.feed(self.receive())

    def serve(self) -> List[int]:
        """Run the program to halt. Returns everything sent."""
        log.info("Serving %s on %s", self.program.name, self.port.port)
        while True:
            value = self.step()
            if value is None:
                break
            self.send(value)
        log.info("%s halted: %d sent, %d received",
                 self.program.name, len(self.sent), len(self.received))
        return self.sent
