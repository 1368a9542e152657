"""
Text protocol on the radio link.

In:  "LAT,LNG" sets a target, "STOP" halts navigation. Lines may be wrapped
     in <...>.
Out: STATUS / NAV telemetry lines and short acknowledgements.
"""
import logging
import threading
from dataclasses import dataclass

import serial

from .config import MAX_LINE
from .navigation import valid_coordinate

logger = logging.getLogger(__name__)

ACK_TARGET_SET = "TARGET_SET\n"
ACK_STOPPED = "STOPPED\n"
ACK_TARGET_REACHED = "TARGET_REACHED\n"
ACK_INVALID = "INVALID_FORMAT\n"


@dataclass(frozen=True)
class SetTargetCommand:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class StopCommand:
    pass


def parse_command(line):
    """Return SetTargetCommand, StopCommand, or None for anything invalid."""
    if not line:
        return None
    text = line.strip().replace('<', '').replace('>', '').strip()
    if text.upper() == "STOP":
        return StopCommand()

    parts = text.split(',')
    if len(parts) != 2:
        return None
    try:
        lat = float(parts[0])
        lon = float(parts[1])
    except ValueError:
        return None
    # NaN fails both comparisons and is rejected here too
    if not valid_coordinate(lat, lon):
        return None
    return SetTargetCommand(lat, lon)


def format_status(heading, target_bearing, distance, fix_valid):
    return f"STATUS,{heading:.1f},{target_bearing:.1f},{distance:.1f},{1 if fix_valid else 0}\n"


def format_navigation(current, target, distance, bearing):
    return (f"NAV,{current.latitude:.6f},{current.longitude:.6f},"
            f"{target.latitude:.6f},{target.longitude:.6f},{distance:.1f},{bearing:.1f}\n")


class LinkChannel:
    """Serial link to the operator: thread-safe writes, non-blocking line reads."""

    def __init__(self, port=None, max_line=MAX_LINE):
        self.port = port
        self.max_line = max_line
        self._lock = threading.Lock()
        self._buffer = b""

    def write(self, text):
        with self._lock:
            try:
                if self.port and self.port.is_open:
                    self.port.write(text.encode())
                else:
                    logger.info("[LINK OUT] %s", text.strip())
            except serial.SerialException as e:
                logger.warning("Link write failed: %s", e)

    def read_lines(self):
        """Drain bytes already waiting and return the complete lines among them."""
        if not self.port or not self.port.is_open:
            return []
        try:
            waiting = self.port.in_waiting
            if waiting:
                self._buffer += self.port.read(waiting)
        except serial.SerialException as e:
            logger.warning("Link read failed: %s", e)
            return []

        lines = []
        while True:
            idx = min((i for i in (self._buffer.find(b'\n'), self._buffer.find(b'\r')) if i >= 0),
                      default=-1)
            if idx < 0:
                break
            raw, self._buffer = self._buffer[:idx], self._buffer[idx + 1:]
            if len(raw) > self.max_line:
                logger.warning("Dropped overlong link line (%d bytes)", len(raw))
                continue
            line = raw.decode('ascii', errors='ignore').strip()
            if line:
                lines.append(line)

        if len(self._buffer) > self.max_line:
            # no terminator in sight: noise or a stuck sender
            logger.warning("Dropped %d unterminated link bytes", len(self._buffer))
            self._buffer = b""
        return lines

    @property
    def pending(self):
        return len(self._buffer)

    def read_commands(self):
        """Yield (line, command) pairs; command is None when the line is invalid."""
        for line in self.read_lines():
            yield line, parse_command(line)
