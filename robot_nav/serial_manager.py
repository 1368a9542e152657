import logging
import time

import serial

from . import config
from .gps_utils import PositionFix, parse_gga

logger = logging.getLogger(__name__)


def open_serial(port, baud, timeout=0.05):
    """Open a serial port; returns None (and logs) when it is unavailable."""
    try:
        return serial.Serial(port, baud, timeout=timeout)
    except serial.SerialException as e:
        logger.warning("Serial init failed for %s: %s", port, e)
        return None


def initialize_serial():
    """Open GPS, link and motor ports. Returns (gps, link, motor)."""
    gps = open_serial(config.GPS_PORT, config.GPS_BAUD)
    link = open_serial(config.LINK_PORT, config.LINK_BAUD)
    motor = open_serial(config.MOTOR_PORT, config.MOTOR_BAUD)
    # small pause to let serial stabilize
    time.sleep(0.1)
    return gps, link, motor


def close_serial(*ports):
    for port in ports:
        if port is None:
            continue
        try:
            port.close()
        except serial.SerialException as e:
            logger.warning("Closing %s failed: %s", getattr(port, 'port', port), e)


def read_line(ser):
    """Readline only when bytes are waiting; returns decoded string or None."""
    try:
        if ser and ser.is_open and ser.in_waiting > 0:
            return ser.readline().decode('ascii', errors='ignore').strip()
    except serial.SerialException as e:
        logger.warning("Serial read failed: %s", e)
    return None


class GpsReceiver:
    """Position source: keeps the latest GGA fix read from an NMEA stream."""

    def __init__(self, port=None, max_lines=20):
        self.port = port
        self.max_lines = max_lines
        self.fix = PositionFix()
        self._was_valid = False

    def update(self) -> bool:
        """Consume the sentences already waiting. True if a GGA was parsed."""
        parsed = False
        for _ in range(self.max_lines):
            line = read_line(self.port)
            if not line:
                break
            fix = parse_gga(line)
            if fix is None:
                continue
            self.fix = fix
            parsed = True

        if self.fix.fix_valid != self._was_valid:
            if self.fix.fix_valid:
                logger.info("GPS fix acquired (%d satellites)", self.fix.satellites)
            else:
                logger.warning("GPS fix lost (%d satellites)", self.fix.satellites)
            self._was_valid = self.fix.fix_valid
        return parsed
