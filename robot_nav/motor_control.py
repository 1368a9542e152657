import logging
import threading

import serial

from .config import MAX_SPEED

logger = logging.getLogger(__name__)


def clamp_speed(value, min_value=-MAX_SPEED, max_value=MAX_SPEED):
    return max(min_value, min(max_value, int(value)))


class MotorDriver:
    """
    Actuation sink: one signed speed per side, sign = direction.

    Packets go to the motor controller as "M1:<left>,M2:<right>\\n".
    """

    def __init__(self, port=None):
        self.port = port
        self._lock = threading.Lock()
        self.left = 0
        self.right = 0

    def set_speeds(self, left, right):
        self.left = clamp_speed(left)
        self.right = clamp_speed(right)
        packet = f"M1:{self.left},M2:{self.right}\n"
        logger.debug("[SEND MOTOR] %s", packet.strip())
        with self._lock:
            try:
                if self.port and self.port.is_open:
                    self.port.write(packet.encode())
            except serial.SerialException as e:
                logger.warning("Motor write failed: %s", e)

    def stop(self):
        self.set_speeds(0, 0)
