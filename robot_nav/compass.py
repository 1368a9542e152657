"""
Compass heading: QMC5883L magnetometer reader and low-pass heading filter.
"""
import logging
import math

import smbus2

from . import config
from .gps_utils import normalize_angle, normalize_heading

logger = logging.getLogger(__name__)

_REG_DATA = 0x00      # X LSB, 6 bytes X/Y/Z little endian
_REG_CONTROL = 0x09
_REG_PERIOD = 0x0B
_CONTROL_CONTINUOUS = 0x1D  # continuous, 200 Hz, 8 G, OSR 512


class QMC5883L:
    """Raw sample source. read_raw() returns (x, y, z) or None on failure."""

    def __init__(self, bus=config.I2C_BUS, address=config.QMC5883L_ADDRESS):
        self.bus_id = bus
        self.address = address
        self.bus = None
        self.initialized = False

    def init(self) -> bool:
        try:
            self.bus = smbus2.SMBus(self.bus_id)
            self.bus.write_byte_data(self.address, _REG_CONTROL, _CONTROL_CONTINUOUS)
            self.bus.write_byte_data(self.address, _REG_PERIOD, 0x01)
        except OSError as e:
            logger.warning("QMC5883L init failed on bus %s: %s", self.bus_id, e)
            self.close()
            return False
        self.initialized = True
        return True

    def read_raw(self):
        if not self.initialized:
            return None
        try:
            data = self.bus.read_i2c_block_data(self.address, _REG_DATA, 6)
        except OSError as e:
            logger.debug("QMC5883L read failed: %s", e)
            return None
        x = self._to_signed(data[1] << 8 | data[0])
        y = self._to_signed(data[3] << 8 | data[2])
        z = self._to_signed(data[5] << 8 | data[4])
        return x, y, z

    def close(self):
        if self.bus is not None:
            self.bus.close()
            self.bus = None
        self.initialized = False

    @staticmethod
    def _to_signed(val, bits=16):
        return val - (1 << bits) if val & (1 << (bits - 1)) else val


class HeadingFilter:
    """
    One-pole exponential filter over compass headings.

    The step toward each new reading is taken along the shortest arc, so a
    run of samples crossing north (359 -> 1) settles near 0/360 instead of
    dragging the estimate through 180.
    """

    def __init__(self, alpha=config.HEADING_FILTER_ALPHA,
                 declination=config.MAGNETIC_DECLINATION, initial_heading=0.0):
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha
        self.declination = declination
        self.filtered_heading = normalize_heading(initial_heading)

    def set_declination(self, radians):
        self.declination = radians

    def calculate_heading(self, x, y):
        heading = math.degrees(math.atan2(y, x)) + math.degrees(self.declination)
        return normalize_heading(heading)

    def update(self, x, y):
        """Fold one raw sample into the estimate and return it."""
        new_heading = self.calculate_heading(x, y)
        difference = normalize_angle(new_heading - self.filtered_heading)
        self.filtered_heading = normalize_heading(self.filtered_heading + self.alpha * difference)
        return self.filtered_heading

    def get_filtered_heading(self, source):
        """Read one sample from `source`; keep the last estimate if the read fails."""
        try:
            sample = source.read_raw()
        except OSError as e:
            logger.warning("Compass read error: %s", e)
            sample = None
        if sample is None:
            return self.filtered_heading
        x, y = sample[0], sample[1]
        return self.update(x, y)
