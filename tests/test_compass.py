"""
Heading filter and QMC5883L reader.
"""

import math

import pytest

from robot_nav import compass
from robot_nav.compass import QMC5883L, HeadingFilter


def sample_for(heading_deg):
    """Raw (x, y, z) whose atan2 gives heading_deg."""
    rad = math.radians(heading_deg)
    return math.cos(rad) * 1000, math.sin(rad) * 1000, 0


class ScriptedSource:
    def __init__(self, *samples):
        self.samples = list(samples)

    def read_raw(self):
        item = self.samples.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def angular_distance(a, b):
    d = abs(a - b) % 360
    return min(d, 360 - d)


class TestCalculateHeading:

    def setup_method(self):
        self.filt = HeadingFilter(declination=0.0)

    def test_cardinal_points(self):
        assert self.filt.calculate_heading(1, 0) == pytest.approx(0.0)
        assert self.filt.calculate_heading(0, 1) == pytest.approx(90.0)
        assert self.filt.calculate_heading(-1, 0) == pytest.approx(180.0)
        assert self.filt.calculate_heading(0, -1) == pytest.approx(270.0)

    def test_default_declination_applied(self):
        filt = HeadingFilter()
        assert filt.calculate_heading(1, 0) == pytest.approx(math.degrees(0.0404))

    def test_negative_declination_wraps(self):
        self.filt.set_declination(-math.radians(10))
        assert self.filt.calculate_heading(1, 0) == pytest.approx(350.0)

    def test_always_in_range(self):
        for x, y in [(1, -1e-12), (-1, -1e-12), (0, 0), (-5, 3)]:
            h = self.filt.calculate_heading(x, y)
            assert 0.0 <= h < 360.0


class TestFilter:

    def test_alpha_validation(self):
        with pytest.raises(ValueError):
            HeadingFilter(alpha=0.0)
        with pytest.raises(ValueError):
            HeadingFilter(alpha=1.5)

    def test_moves_fraction_toward_reading(self):
        filt = HeadingFilter(alpha=0.5, declination=0.0, initial_heading=0.0)
        assert filt.update(*sample_for(90)[:2]) == pytest.approx(45.0)

    def test_wraparound_moves_toward_north(self):
        filt = HeadingFilter(alpha=0.5, declination=0.0, initial_heading=0.0)
        filt.update(*sample_for(359)[:2])
        assert filt.filtered_heading == pytest.approx(359.5)
        heading = filt.update(*sample_for(1)[:2])
        assert angular_distance(heading, 0.0) < 1.0
        assert angular_distance(heading, 180.0) > 170.0
        assert 0.0 <= heading < 360.0

    def test_alpha_one_tracks_reading(self):
        filt = HeadingFilter(alpha=1.0, declination=0.0, initial_heading=200.0)
        assert filt.update(*sample_for(10)[:2]) == pytest.approx(10.0)

    def test_declination_change_takes_effect_next_reading(self):
        filt = HeadingFilter(alpha=1.0, declination=0.0)
        filt.update(1, 0)
        filt.set_declination(math.radians(5))
        assert filt.filtered_heading == pytest.approx(0.0)
        assert filt.update(1, 0) == pytest.approx(5.0)


class TestFilteredHeadingFromSource:

    def test_reads_and_filters(self):
        filt = HeadingFilter(alpha=1.0, declination=0.0)
        assert filt.get_filtered_heading(ScriptedSource(sample_for(90))) == pytest.approx(90.0)

    def test_failed_read_returns_last_value(self):
        filt = HeadingFilter(alpha=1.0, declination=0.0, initial_heading=123.0)
        assert filt.get_filtered_heading(ScriptedSource(None)) == 123.0
        assert filt.filtered_heading == 123.0

    def test_bus_error_returns_last_value(self):
        filt = HeadingFilter(alpha=1.0, declination=0.0, initial_heading=45.0)
        source = ScriptedSource(OSError("i2c nack"))
        assert filt.get_filtered_heading(source) == 45.0

    def test_zero_reading_is_not_a_failure(self):
        filt = HeadingFilter(alpha=1.0, declination=0.0, initial_heading=45.0)
        assert filt.get_filtered_heading(ScriptedSource((0, 0, 0))) == 0.0


class FakeBus:
    instances = []

    def __init__(self, bus_id):
        self.bus_id = bus_id
        self.writes = []
        self.block = [0x10, 0x00, 0xFF, 0xFF, 0x00, 0x80]
        self.fail_read = False
        self.closed = False
        FakeBus.instances.append(self)

    def write_byte_data(self, address, register, value):
        self.writes.append((address, register, value))

    def read_i2c_block_data(self, address, register, length):
        if self.fail_read:
            raise OSError("remote I/O error")
        return self.block[:length]

    def close(self):
        self.closed = True


class TestQMC5883L:

    @pytest.fixture(autouse=True)
    def fake_bus(self, monkeypatch):
        FakeBus.instances.clear()
        monkeypatch.setattr(compass.smbus2, "SMBus", FakeBus)

    def test_not_initialized_returns_none(self):
        assert QMC5883L().read_raw() is None

    def test_init_configures_continuous_mode(self):
        mag = QMC5883L(bus=1, address=0x0D)
        assert mag.init() is True
        bus = FakeBus.instances[0]
        assert (0x0D, 0x09, 0x1D) in bus.writes
        assert (0x0D, 0x0B, 0x01) in bus.writes

    def test_read_raw_little_endian_signed(self):
        mag = QMC5883L()
        mag.init()
        assert mag.read_raw() == (16, -1, -32768)

    def test_read_failure_returns_none(self):
        mag = QMC5883L()
        mag.init()
        FakeBus.instances[0].fail_read = True
        assert mag.read_raw() is None

    def test_close_releases_bus(self):
        mag = QMC5883L()
        mag.init()
        mag.close()
        assert FakeBus.instances[0].closed is True
        assert mag.read_raw() is None
