import math
from collections import namedtuple
from dataclasses import dataclass

from .config import MIN_SATELLITES

EARTH_RADIUS = 6371000.0  # meters

GeoCoordinate = namedtuple('GeoCoordinate', ['latitude', 'longitude'])


@dataclass(frozen=True)
class PositionFix:
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    satellites: int = 0
    fix_quality: int = 0
    utc_time: str = ''

    @property
    def fix_valid(self):
        return self.satellites >= MIN_SATELLITES and self.fix_quality > 0

    @property
    def coordinate(self):
        return GeoCoordinate(self.latitude, self.longitude)


def safe_float(s, default=None):
    try:
        return float(s)
    except (TypeError, ValueError):
        return default


def safe_int(s, default=0):
    try:
        return int(s)
    except (TypeError, ValueError):
        return default


def normalize_angle(angle):
    """Wrap an angle difference into [-180, 180]."""
    while angle > 180:
        angle -= 360
    while angle < -180:
        angle += 360
    return angle


def normalize_heading(angle):
    """Wrap a heading into [0, 360)."""
    angle = angle % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if angle >= 360.0 else angle


def haversine(a, b):
    """Great-circle distance in meters between two GeoCoordinates."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)
    h = math.sin(dphi / 2)**2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2)**2
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS * c


def calculate_bearing(a, b):
    """Initial great-circle bearing from a to b, degrees in [0, 360)."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dlambda = math.radians(b.longitude - a.longitude)
    x = math.sin(dlambda) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlambda)
    return normalize_heading(math.degrees(math.atan2(x, y)))


def nmea_checksum(body):
    cs = 0
    for ch in body:
        cs ^= ord(ch)
    return f"{cs:02X}"


def nmea_to_decimal(value, hemisphere):
    """Convert NMEA ddmm.mmmm / dddmm.mmmm to signed decimal degrees, or None."""
    raw = safe_float(value)
    if raw is None or len(value) < 4:
        return None
    degrees = int(raw / 100)
    minutes = raw - degrees * 100
    decimal = degrees + minutes / 60.0
    if hemisphere in ('S', 'W'):
        decimal = -decimal
    return decimal


def parse_gga(line):
    """
    Parse a $GPGGA / $GNGGA sentence into a PositionFix.

    $GNGGA,time,lat,NS,lon,EW,fix,sats,hdop,alt,M,...*CS
    Returns None for other sentences, bad checksums or missing fields.
    """
    if not line or not line.startswith(('$GPGGA', '$GNGGA')):
        return None

    body = line[1:]
    if '*' in body:
        body, cs = body.split('*', 1)
        if nmea_checksum(body) != cs.strip().upper():
            return None

    fields = body.split(',')
    if len(fields) < 10:
        return None

    fix_quality = safe_int(fields[6])
    satellites = safe_int(fields[7])
    latitude = nmea_to_decimal(fields[2], fields[3])
    longitude = nmea_to_decimal(fields[4], fields[5])
    if latitude is None or longitude is None:
        # no position yet: report the satellite count with no fix
        return PositionFix(satellites=satellites, fix_quality=0, utc_time=fields[1][:6])

    return PositionFix(
        latitude=latitude,
        longitude=longitude,
        altitude=safe_float(fields[9], 0.0),
        satellites=satellites,
        fix_quality=fix_quality,
        utc_time=fields[1][:6],
    )
