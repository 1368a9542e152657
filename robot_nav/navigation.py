"""
Navigation state machine: steer toward a single target coordinate.

Each tick turns (position, heading, fix validity) into one of the outcome
types below. Navigating carries the differential wheel speeds for that tick.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from . import config
from .gps_utils import GeoCoordinate, calculate_bearing, haversine
from .pid import PIDController, heading_error

logger = logging.getLogger(__name__)


class NavState(enum.Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"


@dataclass
class NavigationTarget:
    coordinate: GeoCoordinate = GeoCoordinate(0.0, 0.0)
    is_set: bool = False


@dataclass(frozen=True)
class Navigating:
    heading_error: float
    distance: float
    target_bearing: float
    left_speed: int
    right_speed: int


@dataclass(frozen=True)
class TargetReached:
    distance: float


@dataclass(frozen=True)
class NoTarget:
    pass


@dataclass(frozen=True)
class NoFix:
    pass


def valid_coordinate(latitude, longitude):
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def clamp(x, lo, hi):
    return lo if x < lo else hi if x > hi else x


class NavigationController:
    def __init__(self, heading_pid: Optional[PIDController] = None,
                 base_speed_left=config.BASE_SPEED_LEFT,
                 base_speed_right=config.BASE_SPEED_RIGHT,
                 min_speed=config.MIN_SPEED, max_speed=config.MAX_SPEED,
                 arrival_threshold=config.ARRIVAL_THRESHOLD):
        if min_speed > max_speed:
            raise ValueError(f"min_speed {min_speed} > max_speed {max_speed}")
        if heading_pid is None:
            heading_pid = PIDController.create(
                config.KP_HEADING, config.KI_HEADING, config.KD_HEADING,
                config.HEADING_OUTPUT_MIN, config.HEADING_OUTPUT_MAX)
        self.pid = heading_pid
        self.base_speed_left = base_speed_left
        self.base_speed_right = base_speed_right
        self.min_speed = min_speed
        self.max_speed = max_speed
        self.arrival_threshold = arrival_threshold

        self.state = NavState.IDLE
        self.target = NavigationTarget()
        self.last_bearing = 0.0
        self.last_distance = 0.0

    @property
    def is_navigating(self):
        return self.state is NavState.NAVIGATING

    def set_target(self, latitude, longitude) -> bool:
        """Accept a new destination. Out-of-range coordinates are rejected."""
        if not valid_coordinate(latitude, longitude):
            logger.warning("Rejected target %.6f,%.6f: out of range", latitude, longitude)
            return False
        self.target = NavigationTarget(GeoCoordinate(latitude, longitude), True)
        self.pid.reset()
        self.state = NavState.NAVIGATING
        logger.info("New target: %.6f, %.6f", latitude, longitude)
        return True

    def stop(self):
        if self.state is NavState.NAVIGATING:
            logger.info("Navigation stopped")
        self._go_idle()

    def _go_idle(self):
        self.state = NavState.IDLE
        self.target = NavigationTarget(self.target.coordinate, False)
        self.pid.reset()

    def tick(self, current_position, current_heading, position_fix_valid):
        if not self.target.is_set:
            return NoTarget()
        if not position_fix_valid:
            # transient loss: keep target and integral history
            return NoFix()

        target = self.target.coordinate
        bearing = calculate_bearing(current_position, target)
        distance = haversine(current_position, target)
        self.last_bearing = bearing
        self.last_distance = distance

        if distance < self.arrival_threshold:
            logger.info("Target reached (%.2f m)", distance)
            self._go_idle()
            return TargetReached(distance)

        error = heading_error(bearing, current_heading)
        self.pid.set_setpoint(bearing)
        correction = self.pid.compute(current_heading)

        left = clamp(int(self.base_speed_left - correction), self.min_speed, self.max_speed)
        right = clamp(int(self.base_speed_right + correction), self.min_speed, self.max_speed)

        logger.debug("Nav: H=%.1f T=%.1f D=%.1fm L=%d R=%d",
                     current_heading, bearing, distance, left, right)
        return Navigating(error, distance, bearing, left, right)
