# package init
from .config import *
from .pid import PIDController, PIDStatus, heading_error
from .compass import QMC5883L, HeadingFilter
from .gps_utils import (GeoCoordinate, PositionFix, haversine, calculate_bearing,
                        normalize_angle, normalize_heading, parse_gga)
from .navigation import (NavigationController, NavState, NavigationTarget,
                         Navigating, TargetReached, NoTarget, NoFix)
from .telemetry import LinkChannel, SetTargetCommand, StopCommand, parse_command
from .motor_control import MotorDriver, clamp_speed
from .serial_manager import GpsReceiver, initialize_serial
from .main import Robot, main

__version__ = "0.1.0"
