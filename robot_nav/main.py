import logging
import threading
import time

from . import config
from .compass import QMC5883L, HeadingFilter
from .gps_utils import calculate_bearing, haversine
from .logging_utils import setup_logging
from .motor_control import MotorDriver
from .navigation import NavigationController, Navigating, TargetReached
from .serial_manager import GpsReceiver, close_serial, initialize_serial
from .telemetry import (ACK_INVALID, ACK_STOPPED, ACK_TARGET_REACHED, ACK_TARGET_SET,
                        LinkChannel, SetTargetCommand, StopCommand,
                        format_navigation, format_status)

logger = logging.getLogger(__name__)


class Robot:
    """Owns every sensor, controller and sink used by one control loop."""

    def __init__(self, compass, gps, link, motors, navigator=None, heading_filter=None,
                 telemetry_every=config.TELEMETRY_EVERY):
        self.compass = compass
        self.gps = gps
        self.link = link
        self.motors = motors
        self.navigator = navigator if navigator is not None else NavigationController()
        self.heading_filter = heading_filter if heading_filter is not None else HeadingFilter()
        self.telemetry_every = telemetry_every
        self.heading = self.heading_filter.filtered_heading
        self.loop_counter = 0

    def process_commands(self):
        for line, command in self.link.read_commands():
            logger.info("Link << %s", line)
            if isinstance(command, StopCommand):
                self.navigator.stop()
                self.motors.stop()
                self.link.write(ACK_STOPPED)
            elif isinstance(command, SetTargetCommand) and \
                    self.navigator.set_target(command.latitude, command.longitude):
                self.link.write(ACK_TARGET_SET)
            else:
                self.link.write(ACK_INVALID)

    def tick(self):
        """Run one control step and return the navigation outcome."""
        self.heading = self.heading_filter.get_filtered_heading(self.compass)
        self.gps.update()
        fix = self.gps.fix

        self.process_commands()

        outcome = self.navigator.tick(fix.coordinate, self.heading, fix.fix_valid)
        if isinstance(outcome, Navigating):
            self.motors.set_speeds(outcome.left_speed, outcome.right_speed)
        else:
            # NoTarget / NoFix / TargetReached: hold still this tick
            self.motors.stop()
            if isinstance(outcome, TargetReached):
                self.link.write(ACK_TARGET_REACHED)

        self.loop_counter += 1
        if self.loop_counter >= self.telemetry_every:
            self.send_telemetry(fix)
            self.loop_counter = 0
        return outcome

    def send_telemetry(self, fix):
        target = self.navigator.target
        if target.is_set and fix.fix_valid:
            current = fix.coordinate
            distance = haversine(current, target.coordinate)
            bearing = calculate_bearing(current, target.coordinate)
            self.link.write(format_navigation(current, target.coordinate, distance, bearing))
        elif target.is_set:
            # fix lost: report the last bearing/distance we had
            self.link.write(format_status(self.heading, self.navigator.last_bearing,
                                          self.navigator.last_distance, fix.fix_valid))
        else:
            self.link.write(format_status(self.heading, 0.0, 0.0, fix.fix_valid))

        logger.info("State: H=%.1f GPS=%s Sats=%d Nav=%s", self.heading,
                    "OK" if fix.fix_valid else "NO", fix.satellites,
                    "YES" if self.navigator.is_navigating else "NO")

    def run(self, stop_event, interval=config.LOOP_INTERVAL):
        """Fixed-period loop until stop_event is set."""
        logger.info("Control loop started (%.0f ms)", interval * 1000)
        try:
            while not stop_event.is_set():
                start_time = time.monotonic()
                try:
                    self.tick()
                except Exception:
                    logger.exception("Control tick failed")
                    self.motors.stop()
                elapsed = time.monotonic() - start_time
                stop_event.wait(max(0.0, interval - elapsed))
        finally:
            self.motors.stop()
            logger.info("Control loop stopped")


def main():
    setup_logging()

    gps_port, link_port, motor_port = initialize_serial()
    logger.info("Serial init done.")

    compass = QMC5883L()
    if not compass.init():
        logger.warning("Compass unavailable; heading will hold its last value")

    robot = Robot(
        compass=compass,
        gps=GpsReceiver(gps_port),
        link=LinkChannel(link_port),
        motors=MotorDriver(motor_port),
    )

    stop_event = threading.Event()
    try:
        robot.run(stop_event)
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt: stopping.")
        stop_event.set()
    finally:
        compass.close()
        close_serial(gps_port, link_port, motor_port)
        logger.info("Exiting.")


if __name__ == "__main__":
    main()
