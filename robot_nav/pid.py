"""Generic PID controller with output clamping and anti-windup."""
import enum
import logging
import time

logger = logging.getLogger(__name__)


class PIDStatus(enum.Enum):
    NOT_READY = "not_ready"
    SKIPPED = "skipped"      # dt <= 0, nothing integrated
    OK = "ok"
    SATURATED = "saturated"


def heading_error(setpoint, current):
    """Shortest signed angle from current to setpoint, in [-180, 180]."""
    error = setpoint - current
    while error > 180.0:
        error -= 360.0
    while error < -180.0:
        error += 360.0
    return error


class PIDController:
    """
    PID loop with derivative-on-input and integral clamping while saturated.

    The controller does nothing until init() is called: compute() returns 0.0
    and the setters are ignored. `clock` must be monotonic; it is injectable so
    tests can step time by hand.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self.kp = 0.0
        self.ki = 0.0
        self.kd = 0.0
        self.setpoint = 0.0
        self.last_input = 0.0
        self.integral_sum = 0.0
        self.output_min = 0.0
        self.output_max = 0.0
        self.last_time = 0.0
        self.initialized = False
        self.status = PIDStatus.NOT_READY

    @classmethod
    def create(cls, kp, ki, kd, output_min, output_max, clock=time.monotonic):
        pid = cls(clock=clock)
        pid.init(kp, ki, kd, output_min, output_max)
        return pid

    def init(self, kp, ki, kd, output_min, output_max):
        if output_min > output_max:
            raise ValueError(f"output_min {output_min} > output_max {output_max}")
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.setpoint = 0.0
        self.last_input = 0.0
        self.integral_sum = 0.0
        self.output_min = output_min
        self.output_max = output_max
        self.last_time = self._clock()
        self.initialized = True
        self.status = PIDStatus.OK

    def set_setpoint(self, value):
        if not self.initialized:
            return
        self.setpoint = value

    def compute(self, value: float) -> float:
        if not self.initialized:
            self.status = PIDStatus.NOT_READY
            return 0.0

        now = self._clock()
        dt = now - self.last_time
        if dt <= 0.0:
            # same tick or clock went backwards: don't divide, don't integrate
            self.status = PIDStatus.SKIPPED
            return 0.0

        error = self.setpoint - value
        proportional = self.kp * error

        self.integral_sum += error * dt
        integral = self.ki * self.integral_sum

        # on the input, so a setpoint jump does not kick the output
        derivative = self.kd * (value - self.last_input) / dt

        output = proportional + integral - derivative
        self.status = PIDStatus.OK

        if output > self.output_max:
            output = self.output_max
            self.status = PIDStatus.SATURATED
            if self.ki != 0.0:
                integral_max = (self.output_max - proportional + derivative) / self.ki
                if self.integral_sum > integral_max:
                    self.integral_sum = integral_max
        elif output < self.output_min:
            output = self.output_min
            self.status = PIDStatus.SATURATED
            if self.ki != 0.0:
                integral_min = (self.output_min - proportional + derivative) / self.ki
                if self.integral_sum < integral_min:
                    self.integral_sum = integral_min

        self.last_input = value
        self.last_time = now
        return output

    def reset(self):
        """Drop integral history and restart the time base."""
        if not self.initialized:
            return
        self.integral_sum = 0.0
        self.last_input = 0.0
        self.last_time = self._clock()

    def tune(self, kp, ki, kd):
        if not self.initialized:
            return
        self.kp = kp
        self.ki = ki
        self.kd = kd
        logger.debug("PID retuned kp=%.3f ki=%.3f kd=%.3f", kp, ki, kd)
        self.reset()

    def set_output_limits(self, output_min, output_max):
        if not self.initialized:
            return
        if output_min > output_max:
            raise ValueError(f"output_min {output_min} > output_max {output_max}")
        self.output_min = output_min
        self.output_max = output_max

        if self.ki != 0.0:
            bounds = (output_min / self.ki, output_max / self.ki)
            low, high = min(bounds), max(bounds)
            if self.integral_sum > high:
                self.integral_sum = high
            elif self.integral_sum < low:
                self.integral_sum = low
