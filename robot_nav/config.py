# Configuration and tunable constants

# Heading PID (correction added/subtracted from the base speeds)
KP_HEADING = 2.0
KI_HEADING = 0.1
KD_HEADING = 0.2
HEADING_OUTPUT_MIN = -50.0
HEADING_OUTPUT_MAX = 50.0

# Motor speeds (PWM duty, 0-255)
BASE_SPEED_LEFT = 180
BASE_SPEED_RIGHT = 190
MIN_SPEED = 30
MAX_SPEED = 255

LOOP_INTERVAL = 0.05  # 20 Hz control loop
TELEMETRY_EVERY = 20  # ticks between telemetry lines (~1 s)
MAX_LINE = 128  # longest accepted link line, bytes

ARRIVAL_THRESHOLD = 2.0  # meters
MIN_SATELLITES = 4

# Compass
HEADING_FILTER_ALPHA = 0.6
MAGNETIC_DECLINATION = 0.0404  # radians
I2C_BUS = 1
QMC5883L_ADDRESS = 0x0D

# Serial device paths: change these to match your system
GPS_PORT = '/dev/ttyAMA0'      # GPS receiver (NMEA)
LINK_PORT = '/dev/rfcomm0'     # Radio / Bluetooth link
MOTOR_PORT = '/dev/ttyUSB0'    # Motor controller

# Baud rates
GPS_BAUD = 9600
LINK_BAUD = 9600
MOTOR_BAUD = 115200

# Logging
LOG_FILE = 'robot_nav.log'
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 5
