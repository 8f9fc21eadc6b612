"""Constants for the WP360 PMUC sysfs interface."""

# Directory exported by the wp360-pmuc kernel driver
PMUC_SYSFS_DIR = "/sys/kernel/wp360-pmuc"

# Read-only attributes
FIRMWARE_RELEASE = "firmware_release"
POWER_VOLTAGE = "power_voltage"
CAPACITOR_VOLTAGE = "capacitor_voltage"
SWITCHING_VOLTAGE = "switching_voltage"
PMUC_TEMPERATURE = "pmuc_temperature"

TELEMETRY_FIELDS = (
    POWER_VOLTAGE,
    CAPACITOR_VOLTAGE,
    SWITCHING_VOLTAGE,
    PMUC_TEMPERATURE,
)

# Writable packed-byte attributes
PORT_POWEROFF = "port_poweroff"
PROGRAM_VERSION = "program_version"

# Firmware release reported when the PMUC does not answer
FIRMWARE_UNAVAILABLE = "00-00-00"

# Telemetry readings are tenths of a volt / tenths of a degree
TELEMETRY_SCALE = 10
TELEMETRY_INTERVAL = 1  # seconds, passed to sleep(1)

# File watch polling
WATCH_INTERVAL = 1.0  # seconds

# Privileged writes
ELEVATE_COMMAND = ("sudo", "-n")
WRITE_TIMEOUT = 10.0  # seconds for the tee subprocess

# Telemetry script shutdown
TERMINATE_TIMEOUT = 2.0  # seconds before SIGKILL

# port_poweroff bit definitions, bit set = port powered off
PORT_BITS = {
    0: "HDMI",
    1: "USB 2.0 (2)",
    2: "USB 2.0 (1)",
    3: "USB 3.0",
}
PORT_COUNT = len(PORT_BITS)
POLARITY_MASK = 0x80  # set = active high

# program_version layout: mode in the high nibble, forced reboot in bit 0
MODE_MASK = 0xF0
FORCED_MASK = 0x01

MODE_LABELS = {
    0: "Bypass",
    16: "Supercapacitor",
    32: "External battery",
}

WATCHDOG_LABELS = {
    False: "Regular reboot",
    True: "Forced reboot",
}
