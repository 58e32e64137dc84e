"""
System constants
"""


class Constants:
    """System constants"""
    # Network
    DEFAULT_PORT = 12345
    DEFAULT_IP_ADDRESS_CSV = "127.0.0.1"
    IP_ADDRESS_FILE_NAME = "ip_address.txt"
    DEFAULT_ADDRESS_PREFIX = "/bodies"

    # Tracking
    REFERENCE_JOINT = "SpineBase"
    BODY_COUNT = 6

    # Frame timer
    FPS_WINDOW_SECONDS = 1.0
    FPS_HISTORY_SIZE = 240

    # Status text
    FRAMES_TEXT_FORMAT = "{:.2f} fps"
    UPTIME_TEXT_FORMAT = "Uptime: {}"
    INITIALIZING_STATUS_TEXT = "Initializing..."
    NO_SENSOR_FOUND_TEXT = "No sensor found. Check the sensor connection."
