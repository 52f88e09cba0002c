# Traffic Lights Configuration Constants

# Serial Settings (57600-8-N-1, no flow control)
SERIAL_BAUDRATE = 57600
SERIAL_BYTESIZE = 8
SERIAL_PARITY = "N"
SERIAL_STOPBITS = 1
SERIAL_TIMEOUT_S = 0.1   # Read timeout for the inbound listener
WRITE_TIMEOUT_S = 1.0

# Connection & Timing
DEFAULT_CONNECT_TIMEOUT_MS = 2000
POLL_INTERVAL_S = 0.01       # Readiness poll step
READ_POLL_INTERVAL_S = 0.02  # Inbound listener wake-up
SETTLE_BEFORE_S = 2.0        # Firmware needs time after connect before it listens
SETTLE_AFTER_S = 2.0         # Let the byte leave the wire before closing
LISTENER_JOIN_TIMEOUT_S = 1.0

# Logging
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
