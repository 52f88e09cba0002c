"""
Exception hierarchy for the traffic lights serial link.

Catch TrafficLightsError broadly, or ConnectFailure / TransmitFailure
narrowly. Both carry the device path and a kind for the log line.
"""
from enum import Enum


class ConnectFailureKind(Enum):
    TIMEOUT = "timeout"
    INTERRUPTED = "interrupted"
    DEVICE_OPEN = "device_open"
    CONFIGURE = "configure"


class TransmitFailureKind(Enum):
    WRITE = "write"


class TrafficLightsError(Exception):
    """Base exception for all traffic lights errors."""

    def __init__(self, message, device_path=None, kind=None, cause=None):
        super().__init__(message)
        self.message = message
        self.device_path = device_path
        self.kind = kind
        self.cause = cause


class ConnectFailure(TrafficLightsError):
    """Raised when opening, configuring or waiting for the port fails.
    The device has already been released when this is raised."""


class TransmitFailure(TrafficLightsError):
    """Raised when the command byte could not be written."""
