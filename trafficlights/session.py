import serial
import time
import queue
import threading
import logging
from dataclasses import dataclass
from enum import Enum
from . import config, utils
from .errors import ConnectFailure, ConnectFailureKind, TransmitFailure, TransmitFailureKind

_BYTESIZES = {7: serial.SEVENBITS, 8: serial.EIGHTBITS}
_PARITIES = {"N": serial.PARITY_NONE, "E": serial.PARITY_EVEN, "O": serial.PARITY_ODD}
_STOPBITS = {1: serial.STOPBITS_ONE, 2: serial.STOPBITS_TWO}


@dataclass(frozen=True)
class SessionConfig:
    device_path: str
    connect_timeout_ms: int = config.DEFAULT_CONNECT_TIMEOUT_MS
    settle_before_s: float = config.SETTLE_BEFORE_S
    settle_after_s: float = config.SETTLE_AFTER_S

    def __post_init__(self):
        if self.connect_timeout_ms < 0:
            raise ValueError(f"connect_timeout_ms must be >= 0, got {self.connect_timeout_ms}")


class SessionState(Enum):
    CLOSED = "CLOSED"
    OPENING = "OPENING"
    READY = "READY"
    FAILED = "FAILED"


class InboundListener:
    """
    Drains bytes the Arduino sends back and hands them to the diagnostic sink.

    The reader thread only touches the port under the session lock and passes
    each burst through a queue; the dispatcher thread renders and logs it.
    Nothing here ever writes to the device or raises into the session.
    """

    def __init__(self, session, log_fn):
        self.session = session
        self.log_fn = log_fn
        self._queue = queue.Queue()
        self._stop = threading.Event()
        self._reader = None
        self._dispatcher = None
        self._stop_lock = threading.Lock()

    @property
    def running(self):
        return self._reader is not None and self._reader.is_alive()

    def start(self):
        name = self.session.config.device_path
        self._dispatcher = threading.Thread(target=self._dispatch_loop, name=f"rx-log {name}", daemon=True)
        self._reader = threading.Thread(target=self._read_loop, name=f"rx {name}", daemon=True)
        self._dispatcher.start()
        self._reader.start()

    def stop(self):
        """Stop both threads and flush whatever was already read. Safe to call twice."""
        with self._stop_lock:
            if self._reader is None:
                return
            self._stop.set()
            self._reader.join(config.LISTENER_JOIN_TIMEOUT_S)
            self._queue.put(None)
            self._dispatcher.join(config.LISTENER_JOIN_TIMEOUT_S)
            self._reader = None
            self._dispatcher = None

    def _read_loop(self):
        failing = False
        while not self._stop.wait(config.READ_POLL_INTERVAL_S):
            try:
                data = self.session.read_available()
            except (serial.SerialException, OSError) as e:
                # Only the first error of a consecutive run is reported
                if not failing:
                    logging.error(f"Error reading incoming data from {self.session.device_path}: {e}")
                failing = True
                continue
            if failing:
                logging.info(f"Reading from {self.session.device_path} recovered.")
                failing = False
            if data:
                self._queue.put(data)

    def _dispatch_loop(self):
        while True:
            data = self._queue.get()
            if data is None:
                break
            self.log_fn(utils.format_inbound(data))


class SerialSession:
    """
    One connection to the traffic lights Arduino.

    Lifecycle: CLOSED -> open() -> OPENING -> READY -> send_command() -> CLOSED.
    Any failure while opening releases the port and ends in FAILED.
    A session is single use; create a new one to try again.
    """

    def __init__(self, session_config, log_fn=None, serial_factory=None):
        self.config = session_config
        self.log_fn = log_fn or logging.info
        self.serial_factory = serial_factory or serial.Serial
        self.ser = None
        self.lock = threading.Lock()
        self.state = SessionState.CLOSED
        self.listener = InboundListener(self, self.log_fn)
        self._used = False
        self._cancel = threading.Event()

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def device_path(self):
        return self.config.device_path

    def open(self):
        """
        Open and configure the port, start listening, then wait until it reports open.
        Returns self in READY state.
        Raises ConnectFailure (port already released) on any error.
        """
        if self._used:
            raise RuntimeError(f"Session for {self.device_path} was already used. Create a new session.")
        self._used = True
        self.state = SessionState.OPENING
        logging.info(f"Connecting to {self.device_path} at {config.SERIAL_BAUDRATE}...")

        try:
            with self.lock:
                self.ser = self._acquire()
                self._configure(self.ser)
            self.listener.start()
            self._wait_ready()
        except KeyboardInterrupt as e:
            failure = ConnectFailure(
                f"Interrupted while connecting to {self.device_path}",
                self.device_path, ConnectFailureKind.INTERRUPTED, e,
            )
            self._fail(failure)
            raise failure from e
        except ConnectFailure as e:
            self._fail(e)
            raise
        except Exception as e:
            failure = ConnectFailure(
                f"An error occurred while connecting to {self.device_path}: {e}",
                self.device_path, ConnectFailureKind.DEVICE_OPEN, e,
            )
            self._fail(failure)
            raise failure from e

        self.state = SessionState.READY
        logging.info(f"Connected to {self.device_path}.")
        return self

    def cancel(self):
        """Abort a readiness wait in progress (e.g. from a signal handler)."""
        self._cancel.set()

    def send_command(self, command):
        """
        Send one ColorCommand, bracketed by the settle delays.
        The session is closed afterwards whether or not the write succeeded.
        Raises TransmitFailure if the byte could not be written.
        """
        if self.state is not SessionState.READY:
            raise RuntimeError(f"Cannot send to {self.device_path} in state {self.state.value}")

        try:
            time.sleep(self.config.settle_before_s)
            try:
                self._write(command)
            finally:
                time.sleep(self.config.settle_after_s)
        finally:
            self.close()

    def close(self):
        """Release the port. Closing a closed session is a no-op."""
        self.listener.stop()
        with self.lock:
            ser, self.ser = self.ser, None
            if ser is not None:
                try:
                    ser.close()
                except (serial.SerialException, OSError) as e:
                    logging.warning(f"Error closing {self.device_path}: {e}")
                logging.info(f"Disconnected from {self.device_path}.")
        if self.state is not SessionState.FAILED:
            self.state = SessionState.CLOSED

    def read_available(self):
        """Read every byte currently waiting. Used by the listener thread."""
        with self.lock:
            ser = self.ser
            if ser is None or not ser.is_open:
                return b""
            waiting = ser.in_waiting
            if not waiting:
                return b""
            return ser.read(waiting)

    # --- internals ---

    def _acquire(self):
        path = self.device_path
        try:
            # port=None keeps pyserial from opening before DTR is set
            ser = self.serial_factory(
                port=None,
                exclusive=True,
                timeout=config.SERIAL_TIMEOUT_S,
                write_timeout=config.WRITE_TIMEOUT_S,
            )
            ser.port = path
        except (serial.SerialException, ValueError) as e:
            raise ConnectFailure(
                f"An error occurred while connecting to {path}: {e}",
                path, ConnectFailureKind.DEVICE_OPEN, e,
            ) from e

        self._suppress_dtr(ser)

        try:
            ser.open()
        except (serial.SerialException, OSError, ValueError) as e:
            raise ConnectFailure(
                f"An error occurred while connecting to {path}: {e}",
                path, ConnectFailureKind.DEVICE_OPEN, e,
            ) from e
        return ser

    def _suppress_dtr(self, ser):
        # Raising DTR resets most Arduinos. Best effort: works on Windows, often not on Linux.
        try:
            ser.dtr = False
        except (serial.SerialException, OSError, ValueError) as e:
            logging.debug(f"DTR suppression not available on {self.device_path}: {e}")

    def _configure(self, ser):
        try:
            ser.baudrate = config.SERIAL_BAUDRATE
            ser.bytesize = _BYTESIZES[config.SERIAL_BYTESIZE]
            ser.parity = _PARITIES[config.SERIAL_PARITY]
            ser.stopbits = _STOPBITS[config.SERIAL_STOPBITS]
            ser.xonxoff = False
            ser.rtscts = False
            ser.dsrdtr = False
        except (serial.SerialException, OSError, ValueError) as e:
            raise ConnectFailure(
                f"Could not configure {self.device_path}: {e}",
                self.device_path, ConnectFailureKind.CONFIGURE, e,
            ) from e

    def _is_ready(self):
        with self.lock:
            return self.ser is not None and bool(self.ser.is_open)

    def _wait_ready(self):
        timeout_ms = self.config.connect_timeout_ms
        start = time.monotonic()
        while not self._is_ready():
            if self._cancel.wait(config.POLL_INTERVAL_S):
                raise ConnectFailure(
                    f"Interrupted while connecting to {self.device_path}",
                    self.device_path, ConnectFailureKind.INTERRUPTED,
                )
            if (time.monotonic() - start) * 1000 > timeout_ms:
                raise ConnectFailure(
                    f"Timeout while connecting to {self.device_path}, "
                    f"connect took longer than {timeout_ms} milliseconds",
                    self.device_path, ConnectFailureKind.TIMEOUT,
                )

    def _write(self, command):
        payload = command.to_bytes()
        with self.lock:
            try:
                self.ser.write(payload)
                self.ser.flush()
            except (serial.SerialException, OSError) as e:
                raise TransmitFailure(
                    f"Error sending {command.name} to {self.device_path}: {e}",
                    self.device_path, TransmitFailureKind.WRITE, e,
                ) from e
        logging.info(f"Sent {command.name} ({command.wire_code!r}) to {self.device_path}")

    def _fail(self, failure):
        logging.error(f"Connection failed: {failure}")
        self.close()
        self.state = SessionState.FAILED


def switch_to_color(device_path, command, connect_timeout_ms=config.DEFAULT_CONNECT_TIMEOUT_MS, log_fn=None):
    """Open the port, send one color command, close. Failures propagate typed."""
    session = SerialSession(SessionConfig(device_path, connect_timeout_ms), log_fn=log_fn)
    session.open()
    session.send_command(command)
