"""
Command line client for the traffic lights.

    trafficlights [-lp | -lc | -h] | [-p <port> -c <color>]

Listing ports is handled before listing colors, and any listing is handled
before switching. This module is the only place that decides the exit status.
"""
import sys
import signal
import logging
import argparse

from trafficlights import colors, config, utils
from trafficlights.errors import TrafficLightsError
from trafficlights.session import SerialSession, SessionConfig

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser():
    parser = argparse.ArgumentParser(
        prog="trafficlights",
        description="Switch the traffic lights connected via serial port.",
    )
    parser.add_argument("-lp", "--list-ports", action="store_true",
                        help="List the available COM ports and exit")
    parser.add_argument("-lc", "--list-colors", action="store_true",
                        help="List all supported colors and exit")
    parser.add_argument("-p", "--port", help="Use the given COM port to connect to the external device")
    parser.add_argument("-c", "--color", help="The color the traffic light should switch to")
    parser.add_argument("-t", "--timeout", type=int, default=config.DEFAULT_CONNECT_TIMEOUT_MS,
                        help="Connect timeout in milliseconds (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def list_ports():
    logging.info("List of available COM ports:")
    for num, name in enumerate(utils.list_port_names()):
        logging.info(f"    Port #{num}: {name}")
    return EXIT_OK


def list_colors():
    logging.info("List of valid color names:")
    for color in colors.list_colors():
        logging.info(f"    - {color.name}")
    return EXIT_OK


def check_port(port):
    if not utils.is_valid_port(port):
        logging.warning(f"Invalid port: {port}")
        return False
    return True


def check_color(name):
    color = colors.resolve(name)
    if color is None:
        logging.warning(f"No such color: {name}")
    return color


def switch(port, color, timeout_ms):
    session = SerialSession(SessionConfig(port, timeout_ms))
    try:
        # SIGTERM can only cancel the readiness wait; afterwards it terminates as usual
        previous = signal.signal(signal.SIGTERM, lambda signum, frame: session.cancel())
        try:
            session.open()
        finally:
            signal.signal(signal.SIGTERM, previous)
        session.send_command(color)
    except TrafficLightsError as e:
        logging.error(str(e))
        return EXIT_FAILURE
    return EXIT_OK


def run(args):
    if args.list_ports:
        return list_ports()

    if args.list_colors:
        return list_colors()

    # Color and port set - the caller means business
    if not (args.port and args.color):
        return None

    color = check_color(args.color)
    port_valid = check_port(args.port)
    if color is None or not port_valid:
        logging.warning("One or more required parameters are not correctly set, aborting.")
        return EXIT_FAILURE

    return switch(args.port, color, args.timeout)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.color and not args.port:
        parser.error("option -c/--color requires -p/--port")
    if args.timeout < 0:
        parser.error("timeout must be >= 0")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=config.LOG_FORMAT,
    )

    status = run(args)
    if status is None:
        parser.print_help()
        status = EXIT_OK
    return status


if __name__ == "__main__":
    sys.exit(main())
