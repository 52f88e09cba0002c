import re
import serial.tools.list_ports


def render_inbound(data):
    """
    Render a burst of inbound bytes two ways.
    Returns (text, raw): best-effort ASCII text and the comma separated byte values.
    """
    text = data.decode("ascii", errors="replace").strip()
    raw = ", ".join(str(b) for b in data)
    return text, raw


def format_inbound(data):
    text, raw = render_inbound(data)
    return f"Incoming serial data: {text} (raw: {raw})"


def port_key(name):
    """Sort COM ports numerically (COM2 before COM10), everything else by name."""
    m = re.search(r"COM(\d+)", name, re.IGNORECASE)
    return (int(m.group(1)) if m else 10**9, name)


def list_port_names():
    """Names of the serial ports currently present on this machine."""
    ports = [p.device for p in serial.tools.list_ports.comports()]
    return sorted(ports, key=port_key)


def is_valid_port(name):
    return bool(name) and name in list_port_names()
