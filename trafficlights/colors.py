"""
Supported traffic light colors and their wire codes.
This table must match the one in the Arduino sketch.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class ColorCommand:
    name: str
    wire_code: str

    def __post_init__(self):
        if len(self.wire_code) != 1 or not self.wire_code.isascii():
            raise ValueError(f"Wire code for {self.name} must be one ASCII character, got {self.wire_code!r}")

    def to_bytes(self):
        return self.wire_code.encode("ascii")


OFF = ColorCommand("off", "o")
RED = ColorCommand("red", "r")
YELLOW = ColorCommand("yellow", "y")
GREEN = ColorCommand("green", "g")
BLUE = ColorCommand("blue", "b")
WHITE = ColorCommand("white", "w")
# Not a color: runs the test routine on the controller
TEST = ColorCommand("test", "t")

COLORS = {c.name: c for c in (OFF, RED, YELLOW, GREEN, BLUE, WHITE, TEST)}

# Names accepted on input that are not listed
_ALIASES = {
    "black": OFF,
    "self-test": TEST,
    "selftest": TEST,
}

_SORTED = tuple(sorted(COLORS.values(), key=lambda c: c.name.lower()))


def resolve(name):
    """Return the ColorCommand for name (case-insensitive), or None if unknown."""
    if not name:
        return None
    key = name.strip().lower()
    return COLORS.get(key) or _ALIASES.get(key)


def list_colors():
    """All supported colors, sorted by name."""
    return _SORTED
