"""
VCP feature codes from the VESA Monitor Control Command Set (MCCS)
"""

import string
from enum import IntEnum
from typing import Union


class VcpCode(IntEnum):
    """Common VCP feature codes."""
    BRIGHTNESS = 0x10
    CONTRAST = 0x12
    COLOR_TEMPERATURE = 0x14
    RED_GAIN = 0x16
    GREEN_GAIN = 0x18
    BLUE_GAIN = 0x1A
    INPUT_SOURCE = 0x60     # Switch between HDMI, DisplayPort, ...
    AUDIO_VOLUME = 0x62
    POWER_MODE = 0xD6


# Human-readable names for VCP codes
VCP_NAMES = {
    0x02: "New Control Value",
    0x04: "Restore Factory Defaults",
    0x05: "Restore Brightness/Contrast",
    0x08: "Restore Color Defaults",
    0x10: "Brightness",
    0x12: "Contrast",
    0x14: "Color Temperature",
    0x16: "Red Gain",
    0x18: "Green Gain",
    0x1A: "Blue Gain",
    0x60: "Input Source",
    0x62: "Audio Volume",
    0x6C: "Red Black Level",
    0x6E: "Green Black Level",
    0x70: "Blue Black Level",
    0x87: "Sharpness",
    0x8A: "Color Saturation",
    0xAC: "Horizontal Frequency",
    0xAE: "Vertical Frequency",
    0xB6: "Display Technology Type",
    0xC6: "Application Enable Key",
    0xC8: "Display Controller Type",
    0xC9: "Display Firmware Level",
    0xD6: "Power Mode",
    0xDC: "Display Mode",
    0xDF: "VCP Version",
}

# Values of VCP 0x60 (Input Source)
INPUT_SOURCE_NAMES = {
    0x01: "VGA-1",
    0x02: "VGA-2",
    0x03: "DVI-1",
    0x04: "DVI-2",
    0x05: "Composite-1",
    0x06: "Composite-2",
    0x07: "S-Video-1",
    0x08: "S-Video-2",
    0x09: "Tuner-1",
    0x0A: "Tuner-2",
    0x0B: "Tuner-3",
    0x0C: "Component-1",
    0x0D: "Component-2",
    0x0E: "Component-3",
    0x0F: "DisplayPort-1",
    0x10: "DisplayPort-2",
    0x11: "HDMI-1",
    0x12: "HDMI-2",
    0x1B: "USB-C",
}


def _parse_hex(text: Union[str, int], maximum: int, what: str) -> int:
    if isinstance(text, int):
        value = text
    else:
        digits = str(text).strip() if text is not None else ""
        if digits[:2].lower() == "0x":
            digits = digits[2:]
        if not digits:
            raise ValueError(f"{what} cannot be empty")
        if any(c not in string.hexdigits for c in digits):
            raise ValueError(f"Invalid {what} format: {text!r}. Expected hexadecimal value.")
        value = int(digits, 16)
    if not 0 <= value <= maximum:
        raise ValueError(f"{what} out of range: {text!r}")
    return value


def parse_vcp_code(code: Union[str, int]) -> int:
    """
    Parse a VCP code given as hex text (``"60"`` or ``"0x60"``) or an int.

    Raises:
        ValueError: If the code is empty, not hexadecimal, or outside 0x00-0xFF
    """
    return _parse_hex(code, 0xFF, "VCP code")


def parse_vcp_value(value: Union[str, int]) -> int:
    """
    Parse a VCP value written the way capability reports list them (``"0F"``).

    Values are 16 bits wide (MH/ML bytes), so continuous settings above 0xFF
    are accepted.

    Raises:
        ValueError: If the value is empty, not hexadecimal, or outside 0x0000-0xFFFF
    """
    return _parse_hex(value, 0xFFFF, "VCP value")


def format_vcp_code(code: int) -> str:
    """Format a code the way capability reports key it, e.g. ``0x60`` -> ``"60"``."""
    return f"{code:02X}"


def feature_name(code: int) -> str:
    """Get a display name for a VCP code."""
    return VCP_NAMES.get(code, f"VCP 0x{code:02X}")


def input_source_name(value: int) -> str:
    """Get a display name for an input source value."""
    return INPUT_SOURCE_NAMES.get(value, f"Input 0x{value:02X}")
