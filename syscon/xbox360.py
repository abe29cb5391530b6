"""Wired Xbox 360 controller over USB."""

from __future__ import annotations

import logging
import struct
from enum import IntEnum

from syscon.base import BaseController, RawInputData, normalize
from syscon.config import (
    DPAD_DOWN_BUTTON_ID,
    DPAD_LEFT_BUTTON_ID,
    DPAD_RIGHT_BUTTON_ID,
    DPAD_UP_BUTTON_ID,
    ControllerAnalogBinding,
    ControllerFeature,
)
from syscon.results import ControllerError, ControllerResult

# type, length, two bytes of digital bits, two triggers, four stick axes.
_REPORT = struct.Struct("<BBBBBB4h")

# Raw buttons for the bits of report bytes 2 and 3; None marks an unused bit.
_BYTE2_BUTTONS = (
    DPAD_UP_BUTTON_ID,
    DPAD_DOWN_BUTTON_ID,
    DPAD_LEFT_BUTTON_ID,
    DPAD_RIGHT_BUTTON_ID,
    7,
    8,
    9,
    10,
)
_BYTE3_BUTTONS = (5, 6, 11, None, 1, 2, 3, 4)

_RUMBLE_HEADER = bytes((0x00, 0x08, 0x00))
_LED_HEADER = bytes((0x01, 0x03))


class Xbox360InputPacketType(IntEnum):
    """Type byte at the start of a report."""

    BUTTON = 0
    LED = 1
    RUMBLE = 3


class Xbox360LEDValue(IntEnum):
    """Ring-of-light patterns."""

    OFF = 0
    ALL_BLINK = 1
    TOP_LEFT_BLINK = 2
    TOP_RIGHT_BLINK = 3
    BOTTOM_LEFT_BLINK = 4
    BOTTOM_RIGHT_BLINK = 5
    TOP_LEFT = 6
    TOP_RIGHT = 7
    BOTTOM_LEFT = 8
    BOTTOM_RIGHT = 9
    ROTATE = 10
    BLINK = 11
    SLOW_BLINK = 12
    ROTATE_2 = 13
    ALL_SLOW_BLINK = 14
    BLINK_ONCE = 15


def _amplitude_byte(amplitude: float) -> int:
    return max(0, min(255, int(amplitude * 255)))


def parse_xbox360_buttons(data: bytes) -> RawInputData | None:
    """Decode a 14-byte Xbox 360 input report.

    Returns None when the report is not a button report; raises ControllerError
    with UNEXPECTED_DATA when it is too short.
    """
    if len(data) < _REPORT.size:
        raise ControllerError(
            ControllerResult.UNEXPECTED_DATA,
            f"report of {len(data)} bytes is shorter than {_REPORT.size}",
        )
    packet_type, _length, byte2, byte3, rx, ry, x, y, z, rz = _REPORT.unpack_from(data)
    if packet_type != Xbox360InputPacketType.BUTTON:
        return None

    raw = RawInputData()
    for byte, buttons in ((byte2, _BYTE2_BUTTONS), (byte3, _BYTE3_BUTTONS)):
        for bit, button in enumerate(buttons):
            if button is not None:
                raw.buttons[button] = bool((byte >> bit) & 1)

    raw.analog[ControllerAnalogBinding.RX] = normalize(rx, 0, 255)
    raw.analog[ControllerAnalogBinding.RY] = normalize(ry, 0, 255)
    raw.analog[ControllerAnalogBinding.X] = normalize(x, -32768, 32767)
    raw.analog[ControllerAnalogBinding.Y] = normalize(-y, -32768, 32767)
    raw.analog[ControllerAnalogBinding.Z] = normalize(z, -32768, 32767)
    raw.analog[ControllerAnalogBinding.RZ] = normalize(-rz, -32768, 32767)
    return raw


class Xbox360Controller(BaseController):
    """A wired Xbox 360 pad."""

    def initialize(self) -> None:
        """Open the controller and light the first player quadrant."""
        super().initialize()
        try:
            self._set_led(0, Xbox360LEDValue.TOP_LEFT)
        except ControllerError as error:
            self._log(logging.ERROR, "Failed to set LED: %s", error)

    def parse_data(self, buffer: bytes, input_idx: int) -> RawInputData | None:
        """Decode a button report; any other report type is unexpected."""
        raw = parse_xbox360_buttons(buffer)
        if raw is None:
            raise ControllerError(
                ControllerResult.UNEXPECTED_DATA, f"unexpected report type {buffer[0]:#04x}"
            )
        return raw

    def supports(self, feature: ControllerFeature) -> bool:
        """Rumble is supported."""
        return feature == ControllerFeature.SUPPORTS_RUMBLE

    def set_rumble(self, input_idx: int, amp_high: float, amp_low: float) -> None:
        """Send rumble amplitudes (0.0..1.0) through the input's output pipe."""
        if input_idx >= len(self.out_pipes):
            raise ControllerError(
                ControllerResult.INVALID_INDEX, f"no output pipe for input {input_idx}"
            )
        packet = _RUMBLE_HEADER + bytes(
            (_amplitude_byte(amp_high), _amplitude_byte(amp_low), 0x00, 0x00, 0x00)
        )
        self.out_pipes[input_idx].write(packet)

    def _set_led(self, input_idx: int, value: Xbox360LEDValue) -> None:
        if input_idx >= len(self.out_pipes):
            return
        self.out_pipes[input_idx].write(_LED_HEADER + bytes((int(value),)))