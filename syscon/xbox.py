"""Original Xbox controller over USB."""

from __future__ import annotations

import struct

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

# type, length, digital bits, reserved, six analog buttons, two triggers, four stick axes.
_REPORT = struct.Struct("<BBBx6BBB4h")

# Raw buttons for the bits of the digital byte.
_DIGITAL_BUTTONS = (
    DPAD_UP_BUTTON_ID,
    DPAD_DOWN_BUTTON_ID,
    DPAD_LEFT_BUTTON_ID,
    DPAD_RIGHT_BUTTON_ID,
    7,
    8,
    9,
    10,
)

_RUMBLE_HEADER = bytes((0x00, 0x06, 0x00))


def _amplitude_byte(amplitude: float) -> int:
    return max(0, min(255, int(amplitude * 255)))


class XboxController(BaseController):
    """An original Xbox pad with pressure-sensitive face buttons."""

    def parse_data(self, buffer: bytes, input_idx: int) -> RawInputData | None:
        """Decode a 20-byte input report."""
        if len(buffer) < _REPORT.size:
            raise ControllerError(
                ControllerResult.UNEXPECTED_DATA,
                f"report of {len(buffer)} bytes is shorter than {_REPORT.size}",
            )
        (
            _type,
            _length,
            digital,
            *pressure,
            trigger_left,
            trigger_right,
            stick_left_x,
            stick_left_y,
            stick_right_x,
            stick_right_y,
        ) = _REPORT.unpack_from(buffer)

        raw = RawInputData()
        for button, value in enumerate(pressure, start=1):
            raw.buttons[button] = value > 0
        for bit, button in enumerate(_DIGITAL_BUTTONS):
            raw.buttons[button] = bool((digital >> bit) & 1)

        raw.analog[ControllerAnalogBinding.RX] = normalize(trigger_left, 0, 255)
        raw.analog[ControllerAnalogBinding.RY] = normalize(trigger_right, 0, 255)
        raw.analog[ControllerAnalogBinding.X] = normalize(stick_left_x, -32768, 32767)
        raw.analog[ControllerAnalogBinding.Y] = normalize(-stick_left_y, -32768, 32767)
        raw.analog[ControllerAnalogBinding.Z] = normalize(stick_right_x, -32768, 32767)
        raw.analog[ControllerAnalogBinding.RZ] = normalize(-stick_right_y, -32768, 32767)
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