"""Nintendo Switch Pro Controller over USB."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass

from syscon.base import BaseController, RawInputData, normalize, read_bits_le
from syscon.config import (
    DPAD_DOWN_BUTTON_ID,
    DPAD_LEFT_BUTTON_ID,
    DPAD_RIGHT_BUTTON_ID,
    DPAD_UP_BUTTON_ID,
    ControllerAnalogBinding,
    ControllerFeature,
)
from syscon.results import ControllerError, ControllerResult

SWITCH_INPUT_BUFFER_SIZE = 64

_REPORT_SIZE = 12
_FULL_REPORT_ID = 0x30
_STICK_CENTER = 2000
_DEFAULT_MIN = 600
_DEFAULT_MAX = 3400

_FLUSH_TIMEOUT_US = 100 * 1000
_HANDSHAKE_TIMEOUT_US = 500 * 1000

_HANDSHAKE_PACKET = bytes((0x80, 0x02)).ljust(SWITCH_INPUT_BUFFER_SIZE, b"\x00")
_FORCE_USB_PACKET = bytes((0x80, 0x04)).ljust(SWITCH_INPUT_BUFFER_SIZE, b"\x00")

# Raw buttons for the bits of report bytes 3, 4 and 5.
_BYTE3_BUTTONS = (1, 2, 3, 4, 5, 6, 7, 8)
_BYTE4_BUTTONS = (9, 10, 11, 12, 13, 14, 15)
_BYTE5_BUTTONS = (
    DPAD_DOWN_BUTTON_ID,
    DPAD_UP_BUTTON_ID,
    DPAD_RIGHT_BUTTON_ID,
    DPAD_LEFT_BUTTON_ID,
    16,
    17,
    18,
    19,
)


@dataclass
class SwitchCalibration:
    """Observed range of one stick axis, widened as readings arrive."""

    min: int = _DEFAULT_MIN
    max: int = _DEFAULT_MAX

    def update(self, value: int) -> None:
        """Widen the range to include value."""
        self.min = min(self.min, value)
        self.max = max(self.max, value)


class SwitchController(BaseController):
    """A Pro Controller switched to plain USB HID reports."""

    def __init__(self, device, config, logger=None) -> None:
        super().__init__(device, config, logger)
        self.cal_left_x = SwitchCalibration()
        self.cal_left_y = SwitchCalibration()
        self.cal_right_x = SwitchCalibration()
        self.cal_right_y = SwitchCalibration()

    def initialize(self) -> None:
        """Open the controller, flush pending input and force USB-only mode."""
        super().initialize()

        if not self.out_pipes:
            self._log(logging.ERROR, "Initialization not complete ! No output endpoint found !")
            raise ControllerError(ControllerResult.INVALID_ENDPOINT, "no output endpoint found")

        in_pipe, out_pipe = self.in_pipes[0], self.out_pipes[0]

        while True:
            try:
                in_pipe.read(SWITCH_INPUT_BUFFER_SIZE, _FLUSH_TIMEOUT_US)
            except ControllerError:
                break

        with contextlib.suppress(ControllerError):
            out_pipe.write(_HANDSHAKE_PACKET)
        with contextlib.suppress(ControllerError):
            in_pipe.read(SWITCH_INPUT_BUFFER_SIZE, _HANDSHAKE_TIMEOUT_US)
        with contextlib.suppress(ControllerError):
            out_pipe.write(_FORCE_USB_PACKET)

    def parse_data(self, buffer: bytes, input_idx: int) -> RawInputData | None:
        """Decode a full input report (id 0x30); other reports carry nothing."""
        if len(buffer) < _REPORT_SIZE:
            raise ControllerError(
                ControllerResult.UNEXPECTED_DATA,
                f"report of {len(buffer)} bytes is shorter than {_REPORT_SIZE}",
            )
        if buffer[0] != _FULL_REPORT_ID:
            return None

        raw = RawInputData()
        for byte, buttons in ((buffer[3], _BYTE3_BUTTONS), (buffer[4], _BYTE4_BUTTONS), (buffer[5], _BYTE5_BUTTONS)):
            for bit, button in enumerate(buttons):
                raw.buttons[button] = bool((byte >> bit) & 1)

        stick_left = buffer[6:9]
        stick_right = buffer[9:12]
        left_x = read_bits_le(stick_left, 0, 12)
        left_y = read_bits_le(stick_left, 12, 12)
        right_x = read_bits_le(stick_right, 0, 12)
        right_y = read_bits_le(stick_right, 12, 12)

        self.cal_left_x.update(left_x)
        self.cal_left_y.update(left_y)
        self.cal_right_x.update(right_x)
        self.cal_right_y.update(right_y)

        self._log(
            logging.DEBUG,
            "X=%d, Y=%d, Z=%d, Rz=%d (Calib: X=[%d,%d], Y=[%d,%d], Z=[%d,%d], Rz=[%d,%d])",
            left_x,
            left_y,
            right_x,
            right_y,
            self.cal_left_x.min,
            self.cal_left_x.max,
            self.cal_left_y.min,
            self.cal_left_y.max,
            self.cal_right_x.min,
            self.cal_right_x.max,
            self.cal_right_y.min,
            self.cal_right_y.max,
        )

        def scaled(value: int, calibration: SwitchCalibration) -> float:
            return normalize(value, calibration.min, calibration.max, _STICK_CENTER)

        raw.analog[ControllerAnalogBinding.X] = scaled(left_x, self.cal_left_x)
        raw.analog[ControllerAnalogBinding.Y] = -1.0 * scaled(left_y, self.cal_left_y)
        raw.analog[ControllerAnalogBinding.Z] = scaled(right_x, self.cal_right_x)
        raw.analog[ControllerAnalogBinding.RZ] = -1.0 * scaled(right_y, self.cal_right_y)
        return raw

    def max_input_buffer_size(self) -> int:
        """Reports are always 64 bytes."""
        return SWITCH_INPUT_BUFFER_SIZE

    def supports(self, feature: ControllerFeature) -> bool:
        """No optional feature is supported."""
        return False