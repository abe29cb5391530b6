"""DualShock 3 controller over USB."""

from __future__ import annotations

import logging
from enum import IntEnum

from syscon.base import BaseController, RawInputData, normalize
from syscon.config import (
    DPAD_DOWN_BUTTON_ID,
    DPAD_LEFT_BUTTON_ID,
    DPAD_RIGHT_BUTTON_ID,
    DPAD_UP_BUTTON_ID,
    ControllerAnalogBinding,
)
from syscon.results import ControllerError, ControllerResult

_BUTTON_REPORT_SIZE = 49
_BUTTON_REPORT_TYPE = 0x01

_HID_SET_REPORT_TYPE = 0x21
_HID_SET_REPORT = 0x09

_START_DEVICE_BYTES = bytes((0x42, 0x0C, 0x00, 0x00))
_LED_PERMANENT = bytes((0xFF, 0x27, 0x00, 0x00, 0x32))

# Bits of report byte 2, then byte 3, and the raw button each one sets.
_BYTE2_BUTTONS = (9, 10, 11, 12)
_BYTE2_DPAD = (DPAD_UP_BUTTON_ID, DPAD_RIGHT_BUTTON_ID, DPAD_DOWN_BUTTON_ID, DPAD_LEFT_BUTTON_ID)
_BYTE3_BUTTONS = (5, 6, 7, 8, 1, 2, 3, 4)


class Dualshock3FeatureValue(IntEnum):
    """Feature report identifiers sent with SET_REPORT."""

    UNKNOWN1 = 0x0201
    UNKNOWN2 = 0x0301
    DEVICE_ADDRESS = 0x03F2
    START_DEVICE = 0x03F4
    HOST_ADDRESS = 0x03F5
    UNKNOWN3 = 0x03F7
    UNKNOWN4 = 0x03EF
    UNKNOWN5 = 0x03F8


class Dualshock3LEDValue(IntEnum):
    """Player LED patterns."""

    LED_1 = 0x01
    LED_2 = 0x02
    LED_3 = 0x04
    LED_4 = 0x08
    LED_5 = 0x09
    LED_6 = 0x0A
    LED_7 = 0x0C
    LED_8 = 0x0D
    LED_9 = 0x0E
    LED_10 = 0x0F


def _bit(byte: int, index: int) -> bool:
    return bool((byte >> index) & 1)


class Dualshock3Controller(BaseController):
    """A DualShock 3 that must be told to start before it sends reports."""

    def initialize(self) -> None:
        """Open the controller and light its first player LED."""
        super().initialize()
        try:
            self._set_led(Dualshock3LEDValue.LED_1)
        except ControllerError as error:
            self._log(logging.ERROR, "Failed to set LED: %s", error)

    def open_interfaces(self) -> None:
        """Open the pipes and send the start-device feature report."""
        super().open_interfaces()
        self._send_command(Dualshock3FeatureValue.START_DEVICE, _START_DEVICE_BYTES)

    def parse_data(self, buffer: bytes, input_idx: int) -> RawInputData | None:
        """Decode a 49-byte button report."""
        if len(buffer) < _BUTTON_REPORT_SIZE:
            raise ControllerError(
                ControllerResult.UNEXPECTED_DATA,
                f"report of {len(buffer)} bytes is shorter than {_BUTTON_REPORT_SIZE}",
            )
        if buffer[0] != _BUTTON_REPORT_TYPE:
            raise ControllerError(
                ControllerResult.UNEXPECTED_DATA, f"unexpected report type {buffer[0]:#04x}"
            )

        raw = RawInputData()
        byte2, byte3, byte4 = buffer[2], buffer[3], buffer[4]
        for bit, button in enumerate(_BYTE2_BUTTONS):
            raw.buttons[button] = _bit(byte2, bit)
        for bit, button in enumerate(_BYTE2_DPAD, start=4):
            raw.buttons[button] = _bit(byte2, bit)
        for bit, button in enumerate(_BYTE3_BUTTONS):
            raw.buttons[button] = _bit(byte3, bit)
        raw.buttons[13] = _bit(byte4, 0)

        raw.analog[ControllerAnalogBinding.RX] = normalize(buffer[18], 0, 255)
        raw.analog[ControllerAnalogBinding.RY] = normalize(buffer[19], 0, 255)
        raw.analog[ControllerAnalogBinding.X] = normalize(buffer[6], 0, 255)
        raw.analog[ControllerAnalogBinding.Y] = normalize(buffer[7], 0, 255)
        raw.analog[ControllerAnalogBinding.Z] = normalize(buffer[8], 0, 255)
        raw.analog[ControllerAnalogBinding.RZ] = normalize(buffer[9], 0, 255)
        return raw

    def _send_command(self, feature: Dualshock3FeatureValue, data: bytes) -> None:
        self.interfaces[0].control_transfer_output(
            _HID_SET_REPORT_TYPE, _HID_SET_REPORT, int(feature), 0, data
        )

    def _set_led(self, value: Dualshock3LEDValue) -> None:
        packet = bytes(9) + bytes(((int(value) << 1) & 0xFF,)) + _LED_PERMANENT * 4
        self._send_command(Dualshock3FeatureValue.UNKNOWN1, packet)