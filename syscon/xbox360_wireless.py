"""Xbox 360 wireless receiver carrying up to four controllers."""

from __future__ import annotations

import logging

from syscon.base import BaseController, RawInputData
from syscon.config import ControllerFeature
from syscon.results import ControllerError, ControllerResult
from syscon.xbox360 import Xbox360LEDValue, _amplitude_byte, parse_xbox360_buttons

XBOX360_MAX_INPUTS = 4

_RECONNECT_PACKET = bytes((0x08, 0x00, 0x0F, 0xC0, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00))
_POWEROFF_PACKET = bytes((0x00, 0x00, 0x08, 0xC0, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00))
_INIT_DRIVER_PACKET = bytes((0x00, 0x00, 0x02, 0x80, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00))

_DATA_HEADER = bytes((0x00, 0x01, 0x00, 0xF0))
_CONNECTION_FLAG = 0x08
_CONNECTED_FLAG = 0x80


class Xbox360WirelessController(BaseController):
    """A wireless receiver: one input pipe and one output pipe per controller slot."""

    def __init__(self, device, config, logger=None) -> None:
        super().__init__(device, config, logger)
        self._connected = [False] * XBOX360_MAX_INPUTS

    def _check_index(self, input_idx: int) -> None:
        if not 0 <= input_idx < XBOX360_MAX_INPUTS:
            raise ControllerError(
                ControllerResult.INVALID_INDEX, f"input index {input_idx} out of range"
            )

    def open_interfaces(self) -> None:
        """Open the pipes; the receiver needs one input pipe per slot."""
        super().open_interfaces()
        if len(self.in_pipes) < XBOX360_MAX_INPUTS:
            self._log(
                logging.ERROR,
                "Not enough input endpoints (%d / %d)",
                len(self.in_pipes),
                XBOX360_MAX_INPUTS,
            )
            raise ControllerError(
                ControllerResult.INVALID_ENDPOINT,
                f"{len(self.in_pipes)} input endpoints, {XBOX360_MAX_INPUTS} needed",
            )

    def close_interfaces(self) -> None:
        """Power off every connected controller, then close the device."""
        for input_idx, connected in enumerate(self._connected):
            if connected:
                self._on_controller_disconnect(input_idx)
        super().close_interfaces()

    def parse_data(self, buffer: bytes, input_idx: int) -> RawInputData | None:
        """Handle connection events and decode controller data reports."""
        self._check_index(input_idx)
        if not buffer:
            raise ControllerError(ControllerResult.UNEXPECTED_DATA, "empty report")

        if buffer[0] & _CONNECTION_FLAG:
            if len(buffer) < 2:
                raise ControllerError(
                    ControllerResult.UNEXPECTED_DATA, "connection report is too short"
                )
            is_connected = bool(buffer[1] & _CONNECTED_FLAG)
            if self._connected[input_idx] != is_connected:
                if is_connected:
                    self._on_controller_connect(input_idx)
                else:
                    self._on_controller_disconnect(input_idx)
            return None

        if bytes(buffer[:4]) == _DATA_HEADER:
            return parse_xbox360_buttons(buffer[4:])

        return None

    def supports(self, feature: ControllerFeature) -> bool:
        """Rumble is supported."""
        return feature == ControllerFeature.SUPPORTS_RUMBLE

    def input_count(self) -> int:
        """The receiver has four controller slots."""
        return XBOX360_MAX_INPUTS

    def set_rumble(self, input_idx: int, amp_high: float, amp_low: float) -> None:
        """Send rumble amplitudes (0.0..1.0) to the controller in a slot."""
        if input_idx >= len(self.out_pipes):
            raise ControllerError(
                ControllerResult.INVALID_INDEX, f"no output pipe for input {input_idx}"
            )
        packet = bytes(
            (
                0x00,
                (input_idx + 1) & 0xFF,
                0x0F,
                0xC0,
                0x00,
                _amplitude_byte(amp_high),
                _amplitude_byte(amp_low),
            )
        ) + bytes(5)
        self.out_pipes[input_idx].write(packet)

    def is_controller_connected(self, input_idx: int) -> bool:
        """Whether a controller is paired in the slot."""
        self._check_index(input_idx)
        return self._connected[input_idx]

    def _write(self, input_idx: int, packet: bytes) -> None:
        if input_idx >= len(self.out_pipes):
            return
        try:
            self.out_pipes[input_idx].write(packet)
        except ControllerError as error:
            self._log(logging.ERROR, "Write to input %d failed: %s", input_idx, error)

    def _set_led(self, input_idx: int, value: Xbox360LEDValue) -> None:
        packet = bytes((0x00, (input_idx + 1) & 0xFF, 0x08, int(value) | 0x40)) + bytes(8)
        self._write(input_idx, packet)

    def _on_controller_connect(self, input_idx: int) -> None:
        self._log(logging.INFO, "Wireless controller connected (Idx: %d) ...", input_idx)
        self._write(input_idx, _RECONNECT_PACKET)
        self._write(input_idx, _INIT_DRIVER_PACKET)
        self._set_led(input_idx, Xbox360LEDValue(Xbox360LEDValue.TOP_LEFT + input_idx))
        self._connected[input_idx] = True

    def _on_controller_disconnect(self, input_idx: int) -> None:
        self._log(logging.INFO, "Wireless controller disconnected (Idx: %d) ...", input_idx)
        self._write(input_idx, _POWEROFF_PACKET)
        self._connected[input_idx] = False