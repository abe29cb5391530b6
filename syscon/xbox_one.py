"""Xbox One controller over USB, speaking the GIP protocol."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

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

GIP_CMD_ACK = 0x01
GIP_CMD_IDENTIFY = 0x04
GIP_CMD_POWER = 0x05
GIP_CMD_AUTHENTICATE = 0x06
GIP_CMD_VIRTUAL_KEY = 0x07
GIP_CMD_RUMBLE = 0x09
GIP_CMD_LED = 0x0A
GIP_CMD_FIRMWARE = 0x0C
GIP_CMD_INPUT = 0x20

GIP_OPT_ACK = 0x10
GIP_OPT_INTERNAL = 0x20

GIP_PWR_ON = 0x00
GIP_LED_ON = 0x01

GIP_MOTOR_R = 1 << 0
GIP_MOTOR_L = 1 << 1
GIP_MOTOR_RT = 1 << 2
GIP_MOTOR_LT = 1 << 3
GIP_MOTOR_ALL = GIP_MOTOR_R | GIP_MOTOR_L | GIP_MOTOR_RT | GIP_MOTOR_LT

# Some pads (PDP) need the sequence number to increase during the init sequence.
_HORI_PDP_ACK_ID = bytes(
    (GIP_CMD_ACK, GIP_OPT_INTERNAL, 0, 9, 0x00, GIP_CMD_IDENTIFY, GIP_OPT_INTERNAL, 0x3A,
     0x00, 0x00, 0x00, 0x80, 0x00)
)
_POWER_ON = bytes((GIP_CMD_POWER, GIP_OPT_INTERNAL, 1, 1, GIP_PWR_ON))
_S_INIT = bytes((GIP_CMD_POWER, GIP_OPT_INTERNAL, 2, 0x0F, 0x06))
_EXTRA_INPUT_PACKET_INIT = bytes((0x4D, 0x10, 0x01, 0x02, 0x07, 0x00))
_PDP_LED_ON = bytes((GIP_CMD_LED, GIP_OPT_INTERNAL, 3, 3, 0x00, GIP_LED_ON, 0x14))
_PDP_AUTH0 = bytes((GIP_CMD_AUTHENTICATE, 0xA0, 4, 0x00, 0x92, 0x02))
_PDP_8BIT_AUTH = bytes((GIP_CMD_AUTHENTICATE, GIP_OPT_INTERNAL, 5, 2, 0x01, 0x00))
_RUMBLE_BEGIN_INIT = bytes(
    (GIP_CMD_RUMBLE, 0x00, 1, 9, 0x00, GIP_MOTOR_ALL, 0x00, 0x00, 0x1D, 0x1D, 0xFF, 0x00, 0x00)
)
_RUMBLE_END_INIT = bytes(
    (GIP_CMD_RUMBLE, 0x00, 2, 9, 0x00, GIP_MOTOR_ALL, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00)
)


@dataclass(frozen=True)
class InitPacket:
    """A packet sent at start-up to devices matching vendor and product (0 matches any)."""

    vendor_id: int
    product_id: int
    data: bytes

    def matches(self, vendor_id: int, product_id: int) -> bool:
        """Whether this packet is meant for the given device."""
        return self.vendor_id in (0, vendor_id) and self.product_id in (0, product_id)


INIT_PACKETS: tuple[InitPacket, ...] = (
    InitPacket(0x0E6F, 0x0000, _HORI_PDP_ACK_ID),
    InitPacket(0x0F0D, 0x0067, _HORI_PDP_ACK_ID),
    InitPacket(0x0000, 0x0000, _POWER_ON),
    InitPacket(0x045E, 0x02EA, _S_INIT),
    InitPacket(0x045E, 0x0B00, _S_INIT),
    InitPacket(0x045E, 0x0B00, _EXTRA_INPUT_PACKET_INIT),
    InitPacket(0x0E6F, 0x0000, _PDP_LED_ON),
    InitPacket(0x0E6F, 0x0000, _PDP_AUTH0),
    InitPacket(0x0E6F, 0x0000, _PDP_8BIT_AUTH),
    InitPacket(0x2DC8, 0x0000, _PDP_8BIT_AUTH),
    InitPacket(0x24C6, 0x541A, _RUMBLE_BEGIN_INIT),
    InitPacket(0x24C6, 0x542A, _RUMBLE_BEGIN_INIT),
    InitPacket(0x24C6, 0x543A, _RUMBLE_BEGIN_INIT),
    InitPacket(0x24C6, 0x541A, _RUMBLE_END_INIT),
    InitPacket(0x24C6, 0x542A, _RUMBLE_END_INIT),
    InitPacket(0x24C6, 0x543A, _RUMBLE_END_INIT),
)


def init_packets_for(vendor_id: int, product_id: int) -> list[InitPacket]:
    """The init packets to send, in order, to a device."""
    return [packet for packet in INIT_PACKETS if packet.matches(vendor_id, product_id)]


# type, const, id, two bytes of digital bits, two triggers, four stick axes.
_REPORT = struct.Struct("<BBHBBHH4h")
_VIRTUAL_KEY_REPORT_SIZE = 6
_HOME_BUTTON = 12

# Raw buttons for the bits of report bytes 4 and 5; None marks an unused bit.
_BYTE4_BUTTONS = (5, None, 6, 7, 1, 2, 3, 4)
_BYTE5_BUTTONS = (
    DPAD_UP_BUTTON_ID,
    DPAD_DOWN_BUTTON_ID,
    DPAD_LEFT_BUTTON_ID,
    DPAD_RIGHT_BUTTON_ID,
    8,
    9,
    10,
    11,
)


def _amplitude_byte(amplitude: float) -> int:
    return max(0, min(255, int(amplitude * 255)))


class XboxOneController(BaseController):
    """An Xbox One pad; the guide button arrives in separate virtual-key reports."""

    def __init__(self, device, config, logger=None) -> None:
        super().__init__(device, config, logger)
        self._raw_input = RawInputData()

    def initialize(self) -> None:
        """Open the controller and send the init sequence its model needs."""
        super().initialize()
        self._send_init_bytes(0)

    def _send_init_bytes(self, input_idx: int) -> None:
        if input_idx >= len(self.out_pipes):
            return
        pipe = self.out_pipes[input_idx]
        for packet in init_packets_for(self.device.vendor_id, self.device.product_id):
            pipe.write(packet.data)

    def _write_ack_mode_report(self, input_idx: int, sequence: int) -> None:
        if input_idx >= len(self.out_pipes):
            return
        report = bytes(
            (GIP_CMD_ACK, GIP_OPT_INTERNAL, sequence, 9, 0x00, GIP_CMD_VIRTUAL_KEY,
             GIP_OPT_INTERNAL, 0x02, 0x00, 0x00, 0x00, 0x00, 0x00)
        )
        self.out_pipes[input_idx].write(report)

    def parse_data(self, buffer: bytes, input_idx: int) -> RawInputData | None:
        """Decode input and virtual-key reports; other reports carry nothing."""
        if not buffer:
            raise ControllerError(ControllerResult.UNEXPECTED_DATA, "empty report")

        report_type = buffer[0]
        if report_type == GIP_CMD_INPUT:
            if len(buffer) < _REPORT.size:
                self._log(
                    logging.ERROR, "Unexpected data size (%d < %d)", len(buffer), _REPORT.size
                )
                raise ControllerError(
                    ControllerResult.UNEXPECTED_DATA,
                    f"report of {len(buffer)} bytes is shorter than {_REPORT.size}",
                )
            (
                _type,
                _const,
                _id,
                byte4,
                byte5,
                trigger_left,
                trigger_right,
                stick_left_x,
                stick_left_y,
                stick_right_x,
                stick_right_y,
            ) = _REPORT.unpack_from(buffer)

            raw = self._raw_input
            for byte, buttons in ((byte4, _BYTE4_BUTTONS), (byte5, _BYTE5_BUTTONS)):
                for bit, button in enumerate(buttons):
                    if button is not None:
                        raw.buttons[button] = bool((byte >> bit) & 1)

            raw.analog[ControllerAnalogBinding.RX] = normalize(trigger_left, 0, 1023)
            raw.analog[ControllerAnalogBinding.RY] = normalize(trigger_right, 0, 1023)
            raw.analog[ControllerAnalogBinding.X] = normalize(stick_left_x, -32768, 32767)
            raw.analog[ControllerAnalogBinding.Y] = normalize(-stick_left_y, -32768, 32767)
            raw.analog[ControllerAnalogBinding.Z] = normalize(stick_right_x, -32768, 32767)
            raw.analog[ControllerAnalogBinding.RZ] = normalize(-stick_right_y, -32768, 32767)
            return raw.copy()

        if report_type == GIP_CMD_VIRTUAL_KEY:
            if len(buffer) < _VIRTUAL_KEY_REPORT_SIZE:
                self._log(
                    logging.ERROR,
                    "Unexpected data size (%d < %d)",
                    len(buffer),
                    _VIRTUAL_KEY_REPORT_SIZE,
                )
                raise ControllerError(
                    ControllerResult.UNEXPECTED_DATA,
                    f"virtual key report of {len(buffer)} bytes is shorter than "
                    f"{_VIRTUAL_KEY_REPORT_SIZE}",
                )
            self._raw_input.buttons[_HOME_BUTTON] = buffer[4] != 0
            if buffer[1] == GIP_OPT_ACK | GIP_OPT_INTERNAL:
                self._write_ack_mode_report(input_idx, buffer[2])
            return self._raw_input.copy()

        return None

    def supports(self, feature: ControllerFeature) -> bool:
        """Rumble is supported."""
        return feature == ControllerFeature.SUPPORTS_RUMBLE

    def set_rumble(self, input_idx: int, amp_high: float, amp_low: float) -> None:
        """Send rumble amplitudes (0.0..1.0) through the input's output pipe."""
        if input_idx >= len(self.out_pipes):
            raise ControllerError(
                ControllerResult.INVALID_INDEX, f"no output pipe for input {input_idx}"
            )
        packet = bytes(
            (0x09, 0x00, 0x00, 0x09, 0x00, 0x0F, 0x00, 0x00,
             _amplitude_byte(amp_high), _amplitude_byte(amp_low), 0xFF, 0x00, 0x00)
        )
        self.out_pipes[input_idx].write(packet)