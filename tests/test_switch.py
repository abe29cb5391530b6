import logging

import pytest

from syscon.config import (
    DPAD_DOWN_BUTTON_ID,
    DPAD_LEFT_BUTTON_ID,
    DPAD_RIGHT_BUTTON_ID,
    DPAD_UP_BUTTON_ID,
    ControllerAnalogBinding,
    ControllerConfig,
    ControllerFeature,
)
from syscon.results import ControllerError, ControllerResult
from syscon.switch import SwitchCalibration, SwitchController
from syscon.usb import (
    Direction,
    EndpointDescriptor,
    InterfaceDescriptor,
    USBDevice,
    USBEndpoint,
    USBInterface,
)


class QueuedEndpoint(USBEndpoint):
    """Serves queued reads, then times out; keeps what it was sent."""

    direction = None
    descriptor = EndpointDescriptor(max_packet_size=64)
    open = close = staticmethod(lambda *args: None)

    def __init__(self, direction, reads=()):
        self.direction = direction
        self.reads = list(reads)
        self.read_timeouts = []
        self.written = []

    def write(self, data):
        self.written.append(bytes(data))

    def read(self, size, timeout_us):
        self.read_timeouts.append(timeout_us)
        if self.reads:
            return self.reads.pop(0)[:size]
        raise ControllerError(ControllerResult.TIMEOUT)


class GroupedInterface(USBInterface):
    descriptor = InterfaceDescriptor()
    open = close = reset = control_transfer_output = staticmethod(lambda *args: None)
    control_transfer_input = staticmethod(lambda *args: b"")

    def __init__(self, *endpoints):
        self.by_direction = {direction: [] for direction in Direction}
        for endpoint in endpoints:
            self.by_direction[endpoint.direction].append(endpoint)

    def get_endpoint(self, direction, index):
        group = self.by_direction[direction]
        return group[index] if index < len(group) else None


def make_controller(*endpoints):
    interfaces = [GroupedInterface(*endpoints)] if endpoints else []
    device = USBDevice(0x057E, 0x2009, interfaces)
    return SwitchController(device, ControllerConfig(), logging.getLogger("test"))


def padded(prefix):
    return bytes(prefix).ljust(64, b"\x00")


def decode(prefix):
    return make_controller().parse_data(padded(prefix), 0)


def raised_result(call):
    with pytest.raises(ControllerError) as info:
        call()
    return info.value.result


LSTICK_LEFT_REPORT = [0x30, 0xFC, 0x91, 0x00, 0x80, 0x00, 0xC6, 0xB1, 0x72, 0xE5, 0xE7, 0x79, 0x03, 0x00, 0x00, 0x00]


def test_button1_from_source():
    raw = decode([0x30, 0x0D, 0x91, 0x01, 0x80, 0x00, 0xB9, 0x77, 0x7D, 0xDB, 0xF7, 0x7B, 0x09, 0x00, 0x00, 0x00])
    assert raw.buttons[1] is True


def test_lstick_left_from_source():
    assert decode(LSTICK_LEFT_REPORT).analog[ControllerAnalogBinding.X] == pytest.approx(-1.0)


def test_calibration_widens_with_readings():
    controller = make_controller()
    controller.parse_data(padded(LSTICK_LEFT_REPORT[:12]), 0)
    assert (controller.cal_left_x.min, controller.cal_left_x.max) == (0x1C6, 3400)
    assert controller.cal_left_y.min == 600


def test_calibration_defaults_and_update():
    calibration = SwitchCalibration()
    assert (calibration.min, calibration.max) == (600, 3400)
    for reading in (4000, 100):
        calibration.update(reading)
    assert (calibration.min, calibration.max) == (100, 4000)


@pytest.mark.parametrize(
    "bit, button_id",
    [
        (0, DPAD_DOWN_BUTTON_ID),
        (1, DPAD_UP_BUTTON_ID),
        (2, DPAD_RIGHT_BUTTON_ID),
        (3, DPAD_LEFT_BUTTON_ID),
        (4, 16),
        (5, 17),
        (6, 18),
        (7, 19),
    ],
)
def test_byte5_bits(bit, button_id):
    buttons = decode([0x30, 0, 0, 0, 0, 1 << bit]).buttons
    assert buttons[button_id] is True
    assert sum(buttons) == 1


def test_byte4_dummy_bit_ignored():
    assert sum(decode([0x30, 0, 0, 0, 0x80, 0]).buttons) == 0


def test_centered_sticks_read_zero():
    # 2000 = 0x7D0 for both axes of both sticks.
    stick = [0xD0, 0x07, 0x7D]
    analog = decode([0x30, 0, 0, 0, 0, 0] + stick * 2).analog
    assert [analog[ControllerAnalogBinding[name]] for name in ("X", "Y", "Z", "RZ")] == [0.0] * 4


def test_other_report_id_gives_nothing():
    assert decode([0x21]) is None


def test_short_report_is_unexpected():
    controller = make_controller()
    result = raised_result(lambda: controller.parse_data(bytes([0x30] + [0] * 10), 0))
    assert result is ControllerResult.UNEXPECTED_DATA


def test_buffer_size_and_features():
    controller = make_controller()
    assert controller.max_input_buffer_size() == 64
    assert controller.supports(ControllerFeature.SUPPORTS_RUMBLE) is False


def test_initialize_flushes_and_handshakes():
    in_pipe = QueuedEndpoint(Direction.IN, reads=[bytes(64), bytes(64)])
    out_pipe = QueuedEndpoint(Direction.OUT)
    make_controller(in_pipe, out_pipe).initialize()

    assert in_pipe.reads == []
    assert in_pipe.read_timeouts == [100_000, 100_000, 100_000, 500_000]
    assert out_pipe.written == [padded([0x80, 0x02]), padded([0x80, 0x04])]


def test_initialize_without_output_endpoint_fails():
    controller = make_controller(QueuedEndpoint(Direction.IN))
    assert raised_result(controller.initialize) is ControllerResult.INVALID_ENDPOINT