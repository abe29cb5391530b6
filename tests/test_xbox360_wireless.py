import logging
import struct

import pytest

from syscon.config import ControllerConfig, ControllerFeature
from syscon.results import ControllerError, ControllerResult
from syscon.usb import (
    Direction,
    EndpointDescriptor,
    InterfaceDescriptor,
    USBDevice,
    USBEndpoint,
    USBInterface,
)
from syscon.xbox360_wireless import Xbox360WirelessController

RECONNECT = bytes((0x08, 0x00, 0x0F, 0xC0, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00))
POWEROFF = bytes((0x00, 0x00, 0x08, 0xC0, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00))
INIT_DRIVER = bytes((0x00, 0x00, 0x02, 0x80, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00))


class FakeEndpoint(USBEndpoint):
    def __init__(self, direction):
        self._direction = direction
        self.writes = []
        self.reads = []

    def open(self, max_packet_size=0):
        pass

    def close(self):
        pass

    def write(self, data):
        self.writes.append(bytes(data))

    def read(self, size, timeout_us):
        if not self.reads:
            raise ControllerError(ControllerResult.TIMEOUT)
        return self.reads.pop(0)[:size]

    @property
    def direction(self):
        return self._direction

    @property
    def descriptor(self):
        return EndpointDescriptor(max_packet_size=32)


class FakeInterface(USBInterface):
    def __init__(self, in_count, out_count):
        self.in_endpoints = [FakeEndpoint(Direction.IN) for _ in range(in_count)]
        self.out_endpoints = [FakeEndpoint(Direction.OUT) for _ in range(out_count)]

    def open(self):
        pass

    def close(self):
        pass

    def control_transfer_input(self, request_type, request, value, index, length):
        return b""

    def control_transfer_output(self, request_type, request, value, index, data):
        pass

    def get_endpoint(self, direction, index):
        endpoints = self.in_endpoints if direction == Direction.IN else self.out_endpoints
        return endpoints[index] if index < len(endpoints) else None

    @property
    def descriptor(self):
        return InterfaceDescriptor()

    def reset(self):
        pass


def make_controller(in_count=4, out_count=4):
    interface = FakeInterface(in_count, out_count)
    device = USBDevice(0x045E, 0x0719, [interface])
    controller = Xbox360WirelessController(device, ControllerConfig(), logging.getLogger("test"))
    return controller, interface, device


def data_packet(byte3=0):
    report = struct.pack("<BBBBBB4h", 0, 0x13, 0, byte3, 0, 0, 0, 0, 0, 0)
    return bytes((0x00, 0x01, 0x00, 0xF0)) + report + bytes(11)


def test_needs_four_input_pipes():
    controller, _, _ = make_controller(in_count=3)
    with pytest.raises(ControllerError) as info:
        controller.initialize()
    assert info.value.result is ControllerResult.INVALID_ENDPOINT


def test_input_count():
    controller, _, _ = make_controller()
    assert controller.input_count() == 4


def test_supports_rumble():
    controller, _, _ = make_controller()
    assert controller.supports(ControllerFeature.SUPPORTS_RUMBLE) is True


def test_initially_disconnected():
    controller, _, _ = make_controller()
    controller.initialize()
    assert [controller.is_controller_connected(idx) for idx in range(4)] == [False] * 4


def test_connect_event_sends_init_and_led():
    controller, interface, _ = make_controller()
    controller.initialize()
    assert controller.parse_data(bytes((0x08, 0x80)), 1) is None
    assert controller.is_controller_connected(1) is True
    writes = interface.out_endpoints[1].writes
    assert writes[:2] == [RECONNECT, INIT_DRIVER]
    assert writes[2] == bytes((0x00, 0x02, 0x08, 0x47)) + bytes(8)
    assert interface.out_endpoints[0].writes == []


def test_repeated_connect_is_ignored():
    controller, interface, _ = make_controller()
    controller.initialize()
    controller.parse_data(bytes((0x08, 0x80)), 0)
    count = len(interface.out_endpoints[0].writes)
    controller.parse_data(bytes((0x08, 0x80)), 0)
    assert len(interface.out_endpoints[0].writes) == count


def test_disconnect_event_powers_off():
    controller, interface, _ = make_controller()
    controller.initialize()
    controller.parse_data(bytes((0x08, 0x80)), 2)
    controller.parse_data(bytes((0x08, 0x00)), 2)
    assert controller.is_controller_connected(2) is False
    assert interface.out_endpoints[2].writes[-1] == POWEROFF


def test_data_packet_decodes_buttons():
    controller, _, _ = make_controller()
    controller.initialize()
    raw = controller.parse_data(data_packet(byte3=0x10), 0)
    assert [idx for idx, state in enumerate(raw.buttons) if state] == [1]


def test_other_packet_is_nothing():
    controller, _, _ = make_controller()
    controller.initialize()
    assert controller.parse_data(bytes((0x00, 0x0F, 0x00, 0xF0)) + bytes(25), 0) is None


def test_short_data_packet_raises():
    controller, _, _ = make_controller()
    controller.initialize()
    with pytest.raises(ControllerError) as info:
        controller.parse_data(data_packet()[:10], 0)
    assert info.value.result is ControllerResult.UNEXPECTED_DATA


def test_invalid_slot_raises():
    controller, _, _ = make_controller()
    with pytest.raises(ControllerError) as info:
        controller.parse_data(bytes((0x08, 0x80)), 4)
    assert info.value.result is ControllerResult.INVALID_INDEX


def test_set_rumble_packet():
    controller, interface, _ = make_controller()
    controller.initialize()
    controller.set_rumble(0, 1.0, 0.0)
    assert interface.out_endpoints[0].writes[-1] == bytes(
        (0x00, 0x01, 0x0F, 0xC0, 0x00, 0xFF, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00)
    )


def test_set_rumble_invalid_index():
    controller, _, _ = make_controller(out_count=1)
    controller.initialize()
    with pytest.raises(ControllerError) as info:
        controller.set_rumble(2, 0.5, 0.5)
    assert info.value.result is ControllerResult.INVALID_INDEX


def test_close_disconnects_connected_slots():
    controller, interface, device = make_controller()
    controller.initialize()
    controller.parse_data(bytes((0x08, 0x80)), 3)
    controller.exit()
    assert controller.is_controller_connected(3) is False
    assert interface.out_endpoints[3].writes[-1] == POWEROFF
    assert interface.out_endpoints[0].writes == []
    assert device.is_open is False


def test_read_input_handles_connection_report():
    controller, interface, _ = make_controller()
    controller.initialize()
    interface.in_endpoints[0].reads.append(bytes((0x08, 0x80)))
    assert controller.read_input(1000) is None
    assert controller.is_controller_connected(0) is True