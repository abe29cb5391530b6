"""Common controller behaviour: opening pipes, reading reports and mapping them to buttons."""

from __future__ import annotations

import abc
import copy
import logging
import time
from dataclasses import dataclass, field

from syscon.config import (
    ANALOG_BINDING_COUNT,
    BUTTON_COUNT,
    CONTROLLER_INPUT_BUFFER_SIZE,
    MAX_CONTROLLER_BUTTONS,
    ControllerAnalogBinding,
    ControllerButton,
    ControllerConfig,
    ControllerFeature,
)
from syscon.results import ControllerError, ControllerResult
from syscon.usb import Direction, USBDevice, USBEndpoint, USBInterface

_MAX_ENDPOINTS_PER_DIRECTION = 15

# Stick direction buttons, the axis each one drives and the sign it gives that axis.
_STICK_BUTTONS: tuple[tuple[ControllerButton, int, str, float], ...] = (
    (ControllerButton.LSTICK_LEFT, 0, "axis_x", -1.0),
    (ControllerButton.LSTICK_RIGHT, 0, "axis_x", +1.0),
    (ControllerButton.LSTICK_UP, 0, "axis_y", +1.0),
    (ControllerButton.LSTICK_DOWN, 0, "axis_y", -1.0),
    (ControllerButton.RSTICK_LEFT, 1, "axis_x", -1.0),
    (ControllerButton.RSTICK_RIGHT, 1, "axis_x", +1.0),
    (ControllerButton.RSTICK_UP, 1, "axis_y", +1.0),
    (ControllerButton.RSTICK_DOWN, 1, "axis_y", -1.0),
)

# Buttons whose state comes straight from pins or analog bindings.
_MAPPED_BUTTONS: tuple[ControllerButton, ...] = (
    ControllerButton.X,
    ControllerButton.A,
    ControllerButton.B,
    ControllerButton.Y,
    ControllerButton.LSTICK_CLICK,
    ControllerButton.RSTICK_CLICK,
    ControllerButton.L,
    ControllerButton.R,
    ControllerButton.ZL,
    ControllerButton.ZR,
    ControllerButton.MINUS,
    ControllerButton.PLUS,
    ControllerButton.CAPTURE,
    ControllerButton.HOME,
    ControllerButton.DPAD_UP,
    ControllerButton.DPAD_DOWN,
    ControllerButton.DPAD_RIGHT,
    ControllerButton.DPAD_LEFT,
)


@dataclass
class NormalizedStick:
    """A stick position, each axis in -1.0..1.0."""

    axis_x: float = 0.0
    axis_y: float = 0.0


def _no_buttons() -> list[bool]:
    return [False] * MAX_CONTROLLER_BUTTONS


def _two_sticks() -> list[NormalizedStick]:
    return [NormalizedStick(), NormalizedStick()]


def _no_analog() -> list[float]:
    return [0.0] * ANALOG_BINDING_COUNT


@dataclass
class NormalizedButtonData:
    """Controller state in the console's terms, indexed by ControllerButton."""

    buttons: list[bool] = field(default_factory=_no_buttons)
    sticks: list[NormalizedStick] = field(default_factory=_two_sticks)


@dataclass
class RawInputData:
    """Controller state as the device reports it: numbered buttons and analog axes."""

    buttons: list[bool] = field(default_factory=_no_buttons)
    analog: list[float] = field(default_factory=_no_analog)

    def copy(self) -> RawInputData:
        """An independent copy of this state."""
        return copy.deepcopy(self)


def normalize(value: int, minimum: int, maximum: int, center: int | None = None) -> float:
    """Scale value from minimum..maximum to -1.0..1.0, center mapping to 0.0.

    Without a center, the midpoint of the range (rounded toward zero) is used.
    """
    if center is None:
        center = int((maximum + minimum) / 2)

    if value < center:
        result = (value - minimum) / (center - minimum) - 1.0
    else:
        result = (value - center) / (maximum - center)

    return max(-1.0, min(1.0, result))


def apply_deadzone(deadzone_percent: int, value: float) -> float:
    """Zero values inside the deadzone and rescale the rest to keep the full range."""
    deadzone = deadzone_percent / 100.0

    if abs(value) < deadzone:
        return 0.0

    if value > 0:
        return (value - deadzone) / (1.0 - deadzone)
    return (value + deadzone) / (1.0 - deadzone)


def read_bits_le(buffer: bytes, bit_offset: int, bit_length: int) -> int:
    """Read an unsigned little-endian bit field of up to 32 bits from buffer."""
    if bit_offset < 0:
        raise ValueError(f"bit offset must not be negative, got {bit_offset}")
    if not 0 <= bit_length <= 32:
        raise ValueError(f"bit length must be in 0..32, got {bit_length}")
    if bit_length == 0:
        return 0

    end_byte = (bit_offset + bit_length + 7) // 8
    if end_byte > len(buffer):
        raise ValueError(
            f"{bit_length} bits at offset {bit_offset} exceed a {len(buffer)}-byte buffer"
        )

    chunk = int.from_bytes(bytes(buffer[bit_offset // 8 : end_byte]), "little")
    return (chunk >> (bit_offset % 8)) & ((1 << bit_length) - 1)


class BaseController(abc.ABC):
    """A USB controller read through its input pipes and mapped by its configuration."""

    def __init__(
        self,
        device: USBDevice,
        config: ControllerConfig,
        logger: logging.Logger | None = None,
    ) -> None:
        self.device = device
        self.config = config
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.in_pipes: list[USBEndpoint] = []
        self.out_pipes: list[USBEndpoint] = []
        self.interfaces: list[USBInterface] = []
        self._current_controller_idx = 0
        self._log(logging.DEBUG, "Created !")

    @property
    def _tag(self) -> str:
        return f"{type(self).__name__}[{self.device.vendor_id:04x}-{self.device.product_id:04x}]"

    def _log(self, level: int, message: str, *args: object) -> None:
        self.logger.log(level, f"{self._tag} {message}", *args)

    def _log_buffer(self, level: int, data: bytes) -> None:
        self.logger.log(level, "%s %s", self._tag, bytes(data).hex(" "))

    def initialize(self) -> None:
        """Open the device and its pipes. Raises ControllerError on failure."""
        self._log(logging.DEBUG, "Initializing ...")
        try:
            self.open_interfaces()
        except ControllerError:
            self._log(logging.ERROR, "Failed to open interfaces !")
            raise

    def exit(self) -> None:
        """Release the device."""
        self.close_interfaces()

    def open_interfaces(self) -> None:
        """Open the device, every interface and all their endpoints."""
        self._log(logging.DEBUG, "Opening interfaces ...")

        try:
            self.device.open()
        except ControllerError:
            self._log(logging.ERROR, "Failed to open device !")
            raise

        interfaces = self.device.interfaces
        for interface in interfaces:
            self._log(
                logging.DEBUG,
                "Opening interface %d/%d ...",
                len(self.interfaces) + 1,
                len(interfaces),
            )
            try:
                interface.open()
            except ControllerError:
                self._log(logging.ERROR, "Failed to open interface !")
                raise

            self._open_endpoints(
                interface, Direction.IN, self.config.input_max_packet_size, self.in_pipes
            )
            self._open_endpoints(
                interface, Direction.OUT, self.config.output_max_packet_size, self.out_pipes
            )
            self.interfaces.append(interface)

        if not self.in_pipes:
            self._log(logging.ERROR, "No input endpoint found !")
            raise ControllerError(ControllerResult.INVALID_ENDPOINT, "no input endpoint found")

        self._log(logging.DEBUG, "successfully opened !")

    def _open_endpoints(
        self,
        interface: USBInterface,
        direction: Direction,
        max_packet_size: int,
        pipes: list[USBEndpoint],
    ) -> None:
        for idx in range(_MAX_ENDPOINTS_PER_DIRECTION):
            endpoint = interface.get_endpoint(direction, idx)
            if endpoint is None:
                continue
            try:
                endpoint.open(max_packet_size)
            except ControllerError:
                self._log(
                    logging.ERROR, "Failed to open %s endpoint idx: %d !", direction.name, idx
                )
                raise
            pipes.append(endpoint)

    def close_interfaces(self) -> None:
        """Close the device."""
        self.device.close()

    def input_count(self) -> int:
        """How many controllers this device carries."""
        return 1

    def max_input_buffer_size(self) -> int:
        """The largest input report read at once."""
        return CONTROLLER_INPUT_BUFFER_SIZE

    def supports(self, feature: ControllerFeature) -> bool:
        """Whether the controller supports an optional feature."""
        return False

    def set_rumble(self, input_idx: int, amp_high: float, amp_low: float) -> None:
        """Set rumble amplitudes (0.0..1.0) of one input."""
        raise ControllerError(ControllerResult.NOT_IMPLEMENTED, "rumble is not supported")

    def is_controller_connected(self, input_idx: int) -> bool:
        """Whether the input at input_idx has a controller attached."""
        return True

    def read_next_buffer(self, timeout_us: int) -> tuple[int, bytes] | None:
        """Read a report from the next input pipe in turn.

        Returns the pipe index and the data, or None if the read came back empty.
        """
        if not self.in_pipes:
            raise ControllerError(ControllerResult.INVALID_ENDPOINT, "no input endpoint opened")

        controller_idx = self._current_controller_idx
        self._current_controller_idx = (self._current_controller_idx + 1) % len(self.in_pipes)

        pipe = self.in_pipes[controller_idx]
        size = min(
            CONTROLLER_INPUT_BUFFER_SIZE,
            self.max_input_buffer_size(),
            pipe.descriptor.max_packet_size,
        )
        data = pipe.read(size, timeout_us)
        if not data:
            return None
        return controller_idx, bytes(data)

    @abc.abstractmethod
    def parse_data(self, buffer: bytes, input_idx: int) -> RawInputData | None:
        """Decode one report into raw input, or return None if it carries no input.

        Raises ControllerError with UNEXPECTED_DATA for malformed reports.
        """

    def read_input(self, timeout_us: int) -> tuple[int, NormalizedButtonData] | None:
        """Read, decode and map the next report.

        Returns the input index and its state, or None when there is nothing to report.
        """
        read_start = time.perf_counter()
        received = self.read_next_buffer(timeout_us)
        if received is None:
            return None
        input_idx, buffer = received

        parse_start = time.perf_counter()
        raw = self.parse_data(buffer, input_idx)
        if raw is None:
            return None

        map_start = time.perf_counter()
        normalized = self.map_raw_input_to_normalized(raw)
        end = time.perf_counter()

        self._log(
            logging.DEBUG,
            "Reading: %dms, Parsing: %dms, Mapping: %dms",
            int((parse_start - read_start) * 1000),
            int((map_start - parse_start) * 1000),
            int((end - map_start) * 1000),
        )
        return input_idx, normalized

    def map_raw_input_to_normalized(self, raw: RawInputData) -> NormalizedButtonData:
        """Apply deadzones, factors, pin and analog bindings and combos to raw input."""
        config = self.config
        self._log(
            logging.DEBUG,
            "DATA: X=%d%%, Y=%d%%, Z=%d%%, Rz=%d%%, buttons=%s",
            int(raw.analog[ControllerAnalogBinding.X] * 100.0),
            int(raw.analog[ControllerAnalogBinding.Y] * 100.0),
            int(raw.analog[ControllerAnalogBinding.Z] * 100.0),
            int(raw.analog[ControllerAnalogBinding.RZ] * 100.0),
            "".join("1" if pressed else "0" for pressed in raw.buttons[1:11]),
        )

        analog = [
            apply_deadzone(config.analog_deadzone_percent[binding], raw.analog[binding])
            for binding in range(ANALOG_BINDING_COUNT)
        ]
        analog[ControllerAnalogBinding.UNKNOWN] = 0.0

        def pin_pressed(button: ControllerButton) -> bool:
            return any(raw.buttons[pin] for pin in config.buttons_pin[button])

        normalized = NormalizedButtonData()

        for button, stick_idx, axis, sign in _STICK_BUTTONS:
            analog_cfg = config.buttons_analog[button]
            factor = config.analog_factor_percent[analog_cfg.bind] / 100.0
            value = min(1.0, analog_cfg.sign * analog[analog_cfg.bind] * factor)

            stick = normalized.sticks[stick_idx]
            if pin_pressed(button):
                setattr(stick, axis, sign * 1.0)
            elif value > 0.0:
                setattr(stick, axis, sign * value)

        for button in _MAPPED_BUTTONS:
            analog_cfg = config.buttons_analog[button]
            normalized.buttons[button] = (
                pin_pressed(button) or analog_cfg.sign * analog[analog_cfg.bind] > 0.0
            )

        buttons = normalized.buttons
        for button in range(BUTTON_COUNT):
            first, second = config.simulate_combos[button]
            if first == ControllerButton.NONE or second == ControllerButton.NONE:
                continue
            if buttons[first] and buttons[second]:
                buttons[button] = True
                buttons[first] = False
                buttons[second] = False

        return normalized