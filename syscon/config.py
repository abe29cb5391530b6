"""Controller configuration: buttons, analog bindings, colours and limits."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

MAX_JOYSTICKS = 2
MAX_PIN_BY_BUTTONS = 2

MAX_HID_CONTROLLER_BUTTONS = 32

DPAD_UP_BUTTON_ID = MAX_HID_CONTROLLER_BUTTONS + 0
DPAD_DOWN_BUTTON_ID = MAX_HID_CONTROLLER_BUTTONS + 1
DPAD_LEFT_BUTTON_ID = MAX_HID_CONTROLLER_BUTTONS + 2
DPAD_RIGHT_BUTTON_ID = MAX_HID_CONTROLLER_BUTTONS + 3

MAX_CONTROLLER_BUTTONS = 36

CONTROLLER_MAX_INPUTS = 4
CONTROLLER_INPUT_BUFFER_SIZE = 256
CONTROLLER_HID_REPORT_BUFFER_SIZE = 512


class ControllerButton(IntEnum):
    """Buttons of the emulated console controller."""

    NONE = 0
    X = 1
    A = 2
    B = 3
    Y = 4
    LSTICK_CLICK = 5
    LSTICK_LEFT = 6
    LSTICK_RIGHT = 7
    LSTICK_UP = 8
    LSTICK_DOWN = 9
    RSTICK_CLICK = 10
    RSTICK_LEFT = 11
    RSTICK_RIGHT = 12
    RSTICK_UP = 13
    RSTICK_DOWN = 14
    L = 15
    R = 16
    ZL = 17
    ZR = 18
    MINUS = 19
    PLUS = 20
    DPAD_UP = 21
    DPAD_RIGHT = 22
    DPAD_DOWN = 23
    DPAD_LEFT = 24
    CAPTURE = 25
    HOME = 26


BUTTON_COUNT = len(ControllerButton)


class ControllerAnalogBinding(IntEnum):
    """Analog axes a controller input can be bound to."""

    UNKNOWN = 0
    X = 1
    Y = 2
    Z = 3
    RZ = 4
    RX = 5
    RY = 6
    SLIDER = 7
    DIAL = 8


ANALOG_BINDING_COUNT = len(ControllerAnalogBinding)


class ControllerType(IntEnum):
    """Kind of controller presented to the console."""

    UNKNOWN = 0
    PRO = 1
    PRO_WITH_BATTERY = 2
    TARRAGON = 3
    SNES = 4
    POKEBALL_PLUS = 5
    GAMECUBE = 6
    THIRD_PARTY_PRO = 7
    N64 = 8
    SEGA = 9
    NES = 10
    FAMICOM = 11


class ControllerFeature(IntEnum):
    """Optional features a controller may support."""

    SUPPORTS_RUMBLE = 0


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be in 0..255, got {value}")


@dataclass
class RGBAColor:
    """A colour with 8-bit red, green, blue and alpha channels."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 255

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            _check_byte(name, getattr(self, name))

    @classmethod
    def from_rgba_value(cls, value: int) -> RGBAColor:
        """Build a colour from its packed 32-bit value (red in the low byte)."""
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError(f"packed colour must fit in 32 bits, got {value}")
        r, g, b, a = value.to_bytes(4, "little")
        return cls(r, g, b, a)

    @property
    def rgba_value(self) -> int:
        """The colour packed into 32 bits, red in the low byte."""
        return int.from_bytes(bytes((self.r, self.g, self.b, self.a)), "little")


@dataclass
class AnalogConfig:
    """Binding of a button to an analog axis, with the direction that presses it."""

    sign: float = 1.0
    bind: ControllerAnalogBinding = ControllerAnalogBinding.UNKNOWN


def _default_deadzones() -> list[int]:
    return [0] * ANALOG_BINDING_COUNT


def _default_factors() -> list[int]:
    return [100] * ANALOG_BINDING_COUNT


def _default_pins() -> list[list[int]]:
    return [[0] * MAX_PIN_BY_BUTTONS for _ in range(BUTTON_COUNT)]


def _default_analogs() -> list[AnalogConfig]:
    return [AnalogConfig() for _ in range(BUTTON_COUNT)]


def _default_combos() -> list[list[ControllerButton]]:
    return [[ControllerButton.NONE, ControllerButton.NONE] for _ in range(BUTTON_COUNT)]


def _opaque_black() -> RGBAColor:
    return RGBAColor(0, 0, 0, 255)


@dataclass
class ControllerConfig:
    """Everything that decides how a physical controller maps to the console's."""

    driver: str = ""
    profile: str = ""

    input_max_packet_size: int = 0
    output_max_packet_size: int = 0

    controller_type: ControllerType = ControllerType.PRO
    analog_deadzone_percent: list[int] = field(default_factory=_default_deadzones)
    analog_factor_percent: list[int] = field(default_factory=_default_factors)

    buttons_pin: list[list[int]] = field(default_factory=_default_pins)
    buttons_analog: list[AnalogConfig] = field(default_factory=_default_analogs)

    # simulate_combos[button] holds the two buttons that, pressed together, press `button`.
    simulate_combos: list[list[ControllerButton]] = field(default_factory=_default_combos)

    body_color: RGBAColor = field(default_factory=_opaque_black)
    buttons_color: RGBAColor = field(default_factory=_opaque_black)
    left_grip_color: RGBAColor = field(default_factory=_opaque_black)
    right_grip_color: RGBAColor = field(default_factory=_opaque_black)