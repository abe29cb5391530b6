"""Result codes reported by controllers and the exception that carries them."""

from __future__ import annotations

from enum import IntEnum


class ControllerResult(IntEnum):
    """Status codes a controller operation can end with."""

    SUCCESS = 0
    INVALID_ENDPOINT = 100
    BUFFER_EMPTY = 101
    NOTHING_TODO = 102
    NOT_IMPLEMENTED = 103
    UNEXPECTED_DATA = 104
    INVALID_ARGUMENT = 105
    INVALID_REPORT_DESCRIPTOR = 106
    HID_IS_NOT_JOYSTICK = 107
    NO_INTERFACES = 108
    NO_DATA_AVAILABLE = 109
    OUT_OF_MEMORY = 110
    USB_INTERFACE_ACQUIRE = 111
    OPEN_FAILED = 112
    WRITE_FAILED = 113
    READ_FAILED = 114
    TIMEOUT = 115
    USB_ENDPOINT_OPEN = 116
    INVALID_INDEX = 117
    UNKNOWN_ERROR = 255


class ControllerError(Exception):
    """Raised when a controller or USB operation does not succeed."""

    def __init__(self, result: ControllerResult | int, message: str | None = None) -> None:
        self.result = ControllerResult(result)
        if self.result is ControllerResult.SUCCESS:
            raise ValueError("a successful result is not an error")
        self.message = message if message is not None else self.result.name.lower().replace("_", " ")
        super().__init__(f"{self.message} ({self.result.name})")