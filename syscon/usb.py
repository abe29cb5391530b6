"""Abstract USB device, interface and endpoint used by the controllers."""

from __future__ import annotations

import abc
from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum

USB_DT_REPORT = 0x22
USB_REQUEST_GET_DESCRIPTOR = 0x06
USB_REQUEST_SET_IDLE = 0x0A


class Direction(IntEnum):
    """Direction of an endpoint, as encoded in its address."""

    IN = 0x80
    OUT = 0x00


class RequestRecipient(IntEnum):
    """Recipient bits of a control request's request type."""

    DEVICE = 0x00
    INTERFACE = 0x01
    ENDPOINT = 0x02
    OTHER = 0x03


@dataclass(frozen=True)
class EndpointDescriptor:
    """Standard USB endpoint descriptor."""

    length: int = 0
    descriptor_type: int = 0
    endpoint_address: int = 0
    attributes: int = 0
    max_packet_size: int = 0
    interval: int = 0


@dataclass(frozen=True)
class InterfaceDescriptor:
    """Standard USB interface descriptor."""

    length: int = 0
    descriptor_type: int = 0
    interface_number: int = 0
    alternate_setting: int = 0
    num_endpoints: int = 0
    interface_class: int = 0
    interface_subclass: int = 0
    interface_protocol: int = 0
    interface_string: int = 0


class USBEndpoint(abc.ABC):
    """One endpoint of a USB interface. Failures raise ControllerError."""

    @abc.abstractmethod
    def open(self, max_packet_size: int = 0) -> None:
        """Open the endpoint; 0 means the descriptor's max packet size."""

    @abc.abstractmethod
    def close(self) -> None:
        """Close the endpoint."""

    @abc.abstractmethod
    def write(self, data: bytes) -> None:
        """Send data to the endpoint."""

    @abc.abstractmethod
    def read(self, size: int, timeout_us: int) -> bytes:
        """Read at most size bytes, waiting up to timeout_us microseconds."""

    @property
    @abc.abstractmethod
    def direction(self) -> Direction:
        """Whether the endpoint reads (IN) or writes (OUT)."""

    @property
    @abc.abstractmethod
    def descriptor(self) -> EndpointDescriptor:
        """The endpoint descriptor."""


class USBInterface(abc.ABC):
    """One interface of a USB device. Failures raise ControllerError."""

    @abc.abstractmethod
    def open(self) -> None:
        """Claim the interface."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the interface."""

    @abc.abstractmethod
    def control_transfer_input(
        self, request_type: int, request: int, value: int, index: int, length: int
    ) -> bytes:
        """Run a device-to-host control transfer and return up to length bytes."""

    @abc.abstractmethod
    def control_transfer_output(
        self, request_type: int, request: int, value: int, index: int, data: bytes
    ) -> None:
        """Run a host-to-device control transfer carrying data."""

    @abc.abstractmethod
    def get_endpoint(self, direction: Direction, index: int) -> USBEndpoint | None:
        """Return the index-th endpoint of a direction, or None if there is none."""

    @property
    @abc.abstractmethod
    def descriptor(self) -> InterfaceDescriptor:
        """The interface descriptor."""

    @abc.abstractmethod
    def reset(self) -> None:
        """Reset the interface."""


class USBDevice:
    """A USB device identified by vendor and product, holding its interfaces."""

    def __init__(
        self, vendor_id: int = 0, product_id: int = 0, interfaces: Iterable[USBInterface] = ()
    ) -> None:
        for name, value in (("vendor_id", vendor_id), ("product_id", product_id)):
            if not 0 <= value <= 0xFFFF:
                raise ValueError(f"{name} must fit in 16 bits, got {value:#x}")
        self.vendor_id = vendor_id
        self.product_id = product_id
        self.interfaces: list[USBInterface] = list(interfaces)
        self.is_open = False

    def open(self) -> None:
        """Open the device so its interfaces can be claimed."""
        self.is_open = True

    def close(self) -> None:
        """Close every interface and the device."""
        for interface in self.interfaces:
            interface.close()
        self.is_open = False

    def reset(self) -> None:
        """Reset every interface of the device."""
        for interface in self.interfaces:
            interface.reset()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.vendor_id:04x}-{self.product_id:04x})"