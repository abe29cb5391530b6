# syscon

Drivers for USB game controllers. Each driver opens a controller through an
abstract USB layer, decodes the controller's input reports and maps them,
through a configurable binding table, onto a normalized set of buttons and
two analog sticks.

Controllers:

- `Dualshock3Controller` (`syscon.dualshock3`)
- `SwitchController` (`syscon.switch`)
- `XboxController` (`syscon.xbox`)
- `Xbox360Controller` (`syscon.xbox360`)
- `Xbox360WirelessController` (`syscon.xbox360_wireless`), a receiver with
  four controller slots
- `XboxOneController` (`syscon.xbox_one`)

## Installing

```
pip install .
```

The package has no runtime dependencies.

## Pieces

- `syscon.usb` defines the USB layer the drivers talk to: the concrete
  `USBDevice`, which holds a vendor id, a product id and a list of
  interfaces, and the abstract `USBInterface` and `USBEndpoint`, plus
  `EndpointDescriptor`, `InterfaceDescriptor`, `Direction` and
  `RequestRecipient`.
- `syscon.config` holds `ControllerConfig`, which maps physical pins
  (`buttons_pin`) and analog axes (`buttons_analog`, `AnalogConfig`) to
  `ControllerButton` values, sets per-axis deadzones
  (`analog_deadzone_percent`) and factors (`analog_factor_percent`), defines
  button combos (`simulate_combos`) and colours (`RGBAColor`).
- `syscon.base` holds `BaseController` and the helpers `normalize`,
  `apply_deadzone` and `read_bits_le`, together with `RawInputData`,
  `NormalizedButtonData` and `NormalizedStick`.
- `syscon.results` holds `ControllerResult` and `ControllerError`. A failed
  operation raises `ControllerError`; its `result` attribute gives the
  status.

## Use

```python
from syscon.config import ControllerAnalogBinding, ControllerButton, ControllerConfig
from syscon.xbox360 import Xbox360Controller

config = ControllerConfig()
config.buttons_pin[ControllerButton.A][0] = 1
config.buttons_analog[ControllerButton.LSTICK_RIGHT].bind = ControllerAnalogBinding.X

controller = Xbox360Controller(device, config, logger)  # device: a syscon.usb.USBDevice
controller.initialize()
received = controller.read_input(timeout_us=100_000)
if received is not None:
    input_idx, data = received
    print(input_idx, data.buttons[ControllerButton.A], data.sticks[0].axis_x)
controller.exit()
```

`read_input` returns `None` when the read came back empty or the report
carried no input. `logger` is a standard `logging.Logger`; pass `None` to use
the `syscon.base` module logger.

A driver's `parse_data` can also be called directly with a report's bytes,
which returns a `RawInputData`, and `map_raw_input_to_normalized` turns that
into a `NormalizedButtonData` using the controller's configuration.

## What the package does not do

- It has no USB backend. `USBInterface` and `USBEndpoint` are abstract:
  subclass them to reach real hardware, or a fake device in tests.
- It has no driver for generic HID joysticks described by a report
  descriptor, and no command-line program.

## Tests

```
pip install .[test]
pytest
```