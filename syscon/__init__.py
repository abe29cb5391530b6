"""USB game controller drivers producing normalized button and stick data."""

__version__ = "1.0.0"

__all__ = [
    "base",
    "config",
    "dualshock3",
    "results",
    "switch",
    "usb",
    "xbox",
    "xbox360",
    "xbox360_wireless",
    "xbox_one",
]