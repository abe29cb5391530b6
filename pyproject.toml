[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "syscon"
version = "1.0.0"
description = "USB game controller drivers that turn raw input reports into normalized button and stick data"
requires-python = ">=3.10"
dependencies = []
keywords = ["usb", "hid", "gamepad", "controller", "xbox", "dualshock", "switch"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware :: Universal Serial Bus (USB) :: Human Interface Device (HID)",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["syscon"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
