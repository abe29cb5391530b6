import pytest

from syscon.results import ControllerError, ControllerResult


@pytest.mark.parametrize(
    "code, expected",
    [
        (100, ControllerResult.INVALID_ENDPOINT),
        (104, ControllerResult.UNEXPECTED_DATA),
        (115, ControllerResult.TIMEOUT),
        (117, ControllerResult.INVALID_INDEX),
        (255, ControllerResult.UNKNOWN_ERROR),
    ],
)
def test_error_maps_wire_codes_to_results(code, expected):
    error = ControllerError(code, "failure")
    assert error.result is expected
    assert int(error.result) == code


def test_error_keeps_result_and_message():
    error = ControllerError(ControllerResult.TIMEOUT, "no data in time")
    assert error.result is ControllerResult.TIMEOUT
    assert error.message == "no data in time"
    assert "TIMEOUT" in str(error)
    assert "no data in time" in str(error)


def test_error_accepts_plain_integer_code():
    error = ControllerError(104, "bad packet")
    assert error.result is ControllerResult.UNEXPECTED_DATA


def test_error_default_message_derived_from_result():
    error = ControllerError(ControllerResult.NOT_IMPLEMENTED)
    assert error.message == "not implemented"


def test_error_rejects_unknown_code():
    with pytest.raises(ValueError):
        ControllerError(42, "nothing")


def test_error_rejects_success():
    with pytest.raises(ValueError):
        ControllerError(ControllerResult.SUCCESS, "fine")