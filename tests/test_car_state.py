import pytest
from fastapi import HTTPException

from showroom.models.enums import CarStatus
from showroom.utils.car_state import validate_transition


def test_available_to_sold_allowed():
    validate_transition(CarStatus.AVAILABLE, CarStatus.SOLD)


def test_same_status_is_noop():
    validate_transition("sold", "sold")


def test_sold_is_terminal():
    with pytest.raises(HTTPException) as exc_info:
        validate_transition(CarStatus.SOLD, CarStatus.AVAILABLE)
    assert exc_info.value.status_code == 409
