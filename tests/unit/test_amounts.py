import pytest

from subsage.errors import ValidationError
from subsage.payments.amounts import MAX_MINOR_UNITS, normalize_payment_type, to_minor_units


@pytest.mark.parametrize("amount", [0, "0", -5, "-5", "abc", "", None, True, "NaN", "Infinity", 0.004])
def test_invalid_amounts_are_rejected(amount):
    with pytest.raises(ValidationError):
        to_minor_units(amount)


def test_decimal_conversion_is_exact():
    assert to_minor_units(499.99) == 49999
    assert to_minor_units("499.99") == 49999
    assert to_minor_units(19.99) == 1999


def test_integer_amount():
    assert to_minor_units(10) == 1000


def test_half_up_rounding():
    assert to_minor_units("0.005") == 1
    assert to_minor_units("1.235") == 124


def test_payment_type_normalization():
    assert normalize_payment_type(" Extend ") == "extend"
    assert normalize_payment_type("normal") == "normal"


@pytest.mark.parametrize("value", [None, "", "refund", "NORMALE"])
def test_unknown_payment_type_is_rejected(value):
    with pytest.raises(ValidationError):
        normalize_payment_type(value)


@pytest.mark.parametrize("amount", ["1e30", 1e30, "1000000", "999999.995"])
def test_amounts_above_stripe_cap_are_rejected(amount):
    with pytest.raises(ValidationError):
        to_minor_units(amount)


def test_amount_at_stripe_cap_is_accepted():
    assert to_minor_units("999999.99") == MAX_MINOR_UNITS
