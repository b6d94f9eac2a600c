import pytest

from chitbook.core.errors import ValidationError
from chitbook.utils.ledger_validation import (
    validate_bid_amount,
    validate_chit_count,
    validate_chit_month,
    validate_group_terms,
    validate_month_filter,
    validate_payment_amount,
)


@pytest.mark.parametrize("month", ["2024-01", "1999-12"])
def test_valid_chit_months(month):
    validate_chit_month(month)


@pytest.mark.parametrize("month", ["2024-13", "2024-1", "24-01", "", "2024/01"])
def test_invalid_chit_months(month):
    with pytest.raises(ValidationError) as exc_info:
        validate_chit_month(month)
    assert exc_info.value.context["chit_month"] == month


def test_month_filter_allows_none():
    validate_month_filter(None)
    with pytest.raises(ValidationError):
        validate_month_filter("March")


def test_bid_amount_bounds():
    validate_bid_amount(0, 100000)
    validate_bid_amount(100000, 100000)

    with pytest.raises(ValidationError):
        validate_bid_amount(-1, 100000)
    with pytest.raises(ValidationError) as exc_info:
        validate_bid_amount(100001, 100000)
    assert exc_info.value.context == {"bid_amount_cents": 100001, "chit_value_cents": 100000}


def test_payment_amount_must_be_positive():
    validate_payment_amount(1)

    with pytest.raises(ValidationError) as exc_info:
        validate_payment_amount(0, client_id="c01")
    assert exc_info.value.context == {"amount_cents": 0, "client_id": "c01"}


def test_group_terms():
    validate_group_terms(100000, 5, 20)

    with pytest.raises(ValidationError):
        validate_group_terms(0, 5, 20)
    with pytest.raises(ValidationError):
        validate_group_terms(100000, 101, 20)
    with pytest.raises(ValidationError):
        validate_group_terms(100000, 5, 0)


def test_chit_count():
    validate_chit_count(0.5)
    with pytest.raises(ValidationError):
        validate_chit_count(0)
