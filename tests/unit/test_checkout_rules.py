from datetime import datetime

import pytest

from subsage.errors import NotFoundError, ValidationError
from subsage.payments.service import check_payment_rules, create_checkout_for_subscription

NOW = datetime(2024, 1, 3, 0, 0, 0)


def _checkout(db, provider, user_id, subscription_id, amount="499.99", payment_type="normal"):
    return create_checkout_for_subscription(
        db=db,
        provider=provider,
        user_id=user_id,
        subscription_id=subscription_id,
        amount=amount,
        payment_type=payment_type,
        subscription_name="Netflix",
        currency="inr",
        success_url="http://testserver/payments/success?session_id={CHECKOUT_SESSION_ID}",
        cancel_url="http://testserver/payments/",
        now=NOW,
    )


def _record_payment(db, user_id, subscription_id, payment_type, payment_id="pi_1"):
    db.execute(
        "INSERT INTO payments (payment_id, user_id, subscription_id, amount, status, payment_type) "
        "VALUES (:pid, :uid, :sid, 10, 'succeeded', :pt)",
        {"pid": payment_id, "uid": user_id, "sid": subscription_id, "pt": payment_type},
    )


def test_first_normal_payment_creates_session(db, provider, user, make_subscription):
    sub = make_subscription(expiry="2024-03-01")

    session = _checkout(db, provider, user["id"], sub["id"])

    assert session["id"] == "cs_test_1"
    assert len(provider.created) == 1
    call = provider.created[0]
    assert call["amount_minor"] == 49999
    assert call["currency"] == "inr"
    assert call["metadata"] == {"subscription_id": str(sub["id"]), "payment_type": "normal"}


def test_normal_after_succeeded_normal_rejected_before_provider(db, provider, user, make_subscription):
    sub = make_subscription(expiry="2024-03-01")
    _record_payment(db, user["id"], sub["id"], "normal")

    with pytest.raises(ValidationError):
        _checkout(db, provider, user["id"], sub["id"])
    assert provider.created == []


def test_normal_after_extension_rejected(db, provider, user, make_subscription):
    sub = make_subscription(expiry="2024-03-01")
    _record_payment(db, user["id"], sub["id"], "extend")

    with pytest.raises(ValidationError):
        _checkout(db, provider, user["id"], sub["id"])
    assert provider.created == []


def test_extend_outside_window_rejected(db, provider, user, make_subscription):
    sub = make_subscription(expiry="2024-01-11")

    with pytest.raises(ValidationError):
        _checkout(db, provider, user["id"], sub["id"], payment_type="extend")
    assert provider.created == []


def test_extend_inside_window_allowed_even_after_normal(db, provider, user, make_subscription):
    sub = make_subscription(expiry="2024-01-10")
    _record_payment(db, user["id"], sub["id"], "normal")

    _checkout(db, provider, user["id"], sub["id"], payment_type="extend")
    assert provider.created[0]["metadata"]["payment_type"] == "extend"


@pytest.mark.parametrize("amount", [0, -5, "abc"])
def test_invalid_amount_rejected_before_provider(db, provider, user, make_subscription, amount):
    sub = make_subscription()
    with pytest.raises(ValidationError):
        _checkout(db, provider, user["id"], sub["id"], amount=amount)
    assert provider.created == []


def test_other_users_subscription_is_not_found(db, provider, make_user, make_subscription):
    sub = make_subscription()
    other = make_user(username="bob", email="bob@example.com")

    with pytest.raises(NotFoundError):
        _checkout(db, provider, other["id"], sub["id"])
    assert provider.created == []


def test_failed_payments_do_not_block_normal(db, provider, user, make_subscription):
    sub = make_subscription(expiry="2024-03-01")
    db.execute(
        "INSERT INTO payments (payment_id, user_id, subscription_id, amount, status, payment_type) "
        "VALUES ('pi_failed', :uid, :sid, 10, 'failed', 'normal')",
        {"uid": user["id"], "sid": sub["id"]},
    )
    _checkout(db, provider, user["id"], sub["id"])
    assert len(provider.created) == 1


def test_check_payment_rules_pure():
    sub = {"expiry": "2024-01-10"}
    check_payment_rules([], "normal", sub, NOW)
    check_payment_rules([{"payment_type": "normal"}], "extend", sub, NOW)
    with pytest.raises(ValidationError):
        check_payment_rules([{"payment_type": "normal"}], "normal", sub, NOW)
