from datetime import datetime

import pytest

from subsage.errors import NotFoundError, ValidationError
from subsage.notifications.dispatcher import NotificationDispatcher
from subsage.notifications.service import notify_expiring, store_notification

NOW = datetime(2024, 1, 3, 0, 0, 0)


@pytest.fixture()
def dispatcher(db, mailer):
    return NotificationDispatcher(db, mailer, "noreply@subsage.test")


def test_only_subscriptions_expiring_within_a_week(db, user, make_subscription, dispatcher, mailer, row_count):
    make_subscription(name="Soon", expiry="2024-01-08")
    make_subscription(name="Edge", expiry="2024-01-10")
    make_subscription(name="Later", expiry="2024-01-20")
    make_subscription(name="Past", expiry="2023-12-20")

    notifications = notify_expiring(db, dispatcher, user["id"], now=NOW)

    assert sorted(n["subscription_name"] for n in notifications) == ["Edge", "Soon"]
    assert row_count("notifications") == 2
    assert sorted(m["subject"] for m in mailer.sent) == [
        "Subscription Expiring Soon: Edge",
        "Subscription Expiring Soon: Soon",
    ]


def test_other_users_subscriptions_are_ignored(db, user, make_user, make_subscription, dispatcher):
    bob = make_user(username="bob", email="bob@example.com")
    make_subscription(user_id=bob["id"], expiry="2024-01-05")

    assert notify_expiring(db, dispatcher, user["id"], now=NOW) == []


def test_dispatch_failure_keeps_notification(db, user, make_subscription, failing_mailer, row_count):
    make_subscription(expiry="2024-01-05")
    dispatcher = NotificationDispatcher(db, failing_mailer)

    notify_expiring(db, dispatcher, user["id"], now=NOW)

    assert row_count("notifications") == 1
    assert row_count("sent_emails") == 0


def test_store_reads_expiry_from_subscription(db, user, make_subscription, dispatcher, mailer):
    sub = make_subscription(expiry="2024-01-09")
    data = {
        "subscription_id": str(sub["id"]),
        "subscription_name": "Netflix",
        "subscription_type": "Streaming",
        "expiry": "1999-01-01",
        "message": "Bientôt expiré",
    }

    notification = store_notification(db, dispatcher, user["id"], data)

    assert notification["expiry"] == "2024-01-09"
    assert "2024-01-09" in mailer.sent[0]["body"]


def test_store_requires_all_fields(db, user, dispatcher):
    with pytest.raises(ValidationError):
        store_notification(db, dispatcher, user["id"], {"subscription_id": "1"})


def test_store_unknown_subscription(db, user, dispatcher):
    data = {"subscription_id": "999", "subscription_name": "X", "subscription_type": "Y", "message": "m"}
    with pytest.raises(NotFoundError):
        store_notification(db, dispatcher, user["id"], data)
