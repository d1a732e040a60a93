from subsage.notifications.dispatcher import NotificationDispatcher


def test_send_emails_user_and_logs(db, user, mailer, row_count):
    dispatcher = NotificationDispatcher(db, mailer, "noreply@subsage.test")

    dispatcher.send(user["id"], {"subscription_name": "Netflix", "expiry": "2024-01-10"})

    assert len(mailer.sent) == 1
    sent = mailer.sent[0]
    assert sent["to"] == "alice@example.com"
    assert sent["subject"] == "Subscription Expiring Soon: Netflix"
    assert "2024-01-10" in sent["body"]
    assert row_count("sent_emails") == 1
    logged = db.fetch_one("SELECT * FROM sent_emails")
    assert logged["receiver_email"] == "alice@example.com"
    assert logged["sender_email"] == "noreply@subsage.test"


def test_unknown_user_is_ignored(db, mailer, row_count):
    NotificationDispatcher(db, mailer).send(999, {"subscription_name": "X", "expiry": "2024-01-10"})
    assert mailer.sent == []
    assert row_count("sent_emails") == 0


def test_smtp_failure_is_not_raised(db, user, failing_mailer, row_count):
    dispatcher = NotificationDispatcher(db, failing_mailer)

    dispatcher.send(user["id"], {"subscription_name": "Netflix", "expiry": "2024-01-10"})

    assert row_count("sent_emails") == 0
