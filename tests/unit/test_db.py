import pytest

from subsage.errors import PersistenceError, ValidationError
from subsage.infra.db import Database
from subsage.infra.schema import TABLE_NAMES


def test_schema_creates_all_tables(db):
    for table in ("users", "subscriptions", "payments", "payer_details", "notifications", "sent_emails"):
        assert table in TABLE_NAMES
        assert db.fetch_one(f"SELECT COUNT(*) AS n FROM {table}")["n"] == 0


def test_init_schema_is_idempotent(db):
    db.init_schema()
    db.init_schema()


def test_named_parameters_are_bound_not_interpolated(db, user):
    hostile = "x' OR '1'='1"
    assert db.fetch_one("SELECT * FROM users WHERE username = :u", {"u": hostile}) is None
    assert db.fetch_one("SELECT username FROM users WHERE username = :u", {"u": "alice"}) == {"username": "alice"}


def test_fetch_many_returns_dicts(db, make_subscription):
    make_subscription(name="A")
    make_subscription(name="B")
    rows = db.fetch_many("SELECT name FROM subscriptions ORDER BY name")
    assert rows == [{"name": "A"}, {"name": "B"}]


def test_execute_returns_rowcount(db, make_subscription):
    make_subscription()
    make_subscription()
    assert db.execute("UPDATE subscriptions SET status = 'Expired'") == 2


def test_transaction_rolls_back_on_app_error(db, user, row_count):
    with pytest.raises(ValidationError):
        with db.transaction() as tx:
            tx.execute(
                "INSERT INTO subscriptions (user_id, name, type, start, expiry, amount) "
                "VALUES (:uid, 'A', 'B', '2024-01-01', '2024-02-01', 1)",
                {"uid": user["id"]},
            )
            raise ValidationError("stop")
    assert row_count("subscriptions") == 0


def test_sql_error_becomes_persistence_error(db):
    with pytest.raises(PersistenceError):
        db.fetch_one("SELECT * FROM table_inexistante")


def test_unique_constraint_violation_is_persistence_error(db, user):
    with pytest.raises(PersistenceError):
        db.execute(
            "INSERT INTO users (email, username, password) VALUES ('other@example.com', 'alice', 'x')"
        )


def test_duplicate_payment_insert_is_ignored(db, user):
    from subsage.payments import repository

    fields = dict(
        payment_id="pi_1", user_id=user["id"], subscription_id=1, subscription_name="N", amount=1.0,
        currency="inr", status="succeeded", payment_type="normal", payment_method=None,
        latest_charge=None, payment_intent_id="pi_1",
    )
    with db.transaction() as tx:
        assert repository.insert_payment(tx, **fields) is True
    with db.transaction() as tx:
        assert repository.insert_payment(tx, **fields) is False


def test_subscription_delete_cascades_from_user(db, user, make_subscription, row_count):
    make_subscription()
    db.execute("DELETE FROM users WHERE id = :id", {"id": user["id"]})
    assert row_count("subscriptions") == 0


def test_for_update_is_empty_on_sqlite(db):
    with db.transaction() as tx:
        assert tx.dialect == "sqlite"
        assert tx.for_update() == ""


def test_file_database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'test.db'}")
    database.init_schema()
    assert database.fetch_one("SELECT 1 AS ok") == {"ok": 1}
    database.dispose()
