from subsage.users.service import get_user_dashboard


def _payment(db, user_id, payment_id, name, amount, created_at):
    db.execute(
        "INSERT INTO payments (payment_id, user_id, subscription_id, subscription_name, amount, status, payment_type, created_at) "
        "VALUES (:pid, :uid, 1, :name, :amount, 'succeeded', 'normal', :created_at)",
        {"pid": payment_id, "uid": user_id, "name": name, "amount": amount, "created_at": created_at},
    )


def test_dashboard_aggregates_per_month(db, user, make_subscription):
    make_subscription(name="Netflix", start="2024-01-05")
    make_subscription(name="Netflix", start="2024-01-20")
    make_subscription(name="Spotify", start="2024-02-01")
    _payment(db, user["id"], "pi_1", "Netflix", 100.0, "2024-01-06 10:00:00")
    _payment(db, user["id"], "pi_2", "Netflix", 50.5, "2024-01-21 10:00:00")
    _payment(db, user["id"], "pi_3", "Spotify", 20.0, "2024-02-02 10:00:00")
    db.execute(
        "INSERT INTO payer_details (payment_id, user_id, payer_email) VALUES ('pi_1', :u, 'a@x.com'), "
        "('pi_2', :u, 'a@x.com'), ('pi_3', :u, 'b@x.com')",
        {"u": user["id"]},
    )

    data = get_user_dashboard(db, user)

    assert data["username"] == "alice"
    assert data["subscription_data"] == [
        {"month": "01", "name": "Netflix", "count": 2},
        {"month": "02", "name": "Spotify", "count": 1},
    ]
    assert data["payment_data"] == [
        {"month": "01", "subscription_name": "Netflix", "amount": 150.5},
        {"month": "02", "subscription_name": "Spotify", "amount": 20.0},
    ]
    assert data["unique_payers"] == 2


def test_empty_dashboard(db, user):
    data = get_user_dashboard(db, user)
    assert data["subscription_data"] == []
    assert data["payment_data"] == []
    assert data["unique_payers"] == 0
