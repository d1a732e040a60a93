from typing import Any, Dict, List


def list_subscription_starts(db, user_id: int) -> List[Dict[str, Any]]:
    return db.fetch_many("SELECT name, start FROM subscriptions WHERE user_id = :user_id", {"user_id": user_id})


def list_payment_amounts(db, user_id: int) -> List[Dict[str, Any]]:
    return db.fetch_many(
        "SELECT subscription_name, amount, created_at FROM payments WHERE user_id = :user_id",
        {"user_id": user_id},
    )


def count_unique_payers(db, user_id: int) -> int:
    row = db.fetch_one(
        "SELECT COUNT(DISTINCT payer_email) AS n FROM payer_details WHERE user_id = :user_id",
        {"user_id": user_id},
    )
    return int((row or {}).get("n") or 0)
