"""
Accès aux données 'subscriptions' (CRUD restreint au propriétaire).
"""
from typing import Any, Dict, List, Optional


def list_for_user(db, user_id: int) -> List[Dict[str, Any]]:
    return db.fetch_many(
        "SELECT * FROM subscriptions WHERE user_id = :user_id ORDER BY expiry DESC",
        {"user_id": user_id},
    )


def get_owned(db, subscription_id: int, user_id: int) -> Optional[Dict[str, Any]]:
    return db.fetch_one(
        "SELECT * FROM subscriptions WHERE id = :id AND user_id = :user_id",
        {"id": subscription_id, "user_id": user_id},
    )


def insert(db, user_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    with db.transaction() as tx:
        tx.execute(
            "INSERT INTO subscriptions (user_id, name, type, start, expiry, amount, status) "
            "VALUES (:user_id, :name, :type, :start, :expiry, :amount, 'Active')",
            {"user_id": user_id, **fields},
        )
        # Dernier abonnement de l'utilisateur: même transaction, donc celui qu'on vient d'insérer
        return tx.fetch_one(
            "SELECT * FROM subscriptions WHERE user_id = :user_id ORDER BY id DESC LIMIT 1",
            {"user_id": user_id},
        )


def update_owned(db, subscription_id: int, user_id: int, fields: Dict[str, Any]) -> int:
    return db.execute(
        "UPDATE subscriptions SET name = :name, type = :type, start = :start, expiry = :expiry, amount = :amount "
        "WHERE id = :id AND user_id = :user_id",
        {"id": subscription_id, "user_id": user_id, **fields},
    )


def delete_owned(db, subscription_id: int, user_id: int) -> int:
    return db.execute(
        "DELETE FROM subscriptions WHERE id = :id AND user_id = :user_id",
        {"id": subscription_id, "user_id": user_id},
    )
