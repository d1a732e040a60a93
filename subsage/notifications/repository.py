from typing import Any, Dict, List, Optional


def list_user_subscriptions(db, user_id: int) -> List[Dict[str, Any]]:
    return db.fetch_many(
        "SELECT id, name, type, expiry FROM subscriptions WHERE user_id = :user_id ORDER BY expiry",
        {"user_id": user_id},
    )


def get_owned_subscription(db, subscription_id: int, user_id: int) -> Optional[Dict[str, Any]]:
    return db.fetch_one(
        "SELECT id, name, type, expiry FROM subscriptions WHERE id = :id AND user_id = :user_id",
        {"id": subscription_id, "user_id": user_id},
    )


def insert_notification(db, notification: Dict[str, Any]) -> None:
    db.execute(
        """
        INSERT INTO notifications (
            user_id, subscription_id, subscription_name, subscription_type, expiry, message, notified_at
        ) VALUES (
            :user_id, :subscription_id, :subscription_name, :subscription_type, :expiry, :message, :notified_at
        )
        """,
        notification,
    )


def list_notifications(db, user_id: int) -> List[Dict[str, Any]]:
    return db.fetch_many(
        "SELECT * FROM notifications WHERE user_id = :user_id ORDER BY notified_at DESC, id DESC",
        {"user_id": user_id},
    )
