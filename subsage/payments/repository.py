"""
Accès aux données pour la feature 'payments' (tables payments, payer_details, subscriptions).
Les fonctions prennent la passerelle (Database) ou une transaction ouverte (DbTransaction):
les deux exposent fetch_one / fetch_many / execute.
"""
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# module subsage.payments.repository
def get_subscription(tx, subscription_id: int, lock: bool = False) -> Optional[Dict[str, Any]]:
    """
    Lit un abonnement par id.
    - lock=True: verrou de ligne (FOR UPDATE sur PostgreSQL) pour sérialiser les paiements concurrents.
    """
    query = "SELECT * FROM subscriptions WHERE id = :id"
    if lock:
        query += tx.for_update()
    return tx.fetch_one(query, {"id": subscription_id})


def get_owned_subscription(tx, subscription_id: int, user_id: int, lock: bool = False) -> Optional[Dict[str, Any]]:
    query = "SELECT * FROM subscriptions WHERE id = :id AND user_id = :user_id"
    if lock:
        query += tx.for_update()
    return tx.fetch_one(query, {"id": subscription_id, "user_id": user_id})


def list_user_subscriptions(db, user_id: int, subscription_id: Optional[int] = None) -> List[Dict[str, Any]]:
    if subscription_id is not None:
        return db.fetch_many(
            "SELECT * FROM subscriptions WHERE id = :id AND user_id = :user_id",
            {"id": subscription_id, "user_id": user_id},
        )
    return db.fetch_many(
        "SELECT * FROM subscriptions WHERE user_id = :user_id ORDER BY expiry DESC",
        {"user_id": user_id},
    )


def list_succeeded_payments(tx, subscription_id: int) -> List[Dict[str, Any]]:
    return tx.fetch_many(
        "SELECT payment_id, payment_type, status FROM payments "
        "WHERE subscription_id = :subscription_id AND status = 'succeeded'",
        {"subscription_id": subscription_id},
    )


def insert_payment(tx, **fields: Any) -> bool:
    """
    Insère un paiement; no-op si payment_id existe déjà (clé de déduplication).
    Retourne True si une ligne a été créée.
    """
    created = tx.execute(
        """
        INSERT INTO payments (
            payment_id, user_id, subscription_id, subscription_name, amount, currency,
            status, payment_type, payment_method, latest_charge, payment_intent_id
        ) VALUES (
            :payment_id, :user_id, :subscription_id, :subscription_name, :amount, :currency,
            :status, :payment_type, :payment_method, :latest_charge, :payment_intent_id
        )
        ON CONFLICT (payment_id) DO NOTHING
        """,
        fields,
    )
    return created == 1


def insert_payer_details(tx, *, payment_id: str, user_id: int, payer_name: Optional[str],
                         payer_email: Optional[str], address_country: Optional[str]) -> None:
    tx.execute(
        """
        INSERT INTO payer_details (payment_id, user_id, payer_name, payer_email, address_country)
        VALUES (:payment_id, :user_id, :payer_name, :payer_email, :address_country)
        """,
        {
            "payment_id": payment_id,
            "user_id": user_id,
            "payer_name": payer_name,
            "payer_email": payer_email,
            "address_country": address_country,
        },
    )


def update_subscription_period(tx, subscription_id: int, start: str, expiry: str) -> None:
    tx.execute(
        "UPDATE subscriptions SET start = :start, expiry = :expiry WHERE id = :id",
        {"start": start, "expiry": expiry, "id": subscription_id},
    )


_HISTORY_SELECT = """
    SELECT
        p.payment_id, p.subscription_id, p.subscription_name, p.amount, p.currency,
        p.status, p.payment_method, p.payment_type, p.created_at,
        pd.payer_name, pd.payer_email, pd.address_country
    FROM payments p
    LEFT JOIN payer_details pd ON p.payment_id = pd.payment_id
"""


def list_user_payments(db, user_id: int) -> List[Dict[str, Any]]:
    """Historique des transactions de l'utilisateur (plus récentes d'abord)."""
    return db.fetch_many(
        _HISTORY_SELECT + " WHERE p.user_id = :user_id ORDER BY p.created_at DESC, p.id DESC",
        {"user_id": user_id},
    )


def get_user_payment(db, payment_id: str, user_id: int) -> Optional[Dict[str, Any]]:
    return db.fetch_one(
        _HISTORY_SELECT + " WHERE p.payment_id = :payment_id AND p.user_id = :user_id",
        {"payment_id": payment_id, "user_id": user_id},
    )
