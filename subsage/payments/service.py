"""
Cas d'usage 'payments': orchestre repository, règles de paiement, Stripe.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from subsage.errors import NotFoundError, ValidationError
from subsage.utils.dates import utcnow
from . import repository
from .amounts import normalize_payment_type, to_minor_units
from .eligibility import EXTENSION_WINDOW_DAYS, days_until_expiry, is_extension_eligible
from .metadata import make_metadata

logger = logging.getLogger(__name__)


def _parse_subscription_id(value: Any) -> int:
    raw = str(value if value is not None else "").strip()
    if not raw.isdigit():
        raise ValidationError("subscription_id invalide")
    return int(raw)


def check_payment_rules(succeeded_payments: List[Dict[str, Any]], payment_type: str,
                        subscription: Dict[str, Any], now: datetime) -> None:
    """
    Règles d'exclusivité:
    - "normal" refusé si un paiement réussi "normal" existe déjà
    - "normal" refusé après une extension réussie
    - "extend" refusé hors de la fenêtre d'extension (7 jours ou moins)
    """
    types = {p.get("payment_type") for p in succeeded_payments}
    if payment_type == "normal":
        if "normal" in types:
            raise ValidationError("Un paiement normal a déjà été effectué pour cet abonnement.")
        if "extend" in types:
            raise ValidationError("Impossible d'effectuer un paiement normal après une extension.")
    elif payment_type == "extend":
        if not is_extension_eligible(subscription["expiry"], now):
            raise ValidationError("L'extension n'est pas autorisée pour cet abonnement.")


# module subsage.payments.service
def create_checkout_for_subscription(
    *,
    db,
    provider,
    user_id: int,
    subscription_id: Any,
    amount: Any,
    payment_type: Any,
    subscription_name: Optional[str],
    currency: str,
    success_url: str,
    cancel_url: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Prépare la session Stripe pour un abonnement de l'utilisateur.
    - Valide montant (unités mineures > 0), type et subscription_id avant tout accès externe
    - Vérifie propriété + règles d'exclusivité dans une transaction (abonnement verrouillé)
    - Crée la session Stripe uniquement si toutes les règles passent
    - Deux sessions "normal" ouvertes restent possibles; la réconciliation signale la seconde
      (ReconciliationResult.normal_refused)
    """
    amount_minor = to_minor_units(amount)
    payment_type = normalize_payment_type(payment_type)
    sub_id = _parse_subscription_id(subscription_id)

    with db.transaction() as tx:
        subscription = repository.get_owned_subscription(tx, sub_id, user_id, lock=True)
        if not subscription:
            raise NotFoundError("Abonnement introuvable")
        succeeded = repository.list_succeeded_payments(tx, sub_id)
        check_payment_rules(succeeded, payment_type, subscription, now or utcnow())

    session = provider.create_session(
        amount_minor=amount_minor,
        currency=currency,
        product_name=(subscription_name or "").strip() or subscription["name"],
        success_url=success_url,
        cancel_url=cancel_url,
        metadata=make_metadata(sub_id, payment_type),
    )
    logger.info(
        "payments.checkout session=%s subscription_id=%s type=%s amount_minor=%s",
        session.get("id"), sub_id, payment_type, amount_minor,
    )
    return session


def list_payable_subscriptions(db, user_id: int, subscription_id: Optional[int] = None,
                               now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Abonnements de l'utilisateur enrichis de days_remaining / allow_extend."""
    now = now or utcnow()
    rows = repository.list_user_subscriptions(db, user_id, subscription_id)
    for row in rows:
        try:
            row["days_remaining"] = days_until_expiry(row["expiry"], now)
            row["allow_extend"] = row["days_remaining"] <= EXTENSION_WINDOW_DAYS
        except ValueError:
            logger.warning("payments.list expiry illisible subscription_id=%s", row.get("id"))
            row["days_remaining"] = None
            row["allow_extend"] = False
    return rows


def get_transaction_history(db, user_id: int) -> List[Dict[str, Any]]:
    return repository.list_user_payments(db, user_id)


def get_transaction(db, payment_id: str, user_id: int) -> Dict[str, Any]:
    row = repository.get_user_payment(db, payment_id, user_id)
    if not row:
        raise NotFoundError("Transaction introuvable")
    return row
