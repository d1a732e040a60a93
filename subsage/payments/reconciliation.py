"""
Réconciliation d'une session Checkout terminée.

Séquence (linéaire, une seule transaction pour les écritures):
  1) session Stripe -> payment_intent (IncompletePayment si absent)
  2) payment_intent.status == "succeeded" sinon NotPaid (aucune écriture)
  3) métadonnées -> (subscription_id, payment_type), abonnement verrouillé (SubscriptionNotFound)
  4) paiement inséré une seule fois par payment_id, détails payeur dans la même transaction
  5) type "extend": éligibilité recalculée sur l'expiration stockée, puis nouvelle période
  6) type "normal": refusé (paiement conservé, signalé) si un autre paiement réussi existe déjà;
     le contrôle se fait sous le verrou de l'abonnement, deux sessions ouvertes ne passent pas toutes les deux

Rejouer la même session (rechargement de la page succès, webhook dupliqué) ne crée rien:
le paiement existe déjà, aucune extension n'est réappliquée.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from subsage.errors import IncompletePayment, SubscriptionNotFound, ValidationError
from subsage.utils.dates import utcnow
from . import repository
from .amounts import normalize_payment_type
from .eligibility import extended_period, is_extension_eligible
from .metadata import extract_metadata_from_session, extract_payment_intent_id

logger = logging.getLogger(__name__)

PAID = "paid"
NOT_PAID = "not_paid"


@dataclass
class ReconciliationResult:
    status: str
    payment_id: Optional[str] = None
    created: bool = False
    extended: bool = False
    extension_refused: bool = False
    normal_refused: bool = False
    subscription: Optional[Dict[str, Any]] = None

    @property
    def paid(self) -> bool:
        return self.status == PAID


def _customer_fields(session: Dict[str, Any]) -> Dict[str, Optional[str]]:
    details = session.get("customer_details") or {}
    address = details.get("address") or {}
    return {
        "payer_name": details.get("name"),
        "payer_email": details.get("email"),
        "address_country": address.get("country"),
    }


def _amount_major(intent: Dict[str, Any]) -> float:
    amount = intent.get("amount_received") or intent.get("amount") or 0
    return int(amount) / 100


# module subsage.payments.reconciliation
class ReconciliationEngine:
    def __init__(self, db, provider):
        self.db = db
        self.provider = provider

    def reconcile(self, session_reference: str, now: Optional[datetime] = None) -> ReconciliationResult:
        if not session_reference:
            raise ValidationError("session_id manquant")

        session = self.provider.retrieve_session(session_reference)
        payment_intent_id = extract_payment_intent_id(session)
        if not payment_intent_id:
            logger.warning("payments.reconcile session=%s sans payment_intent", session_reference)
            raise IncompletePayment()

        intent = self.provider.retrieve_payment_intent(payment_intent_id)
        if intent.get("status") != "succeeded":
            logger.info(
                "payments.reconcile not paid session=%s status=%s", session_reference, intent.get("status")
            )
            return ReconciliationResult(status=NOT_PAID, payment_id=payment_intent_id)

        subscription_id, raw_type = extract_metadata_from_session(session)
        if subscription_id is None:
            raise ValidationError("Métadonnée subscription_id manquante")
        payment_type = normalize_payment_type(raw_type)

        with self.db.transaction() as tx:
            subscription = repository.get_subscription(tx, subscription_id, lock=True)
            if not subscription:
                logger.error("payments.reconcile subscription introuvable id=%s", subscription_id)
                raise SubscriptionNotFound()

            created = repository.insert_payment(
                tx,
                payment_id=payment_intent_id,
                user_id=subscription["user_id"],
                subscription_id=subscription["id"],
                subscription_name=subscription["name"],
                amount=_amount_major(intent),
                currency=intent.get("currency"),
                status="succeeded",
                payment_type=payment_type,
                payment_method=intent.get("payment_method"),
                latest_charge=intent.get("latest_charge"),
                payment_intent_id=payment_intent_id,
            )
            result = ReconciliationResult(
                status=PAID, payment_id=payment_intent_id, created=created, subscription=subscription
            )
            if not created:
                logger.info("payments.reconcile replay ignoré payment_id=%s", payment_intent_id)
                return result

            repository.insert_payer_details(
                tx, payment_id=payment_intent_id, user_id=subscription["user_id"], **_customer_fields(session)
            )

            if payment_type == "extend":
                if is_extension_eligible(subscription["expiry"], now or utcnow()):
                    new_start, new_expiry = extended_period(subscription["expiry"])
                    repository.update_subscription_period(tx, subscription["id"], new_start, new_expiry)
                    result.extended = True
                    result.subscription = {**subscription, "start": new_start, "expiry": new_expiry}
                else:
                    result.extension_refused = True
                    logger.warning(
                        "payments.reconcile extension refusée (hors fenêtre) subscription_id=%s payment_id=%s",
                        subscription["id"],
                        payment_intent_id,
                    )
            elif payment_type == "normal":
                earlier = [
                    p for p in repository.list_succeeded_payments(tx, subscription["id"])
                    if p.get("payment_id") != payment_intent_id
                ]
                if earlier:
                    result.normal_refused = True
                    logger.warning(
                        "payments.reconcile paiement normal en double subscription_id=%s payment_id=%s "
                        "précédents=%s",
                        subscription["id"],
                        payment_intent_id,
                        [p.get("payment_id") for p in earlier],
                    )

        logger.info(
            "payments.reconcile ok payment_id=%s subscription_id=%s type=%s extended=%s",
            payment_intent_id,
            subscription_id,
            payment_type,
            result.extended,
        )
        return result
