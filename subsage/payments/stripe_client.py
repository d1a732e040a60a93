"""
Adaptateur Stripe: centralise les appels Checkout / PaymentIntent / Webhook.
La clé API est portée par l'instance (passée à chaque appel), pas par le module stripe global.
"""
import logging
from typing import Any, Dict, Optional

import stripe

from subsage.errors import ProviderError, SessionNotFound

logger = logging.getLogger(__name__)


def _as_dict(obj: Any) -> Dict[str, Any]:
    """StripeObject -> dict récursif (tolère un dict déjà construit, ex: tests)."""
    if obj is None:
        return {}
    if isinstance(obj, dict) and not hasattr(obj, "to_dict"):
        return obj
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


# module subsage.payments.stripe_client
class StripeCheckoutProvider:
    def __init__(self, api_key: str, webhook_secret: str = ""):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def _require_key(self) -> None:
        if not self.api_key:
            raise ProviderError("STRIPE_SECRET_KEY manquant")

    def create_session(
        self,
        *,
        amount_minor: int,
        currency: str,
        product_name: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> Dict[str, Any]:
        """
        Crée une session Stripe Checkout (mode payment, une seule ligne).
        - amount_minor: montant en unités mineures (centimes/paise)
        - metadata: {"subscription_id": "...", "payment_type": "normal|extend"}
        Retour: dict session (ex: {"id": "cs_test_...", "url": "https://..."})
        """
        self._require_key()
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": currency,
                            "product_data": {"name": product_name or "Subscription"},
                            "unit_amount": amount_minor,
                        },
                        "quantity": 1,
                    }
                ],
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.exception("payments.stripe_client.create_session failed")
            raise ProviderError() from e
        return _as_dict(session)

    def retrieve_session(self, session_id: str) -> Dict[str, Any]:
        """
        Récupère une session Checkout par son identifiant.
        - SessionNotFound si Stripe ne connaît pas la référence
        - ProviderError pour toute autre erreur Stripe (réseau, auth, ...)
        """
        self._require_key()
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.InvalidRequestError as e:
            if getattr(e, "code", None) == "resource_missing" or getattr(e, "http_status", None) == 404:
                raise SessionNotFound() from e
            logger.exception("payments.stripe_client.retrieve_session failed session_id=%s", session_id)
            raise ProviderError() from e
        except stripe.StripeError as e:
            logger.exception("payments.stripe_client.retrieve_session failed session_id=%s", session_id)
            raise ProviderError() from e
        return _as_dict(session)

    def retrieve_payment_intent(self, payment_intent_id: str) -> Dict[str, Any]:
        self._require_key()
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.exception("payments.stripe_client.retrieve_payment_intent failed pi=%s", payment_intent_id)
            raise ProviderError() from e
        return _as_dict(intent)

    def parse_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Valide et parse un événement webhook signé (Stripe-Signature + STRIPE_WEBHOOK_SECRET).
        Soulève ValueError (payload) ou stripe.SignatureVerificationError (signature).
        """
        event = stripe.Webhook.construct_event(payload, sig_header or "", self.webhook_secret or "")
        return _as_dict(event)
