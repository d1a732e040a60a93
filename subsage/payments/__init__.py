"""
Module 'payments' (feature-first): point d'entrée public.
Réunit montants, éligibilité à l'extension, metadata Stripe, client Stripe,
repository BD, réconciliation et services.
"""

from .amounts import PAYMENT_TYPES, to_minor_units, normalize_payment_type
from .eligibility import days_until_expiry, is_extension_eligible, extended_period
from .metadata import make_metadata, extract_metadata_from_session, extract_payment_intent_id
from .stripe_client import StripeCheckoutProvider
from .reconciliation import ReconciliationEngine, ReconciliationResult
from .service import check_payment_rules, create_checkout_for_subscription, list_payable_subscriptions

__all__ = [
    # amounts
    "PAYMENT_TYPES",
    "to_minor_units",
    "normalize_payment_type",
    # eligibility
    "days_until_expiry",
    "is_extension_eligible",
    "extended_period",
    # metadata
    "make_metadata",
    "extract_metadata_from_session",
    "extract_payment_intent_id",
    # stripe
    "StripeCheckoutProvider",
    # réconciliation
    "ReconciliationEngine",
    "ReconciliationResult",
    # services
    "check_payment_rules",
    "create_checkout_for_subscription",
    "list_payable_subscriptions",
]
