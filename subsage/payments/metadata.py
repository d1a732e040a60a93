"""
Sérialisation/désérialisation des métadonnées Stripe (subscription_id, payment_type).
Les métadonnées ne servent que de clé de référence: les règles métier sont revérifiées
côté serveur à partir de l'état stocké.
"""
from typing import Any, Dict, Optional, Tuple


# module subsage.payments.metadata
def make_metadata(subscription_id: int, payment_type: str) -> Dict[str, str]:
    return {"subscription_id": str(subscription_id), "payment_type": payment_type}


def extract_metadata_from_session(session: Dict[str, Any]) -> Tuple[Optional[int], Optional[str]]:
    """
    Extrait (subscription_id, payment_type) depuis une session Checkout.
    - subscription_id: None si absent ou non numérique
    - payment_type: chaîne normalisée en minuscules, None si absente
    """
    meta = (session or {}).get("metadata") or {}
    raw_id = str(meta.get("subscription_id") or "").strip()
    subscription_id = int(raw_id) if raw_id.isdigit() else None
    payment_type = str(meta.get("payment_type") or "").strip().lower() or None
    return subscription_id, payment_type


def extract_payment_intent_id(session: Dict[str, Any]) -> Optional[str]:
    """payment_intent peut être un identifiant ou un objet développé (expand)."""
    pi = (session or {}).get("payment_intent")
    if isinstance(pi, dict):
        pi = pi.get("id")
    return str(pi) if pi else None
