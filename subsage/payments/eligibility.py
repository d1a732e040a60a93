"""
Fenêtre d'extension et calcul de la nouvelle période (logique pure, pas de Stripe, pas de DB).
"""
import math
from datetime import datetime, timedelta
from typing import Optional, Tuple

from subsage.utils.dates import format_like, parse_timestamp, utcnow

# module subsage.payments.eligibility
EXTENSION_WINDOW_DAYS = 7
EXTENSION_GAP = timedelta(days=1)
EXTENSION_LENGTH = timedelta(days=30)

_DAY_SECONDS = 24 * 60 * 60


def days_until_expiry(expiry, now: Optional[datetime] = None) -> int:
    """Nombre de jours (arrondi supérieur) avant l'expiration; négatif ou nul si déjà expiré."""
    now = now or utcnow()
    delta = parse_timestamp(expiry) - now
    return math.ceil(delta.total_seconds() / _DAY_SECONDS)


def is_extension_eligible(expiry, now: Optional[datetime] = None) -> bool:
    """
    Vrai si l'abonnement expire dans 7 jours ou moins (bornes incluses), ou a déjà expiré.
    """
    return days_until_expiry(expiry, now) <= EXTENSION_WINDOW_DAYS


def extended_period(expiry) -> Tuple[str, str]:
    """
    Nouvelle période après une extension payée:
    - début = expiration actuelle + 1 jour
    - fin = début + 30 jours
    Retourne (start, expiry) au format de la valeur stockée.
    """
    current = parse_timestamp(expiry)
    new_start = current + EXTENSION_GAP
    new_expiry = new_start + EXTENSION_LENGTH
    return format_like(expiry, new_start), format_like(expiry, new_expiry)
