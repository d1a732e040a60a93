"""
Conversion et validation des montants de checkout.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from subsage.errors import ValidationError

PAYMENT_TYPES = ("normal", "extend")
# plafond Stripe pour unit_amount
MAX_MINOR_UNITS = 99999999


def to_minor_units(amount) -> int:
    """
    Convertit un montant en unités majeures (ex: "499.99") en unités mineures (49999).
    - Accepte str|int|float; arrondi au centime le plus proche (half-up).
    - Soulève ValidationError si le montant n'est pas numérique, pas fini, <= 0
      ou au-delà du plafond Stripe (MAX_MINOR_UNITS).
    """
    if isinstance(amount, bool) or amount is None:
        raise ValidationError("Montant invalide")
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Montant invalide")
    if not value.is_finite():
        raise ValidationError("Montant invalide")
    if value * 100 >= MAX_MINOR_UNITS + 1:
        raise ValidationError("Montant trop élevé")
    minor = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if minor <= 0:
        raise ValidationError("Montant invalide")
    if minor > MAX_MINOR_UNITS:
        raise ValidationError("Montant trop élevé")
    return minor


def normalize_payment_type(payment_type) -> str:
    value = str(payment_type or "").strip().lower()
    if value not in PAYMENT_TYPES:
        raise ValidationError("Type de paiement inconnu (attendu: normal ou extend)")
    return value
