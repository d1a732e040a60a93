import re
from typing import Any, Dict

from subsage.errors import ValidationError
from subsage.utils.dates import parse_timestamp

def validate_password_strength(v: str) -> str:
    if len(v or "") < 8:
        raise ValueError('Le mot de passe doit contenir au moins 8 caractères')
    if not re.search(r'[A-Za-z]', v):
        raise ValueError('Le mot de passe doit contenir au moins une lettre')
    if not re.search(r'\d', v):
        raise ValueError('Le mot de passe doit contenir au moins un chiffre')
    return v

def validate_subscription_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Valide et normalise les champs d'un abonnement (création / mise à jour).
    - name, type, start, expiry, amount requis
    - start/expiry au format ISO (date ou date+heure), expiry > start
    - amount numérique strictement positif
    Soulève ValidationError avec un message utilisateur.
    """
    name = str(data.get("name") or "").strip()
    sub_type = str(data.get("type") or "").strip()
    start = str(data.get("start") or "").strip()
    expiry = str(data.get("expiry") or "").strip()
    raw_amount = data.get("amount")

    if not name or not sub_type or not start or not expiry or raw_amount in (None, ""):
        raise ValidationError("Champs requis manquants")

    try:
        start_dt = parse_timestamp(start)
        expiry_dt = parse_timestamp(expiry)
    except ValueError:
        raise ValidationError("Format de date invalide")
    if expiry_dt <= start_dt:
        raise ValidationError("La date d'expiration doit être postérieure à la date de début")

    try:
        amount = float(raw_amount)
    except (TypeError, ValueError):
        raise ValidationError("Le montant doit être un nombre positif")
    if amount != amount or amount <= 0 or amount == float("inf"):
        raise ValidationError("Le montant doit être un nombre positif")

    return {"name": name, "type": sub_type, "start": start, "expiry": expiry, "amount": amount}
