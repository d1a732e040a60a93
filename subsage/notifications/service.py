"""
Cas d'usage 'notifications': détection des abonnements proches de l'expiration,
enregistrement des notifications et envoi des emails via le dispatcher.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
import logging

from subsage.errors import NotFoundError, ValidationError
from subsage.utils.dates import parse_timestamp, utcnow
from . import repository

logger = logging.getLogger(__name__)

NOTIFY_WINDOW = timedelta(days=7)


def _expiring_between(subscriptions: List[Dict[str, Any]], start: datetime, end: datetime) -> List[Dict[str, Any]]:
    selected = []
    for sub in subscriptions:
        try:
            expiry = parse_timestamp(sub["expiry"])
        except ValueError:
            logger.warning("notifications expiry illisible subscription_id=%s", sub.get("id"))
            continue
        if start <= expiry <= end:
            selected.append(sub)
    return selected


def notify_expiring(db, dispatcher, user_id: int, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Abonnements expirant entre maintenant et maintenant + 7 jours:
    chacun devient une ligne notifications et un email.
    """
    now = now or utcnow()
    subscriptions = _expiring_between(repository.list_user_subscriptions(db, user_id), now, now + NOTIFY_WINDOW)

    notifications = []
    for sub in subscriptions:
        notification = {
            "user_id": user_id,
            "subscription_id": sub["id"],
            "subscription_name": sub["name"],
            "subscription_type": sub["type"],
            "expiry": sub["expiry"],
            "message": f"Your subscription to {sub['name']} will expire soon!",
            "notified_at": now.isoformat(),
        }
        repository.insert_notification(db, notification)
        dispatcher.send(user_id, notification)
        notifications.append(notification)

    logger.info("notifications.notify_expiring user_id=%s count=%s", user_id, len(notifications))
    return notifications


def store_notification(db, dispatcher, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Enregistre une notification construite côté client pour un abonnement de l'utilisateur.
    L'expiration est relue en base, jamais prise du client.
    """
    required = ("subscription_id", "subscription_name", "subscription_type", "message")
    if any(not data.get(k) for k in required):
        raise ValidationError("Tous les champs sont requis")
    raw_id = str(data.get("subscription_id")).strip()
    if not raw_id.isdigit():
        raise ValidationError("subscription_id invalide")

    sub = repository.get_owned_subscription(db, int(raw_id), user_id)
    if not sub:
        raise NotFoundError("Abonnement introuvable")

    notification = {
        "user_id": user_id,
        "subscription_id": sub["id"],
        "subscription_name": str(data["subscription_name"]),
        "subscription_type": str(data["subscription_type"]),
        "expiry": sub["expiry"],
        "message": str(data["message"]),
        "notified_at": str(data.get("notified_at") or utcnow().isoformat()),
    }
    repository.insert_notification(db, notification)
    dispatcher.send(user_id, {"subscription_name": notification["subscription_name"], "expiry": sub["expiry"]})
    return notification
