from typing import Any, Dict, List
import logging

from subsage.errors import NotFoundError
from subsage.utils.validators import validate_subscription_fields
from . import repository

logger = logging.getLogger(__name__)


def list_subscriptions(db, user_id: int) -> List[Dict[str, Any]]:
    return repository.list_for_user(db, user_id)


def get_subscription(db, subscription_id: int, user_id: int) -> Dict[str, Any]:
    row = repository.get_owned(db, subscription_id, user_id)
    if not row:
        raise NotFoundError("Abonnement introuvable")
    return row


def create_subscription(db, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    fields = validate_subscription_fields(data)
    row = repository.insert(db, user_id, fields)
    logger.info("subscriptions.create user_id=%s subscription_id=%s", user_id, (row or {}).get("id"))
    return row


def update_subscription(db, subscription_id: int, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    fields = validate_subscription_fields(data)
    if repository.update_owned(db, subscription_id, user_id, fields) == 0:
        raise NotFoundError("Abonnement introuvable")
    return get_subscription(db, subscription_id, user_id)


def delete_subscription(db, subscription_id: int, user_id: int) -> None:
    # L'historique des paiements est conservé (pas de FK payments -> subscriptions)
    if repository.delete_owned(db, subscription_id, user_id) == 0:
        raise NotFoundError("Abonnement introuvable")
    logger.info("subscriptions.delete user_id=%s subscription_id=%s", user_id, subscription_id)
