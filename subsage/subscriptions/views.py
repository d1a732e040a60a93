from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from subsage.utils.deps import get_db
from subsage.utils.security import require_user
from . import service as subscriptions_service

router = APIRouter(prefix="/api/v1/subscriptions", tags=["Subscriptions API"])


class SubscriptionBody(BaseModel):
    # Validation métier dans validate_subscription_fields (messages utilisateur, 400)
    name: Optional[str] = None
    type: Optional[str] = None
    start: Optional[str] = None
    expiry: Optional[str] = None
    amount: Optional[Union[float, str]] = None


@router.get("")
def list_subscriptions(user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)) -> Dict[str, Any]:
    """Abonnements de l'utilisateur, du plus tardif au plus proche de l'expiration."""
    return {"subscriptions": subscriptions_service.list_subscriptions(db, user["id"])}


@router.get("/{subscription_id}")
def get_subscription(subscription_id: int, user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)):
    return subscriptions_service.get_subscription(db, subscription_id, user["id"])


@router.post("", status_code=201)
def create_subscription(body: SubscriptionBody, user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)):
    return subscriptions_service.create_subscription(db, user["id"], body.model_dump())


@router.put("/{subscription_id}")
def update_subscription(subscription_id: int, body: SubscriptionBody,
                        user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)):
    return subscriptions_service.update_subscription(db, subscription_id, user["id"], body.model_dump())


@router.delete("/{subscription_id}")
def delete_subscription(subscription_id: int, user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)):
    subscriptions_service.delete_subscription(db, subscription_id, user["id"])
    return {"message": "Abonnement supprimé"}
