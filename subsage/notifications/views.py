from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from subsage.utils.deps import get_db, get_dispatcher
from subsage.utils.security import require_user
from . import service as notifications_service

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications API"])


# module subsage.notifications.views
@router.get("")
def expiring_notifications(user: Dict[str, Any] = Depends(require_user), db=Depends(get_db),
                           dispatcher=Depends(get_dispatcher)) -> Dict[str, Any]:
    """
    Détecte les abonnements expirant sous 7 jours, enregistre une notification
    et envoie un email pour chacun.
    """
    return {"notifications": notifications_service.notify_expiring(db, dispatcher, user["id"])}


@router.post("/store")
async def store_notification(request: Request, user: Dict[str, Any] = Depends(require_user),
                             db=Depends(get_db), dispatcher=Depends(get_dispatcher)) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Corps JSON invalide")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Corps JSON invalide")
    notification = notifications_service.store_notification(db, dispatcher, user["id"], body)
    return {"success": True, "message": "Notification enregistrée et email envoyé", "notification": notification}
