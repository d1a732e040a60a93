# module subsage.users.views
from typing import Any, Dict

from fastapi import APIRouter, Depends

from subsage.utils.deps import get_db
from subsage.utils.security import require_user
from .service import get_user_dashboard

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard API"])


@router.get("")
def dashboard(user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)) -> Dict[str, Any]:
    """Tableau de bord de l'utilisateur authentifié (abonnements/mois, paiements/mois, payeurs distincts)."""
    return get_user_dashboard(db, user)
