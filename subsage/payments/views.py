import logging
from typing import Any, Dict, Optional

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from subsage import config
from subsage.errors import NotFoundError, ValidationError
from subsage.utils.deps import get_checkout_provider, get_db, get_reconciliation_engine
from subsage.utils.rate_limit import optional_rate_limit
from subsage.utils.security import require_user
from . import service as payments_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payments", tags=["Payments"])
api_router = APIRouter(prefix="/api/v1/transactions", tags=["Transactions API"])


# module subsage.payments.views
@router.get("")
def payments_page(
    subscription_id: Optional[int] = None,
    payment: Optional[str] = None,
    user: Dict[str, Any] = Depends(require_user),
    db=Depends(get_db),
) -> Dict[str, Any]:
    """
    Page paiements (JSON): abonnements de l'utilisateur avec days_remaining / allow_extend.
    - subscription_id (optionnel): restreint à un abonnement
    - payment (optionnel): statut renvoyé par la redirection de /payments/success
    """
    subscriptions = payments_service.list_payable_subscriptions(db, user["id"], subscription_id)
    return {
        "subscriptions": subscriptions,
        "stripe_public_key": config.STRIPE_PUBLIC_KEY,
        "payment": payment,
    }


@router.post("/create-checkout-session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(
    request: Request,
    user: Dict[str, Any] = Depends(require_user),
    db=Depends(get_db),
    provider=Depends(get_checkout_provider),
):
    """
    Crée une session Checkout Stripe pour un abonnement de l'utilisateur authentifié.
    - Entrée JSON: { "subscription_name", "amount", "subscription_id", "payment_type" }
    - Montant en unités majeures, converti en unités mineures (refus si <= 0 ou non numérique)
    - Règles normal/extend vérifiées avant tout appel Stripe
    - Réponse: {id, url}
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Corps JSON invalide")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Corps JSON invalide")

    success_url = f"{config.BASE_URL}/payments/success?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{config.BASE_URL}/payments/"

    session = payments_service.create_checkout_for_subscription(
        db=db,
        provider=provider,
        user_id=user["id"],
        subscription_id=body.get("subscription_id"),
        amount=body.get("amount"),
        payment_type=body.get("payment_type"),
        subscription_name=body.get("subscription_name"),
        currency=config.CHECKOUT_CURRENCY,
        success_url=success_url,
        cancel_url=cancel_url,
    )
    return JSONResponse({"id": session.get("id"), "url": session.get("url")})


@router.get("/success")
def payment_success(session_id: Optional[str] = None, engine=Depends(get_reconciliation_engine)):
    """
    Retour Stripe après paiement: réconcilie la session puis redirige (303).
    Rechargeable sans effet de bord: un paiement déjà enregistré n'est pas réappliqué.
    """
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id manquant")

    result = engine.reconcile(session_id)
    if not result.paid:
        return RedirectResponse(url="/payments?payment=failed", status_code=HTTP_303_SEE_OTHER)
    subscription_id = (result.subscription or {}).get("id")
    return RedirectResponse(
        url=f"/payments?subscription_id={subscription_id}&payment=success",
        status_code=HTTP_303_SEE_OTHER,
    )


@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request, engine=Depends(get_reconciliation_engine),
                         provider=Depends(get_checkout_provider)):
    """
    Webhook Stripe: consomme checkout.session.completed via le même moteur de réconciliation.
    - Signature: Stripe-Signature + STRIPE_WEBHOOK_SECRET
    - Réponses: {"status": "ok", "created": bool} ou {"status": "ignored"}
    - Session inexploitable (abonnement supprimé, métadonnées invalides): 200 {"status": "rejected"}
    - Erreurs: 400 si signature/payload invalide; 5xx (Stripe réessaie) si base ou Stripe indisponible
    """
    payload = await request.body()
    try:
        event = provider.parse_event(payload, request.headers.get("Stripe-Signature"))
    except (ValueError, stripe.SignatureVerificationError):
        logger.warning("payments.webhook payload ou signature invalide")
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook payload")

    if (event or {}).get("type") != "checkout.session.completed":
        return JSONResponse({"status": "ignored"})

    session_id = ((event.get("data") or {}).get("object") or {}).get("id")
    try:
        result = engine.reconcile(session_id)
    except (NotFoundError, ValidationError) as exc:
        # erreurs définitives, pas de renvoi Stripe
        logger.warning("payments.webhook session=%s rejetée: %s", session_id, exc.message)
        return JSONResponse({"status": "rejected"})
    logger.info(
        "payments.webhook session=%s paid=%s created=%s", session_id, result.paid, result.created
    )
    return JSONResponse({"status": "ok" if result.paid else "not_paid", "created": result.created})


@api_router.get("")
def list_transactions(user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)) -> Dict[str, Any]:
    """Historique des paiements (avec détails payeur), du plus récent au plus ancien."""
    return {"transactions": payments_service.get_transaction_history(db, user["id"])}


@api_router.get("/{payment_id}")
def get_transaction(payment_id: str, user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)) -> Dict[str, Any]:
    return payments_service.get_transaction(db, payment_id, user["id"])
