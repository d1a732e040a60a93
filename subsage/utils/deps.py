"""
Dépendances FastAPI vers les ressources construites dans le lifespan (app.state).
Les tests remplacent ces dépendances via app.dependency_overrides.
"""
from fastapi import Depends, HTTPException, Request

from subsage.payments.reconciliation import ReconciliationEngine


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail=f"Ressource {name} non initialisée")
    return value


def get_db(request: Request):
    return _state(request, "db")


def get_checkout_provider(request: Request):
    return _state(request, "checkout_provider")


def get_mailer(request: Request):
    return _state(request, "mailer")


def get_dispatcher(request: Request):
    return _state(request, "dispatcher")


def get_reconciliation_engine(db=Depends(get_db), provider=Depends(get_checkout_provider)) -> ReconciliationEngine:
    return ReconciliationEngine(db, provider)
