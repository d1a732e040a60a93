"""
Registre central des routers (pages paiements, API v1, health).
"""
from fastapi import FastAPI
from subsage.auth.views import api_router as auth_api_router
from subsage.subscriptions import views as subscriptions_views
from subsage.payments import views as payments_views
from subsage.notifications import views as notifications_views
from subsage.users import views as users_views
from subsage.contact import views as contact_views
from subsage.health.router import router as health_router


def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    L’ordre n’a pas d’impact sauf conflits de chemins (évités par préfixes).
    """
    # Paiements (pages + retour Stripe + webhook)
    app.include_router(payments_views.router)
    # API v1
    app.include_router(auth_api_router)
    app.include_router(subscriptions_views.router)
    app.include_router(payments_views.api_router)
    app.include_router(notifications_views.router)
    app.include_router(users_views.router)
    app.include_router(contact_views.router)
    # Health & monitoring
    app.include_router(health_router)
