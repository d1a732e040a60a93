"""
Taxonomie d'erreurs applicatives.
- ValidationError (400): saisie corrigeable par l'utilisateur (montant, date, champ manquant).
- NotFoundError (404): abonnement, utilisateur ou session inconnus.
- ProviderError (500): Stripe injoignable ou réponse inexploitable.
- PersistenceError (500): base indisponible ou contrainte violée.
Les handlers FastAPI (app_setup.exceptions) traduisent ces erreurs en réponses HTTP.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Erreur interne"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Requête invalide"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Ressource introuvable"


class ProviderError(AppError):
    status_code = 500
    default_message = "Le service de paiement est indisponible, veuillez réessayer"


class PersistenceError(AppError):
    status_code = 500
    default_message = "Erreur de base de données, veuillez réessayer"


# --- Réconciliation des paiements ---

class SessionNotFound(NotFoundError):
    default_message = "Session de paiement introuvable"


class SubscriptionNotFound(NotFoundError):
    default_message = "Abonnement introuvable"


class IncompletePayment(ValidationError):
    default_message = "Session invalide ou payment_intent manquant"
