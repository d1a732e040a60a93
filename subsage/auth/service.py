"""
Cas d'usage 'auth': inscription, connexion (JWT), mot de passe oublié / réinitialisation.
"""
import logging
import secrets
import smtplib
import time
import urllib.parse
from typing import Optional

from sqlalchemy.exc import IntegrityError

from subsage.errors import PersistenceError, ProviderError
from subsage.infra.mailer import MailerNotConfigured
from subsage.utils.security import create_access_token, hash_password, verify_password
from . import repository
from .models import AuthResponse, build_user_dict

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL_MS = 60 * 60 * 1000

RESET_SUBJECT = "SubSage - Réinitialisation du mot de passe"
RESET_BODY = (
    "Bonjour,\n\n"
    "Vous avez demandé la réinitialisation de votre mot de passe.\n"
    "Cliquez sur le lien suivant (valable une heure):\n{link}\n\n"
    "Si vous n'êtes pas à l'origine de cette demande, ignorez cet email.\n"
)


def _now_ms() -> int:
    return int(time.time() * 1000)


def signup(db, email: str, username: str, password: str) -> AuthResponse:
    """Crée le compte (hash bcrypt) et ouvre une session."""
    username = (username or "").strip()
    if repository.exists_username_or_email(db, username, email):
        return AuthResponse(False, error="Nom d'utilisateur ou email déjà utilisé")
    try:
        row = repository.insert_user(db, email, username, hash_password(password))
    except PersistenceError as e:
        # Inscription concurrente sur le même username/email
        if isinstance(e.__cause__, IntegrityError):
            return AuthResponse(False, error="Nom d'utilisateur ou email déjà utilisé")
        raise
    user = build_user_dict(row or {})
    logger.info("auth.signup user_id=%s", user.get("id"))
    return AuthResponse(True, user=user, access_token=create_access_token(user["id"], user["username"]))


def login(db, username: str, password: str) -> AuthResponse:
    row = repository.get_by_username(db, (username or "").strip())
    if not row or not verify_password(password, row.get("password")):
        return AuthResponse(False, error="Identifiants invalides")
    user = build_user_dict(row)
    return AuthResponse(True, user=user, access_token=create_access_token(user["id"], user["username"]))


def request_password_reset(db, mailer, email: str, base_url: str) -> Optional[str]:
    """
    Génère un token de reset (valable 1h) et l'envoie par email.
    Retourne le token si le compte existe, None sinon (la réponse HTTP reste générique).
    L'échec d'envoi SMTP est propagé (ProviderError): sans email, le token est inutilisable.
    """
    row = repository.get_by_email(db, email)
    if not row:
        logger.info("auth.forgot_password email inconnu")
        return None

    token = secrets.token_hex(20)
    repository.set_reset_token(db, row["id"], token, _now_ms() + RESET_TOKEN_TTL_MS)

    query = urllib.parse.urlencode({"token": token, "email": row["email"]})
    link = f"{base_url}/auth/reset-password?{query}"
    try:
        mailer.send(row["email"], RESET_SUBJECT, RESET_BODY.format(link=link))
    except (MailerNotConfigured, smtplib.SMTPException, OSError) as e:
        logger.exception("auth.forgot_password envoi email impossible user_id=%s", row["id"])
        raise ProviderError("Envoi de l'email impossible, veuillez réessayer") from e
    logger.info("auth.forgot_password token émis user_id=%s", row["id"])
    return token


def reset_password(db, email: str, token: str, new_password: str) -> bool:
    row = repository.get_by_valid_reset_token(db, email, token, _now_ms())
    if not row:
        return False
    repository.update_password_and_clear_token(db, row["id"], hash_password(new_password))
    logger.info("auth.reset_password ok user_id=%s", row["id"])
    return True
