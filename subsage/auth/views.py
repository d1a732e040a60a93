from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, EmailStr, Field, field_validator

from subsage import config
from subsage.utils.deps import get_db, get_mailer
from subsage.utils.rate_limit import optional_rate_limit
from subsage.utils.security import clear_session_cookie, require_user, set_session_cookie
from subsage.utils.validators import validate_password_strength
from . import repository
from .service import (
    login as svc_login,
    signup as svc_signup,
    request_password_reset as svc_request_reset,
    reset_password as svc_reset_password,
)

# --- API Router (/api/v1/auth) ---

api_router = APIRouter(prefix="/api/v1/auth", tags=["Auth API"])


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str


class SignupRequest(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=150)
    password: str = Field(min_length=8)

    @field_validator("password")
    def password_strength(cls, v: str) -> str:
        return validate_password_strength(v)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=8)

    @field_validator("password")
    def password_strength(cls, v: str) -> str:
        return validate_password_strength(v)


@api_router.post("/signup", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def api_signup(req: SignupRequest, response: Response, db=Depends(get_db)):
    """Inscription (API JSON).
    - Force du mot de passe vérifiée par Pydantic + validate_password_strength.
    - Refus (400) si le nom d'utilisateur ou l'email existe déjà.
    - Pose le cookie de session et retourne {access_token, token_type, user}.
    """
    result = svc_signup(db, req.email, req.username, req.password)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error or "Erreur inscription")
    set_session_cookie(response, result.access_token)
    return {"access_token": result.access_token, "token_type": "bearer", "user": result.user}


@api_router.post("/login", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def api_login(req: LoginRequest, response: Response, db=Depends(get_db)):
    """Connexion (API JSON): 401 si identifiants invalides, sinon cookie de session + token."""
    result = svc_login(db, req.username, req.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error or "Identifiants invalides")
    set_session_cookie(response, result.access_token)
    return {"access_token": result.access_token, "token_type": "bearer", "user": result.user}


@api_router.post("/logout")
def api_logout(response: Response):
    clear_session_cookie(response)
    return {"message": "Déconnecté"}


@api_router.get("/me")
def api_me(user: Dict[str, Any] = Depends(require_user), db=Depends(get_db)):
    """Retourne l'utilisateur courant (id, email, username) après contrôle de session via require_user."""
    row = repository.get_by_id(db, user["id"])
    if not row:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return row


@api_router.post("/forgot-password", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def api_forgot_password(req: ForgotPasswordRequest, db=Depends(get_db), mailer=Depends(get_mailer)):
    # Réponse identique que le compte existe ou non
    svc_request_reset(db, mailer, req.email, config.BASE_URL)
    return {"message": "Si un compte existe pour cet email, un lien de réinitialisation a été envoyé"}


@api_router.post("/reset-password", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def api_reset_password(req: ResetPasswordRequest, db=Depends(get_db)):
    if not svc_reset_password(db, req.email, req.token, req.password):
        raise HTTPException(status_code=400, detail="Lien de réinitialisation invalide ou expiré")
    return {"message": "Mot de passe mis à jour"}
