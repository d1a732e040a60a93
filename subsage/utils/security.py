from fastapi import Request, HTTPException, Depends
from fastapi.responses import Response
from typing import Dict, Any
import time
import jwt
import bcrypt

from subsage.config import COOKIE_SECURE, JWT_SECRET, JWT_ALGORITHM, JWT_TTL_SECONDS

COOKIE_NAME = "subsage_access"

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw((password or "").encode("utf-8"), (hashed or "").encode("utf-8"))
    except ValueError:
        # Hash stocké illisible (ex: compte importé)
        return False

def create_access_token(user_id: int, username: str) -> str:
    now = int(time.time())
    payload = {"sub": str(user_id), "username": username, "iat": now, "exp": now + JWT_TTL_SECONDS}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)

def decode_access_token(token: str) -> Dict[str, Any]:
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    sub = str(payload.get("sub") or "")
    return {"id": int(sub) if sub.isdigit() else None, "username": payload.get("username")}

def set_session_cookie(response: Response, access_token: str):
    response.set_cookie(
        key=COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="Lax",
        max_age=JWT_TTL_SECONDS,
        path="/",
    )

def clear_session_cookie(response: Response):
    response.delete_cookie(COOKIE_NAME, path="/")

def get_current_user(request: Request) -> Dict[str, Any]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)

    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")

    try:
        user = decode_access_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    if not user.get("id"):
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
