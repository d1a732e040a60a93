"""
Accès aux données 'users' pour l'authentification (inscription, connexion, reset).
"""
from typing import Any, Dict, Optional


def get_by_username(db, username: str) -> Optional[Dict[str, Any]]:
    return db.fetch_one("SELECT * FROM users WHERE username = :username", {"username": username})


def get_by_email(db, email: str) -> Optional[Dict[str, Any]]:
    return db.fetch_one("SELECT * FROM users WHERE lower(email) = lower(:email)", {"email": email})


def get_by_id(db, user_id: int) -> Optional[Dict[str, Any]]:
    return db.fetch_one("SELECT id, email, username FROM users WHERE id = :id", {"id": user_id})


def exists_username_or_email(db, username: str, email: str) -> bool:
    row = db.fetch_one(
        "SELECT id FROM users WHERE username = :username OR lower(email) = lower(:email)",
        {"username": username, "email": email},
    )
    return row is not None


def insert_user(db, email: str, username: str, password_hash: str) -> Optional[Dict[str, Any]]:
    with db.transaction() as tx:
        tx.execute(
            "INSERT INTO users (email, username, password) VALUES (:email, :username, :password)",
            {"email": email, "username": username, "password": password_hash},
        )
        return tx.fetch_one("SELECT id, email, username FROM users WHERE username = :username", {"username": username})


def set_reset_token(db, user_id: int, token: str, expiry_ms: int) -> None:
    db.execute(
        "UPDATE users SET reset_token = :token, reset_token_expiry = :expiry WHERE id = :id",
        {"token": token, "expiry": expiry_ms, "id": user_id},
    )


def get_by_valid_reset_token(db, email: str, token: str, now_ms: int) -> Optional[Dict[str, Any]]:
    return db.fetch_one(
        "SELECT * FROM users WHERE lower(email) = lower(:email) AND reset_token = :token "
        "AND reset_token_expiry > :now_ms",
        {"email": email, "token": token, "now_ms": now_ms},
    )


def update_password_and_clear_token(db, user_id: int, password_hash: str) -> None:
    db.execute(
        "UPDATE users SET password = :password, reset_token = NULL, reset_token_expiry = NULL WHERE id = :id",
        {"password": password_hash, "id": user_id},
    )
