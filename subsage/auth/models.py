from typing import Optional, Dict, Any


class AuthResponse:
    def __init__(
        self,
        success: bool,
        user: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
        error: Optional[str] = None,
    ):
        self.success = success
        self.user = user
        self.access_token = access_token
        self.error = error


def build_user_dict(row: Dict[str, Any]) -> Dict[str, Any]:
    """Vue publique d'un utilisateur (jamais le hash ni le token de reset)."""
    return {
        "id": row.get("id"),
        "email": row.get("email"),
        "username": row.get("username"),
    }
