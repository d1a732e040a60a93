# subsage.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

DATA_DIR = BASE_DIR / "data"

"""
Configuration centrale de l'application.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (base de données, Stripe, SMTP), sécurité cookies, CORS/hosts
- Fournit l'URL publique utilisée pour les redirections (checkout, reset mot de passe)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")

# Base de données: SQLite locale par défaut, PostgreSQL en production
# - postgres:// (Render/Heroku) est normalisé en postgresql+psycopg2://
DATABASE_URL = _clean_env(os.getenv("DATABASE_URL") or "") or f"sqlite:///{DATA_DIR / 'subsage.db'}"
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = "postgresql+psycopg2://" + DATABASE_URL[len("postgres://"):]
DATABASE_ECHO = _flag("DATABASE_ECHO")

# Sessions / JWT
JWT_SECRET = _clean_env(os.getenv("JWT_SECRET") or "") or "dev-jwt-secret-change-me"
JWT_ALGORITHM = "HS256"
JWT_TTL_SECONDS = int(os.getenv("JWT_TTL_SECONDS", "3600"))
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "replace_me_with_a_long_random_secret")

# Cookies / Sécurité
COOKIE_SECURE = _flag("COOKIE_SECURE")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

BASE_URL = (_clean_env(os.getenv("BASE_URL") or "") or "http://localhost:8000").rstrip("/")

# Stripe: clés publiques/privées et secret webhook
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
CHECKOUT_CURRENCY = (_clean_env(os.getenv("CHECKOUT_CURRENCY") or "") or "inr").lower()

# SMTP: envoi des notifications d'expiration et des liens de reset
MAIL_SERVER = _clean_env(os.getenv("MAIL_SERVER") or "")
MAIL_PORT = int(os.getenv("MAIL_PORT") or 587)
MAIL_USE_TLS = _flag("MAIL_USE_TLS", "true")
MAIL_USERNAME = _clean_env(os.getenv("MAIL_USERNAME") or "")
MAIL_PASSWORD = _clean_env(os.getenv("MAIL_PASSWORD") or "")
MAIL_DEFAULT_SENDER = _clean_env(os.getenv("MAIL_DEFAULT_SENDER") or "") or MAIL_USERNAME or "noreply@subsage.local"
