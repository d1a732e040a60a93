"""
Schéma relationnel (SQLAlchemy Core).
Les tables sont déclarées ici pour que create_all reste portable SQLite/PostgreSQL;
les requêtes applicatives passent par Database (SQL paramétré).
"""
import logging
from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)

logger = logging.getLogger(__name__)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("username", String(150), nullable=False, unique=True),
    Column("password", String(255), nullable=False),
    Column("reset_token", String(64), nullable=True),
    Column("reset_token_expiry", Integer, nullable=True),  # epoch ms
    Column("created_at", String(32), server_default=func.current_timestamp()),
)

subscriptions = Table(
    "subscriptions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("type", String(100), nullable=False),
    Column("start", String(32), nullable=False),
    Column("expiry", String(32), nullable=False),
    Column("amount", Float, nullable=False),
    Column("status", String(20), nullable=False, server_default="Active"),
    Column("created_at", String(32), server_default=func.current_timestamp()),
)

# subscription_id sans FK: l'historique de paiement survit à la suppression de l'abonnement
payments = Table(
    "payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("payment_id", String(255), nullable=False, unique=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("subscription_id", Integer, nullable=False, index=True),
    Column("subscription_name", String(255)),
    Column("amount", Float, nullable=False),
    Column("currency", String(10)),
    Column("status", String(20), nullable=False),
    Column("payment_type", String(20), nullable=False),
    Column("payment_method", String(255)),
    Column("latest_charge", String(255)),
    Column("payment_intent_id", String(255)),
    Column("created_at", String(32), server_default=func.current_timestamp()),
)

payer_details = Table(
    "payer_details",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("payment_id", String(255), ForeignKey("payments.payment_id"), nullable=False, unique=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("payer_name", String(255)),
    Column("payer_email", String(255)),
    Column("address_country", String(10)),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("subscription_id", Integer, nullable=False),
    Column("subscription_name", String(255)),
    Column("subscription_type", String(100)),
    Column("expiry", String(32)),
    Column("message", Text),
    Column("notified_at", String(32)),
)

sent_emails = Table(
    "sent_emails",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sender_email", String(255)),
    Column("receiver_email", String(255)),
    Column("subject", String(255)),
    Column("message", Text),
    Column("sent_at", String(32)),
)

contacts = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255)),
    Column("email", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("created_at", String(32), server_default=func.current_timestamp()),
)

reviews = Table(
    "reviews",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False),
    Column("name", String(255)),
    Column("email", String(255), nullable=False),
    Column("rating", Integer, nullable=False),
    Column("review_text", Text, nullable=False),
    Column("created_at", String(32), server_default=func.current_timestamp()),
)

TABLE_NAMES = [t.name for t in metadata.sorted_tables]


def init_schema(engine) -> None:
    """Crée les tables manquantes (idempotent)."""
    metadata.create_all(bind=engine)
    logger.info("Schéma initialisé: %s", ", ".join(TABLE_NAMES))
