import json
import pytest
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient

from subsage.app_setup.factory import create_app
from subsage.errors import SessionNotFound
from subsage.infra.db import Database
from subsage.notifications.dispatcher import NotificationDispatcher
from subsage.utils.security import hash_password, require_user

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeCheckoutProvider:
    """Remplace StripeCheckoutProvider: sessions/intents en mémoire, appels enregistrés."""

    def __init__(self):
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.intents: Dict[str, Dict[str, Any]] = {}
        self.created: List[Dict[str, Any]] = []
        self.retrieve_calls = 0
        self.reject_signature = False

    def create_session(self, **kwargs) -> Dict[str, Any]:
        self.created.append(kwargs)
        session_id = f"cs_test_{len(self.created)}"
        return {"id": session_id, "url": f"https://checkout.stripe.test/{session_id}"}

    def retrieve_session(self, session_id: str) -> Dict[str, Any]:
        self.retrieve_calls += 1
        if session_id not in self.sessions:
            raise SessionNotFound()
        return self.sessions[session_id]

    def retrieve_payment_intent(self, payment_intent_id: str) -> Dict[str, Any]:
        return self.intents[payment_intent_id]

    def parse_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        if self.reject_signature or not sig_header:
            raise ValueError("bad signature")
        return json.loads(payload)

    def add_paid_session(self, session_id: str, subscription_id: int, payment_type: str = "normal",
                         amount: int = 49999, intent_status: str = "succeeded") -> str:
        pi = f"pi_{session_id}"
        self.sessions[session_id] = {
            "id": session_id,
            "payment_intent": pi,
            "metadata": {"subscription_id": str(subscription_id), "payment_type": payment_type},
            "customer_details": {"name": "Alice Payer", "email": "payer@example.com", "address": {"country": "IN"}},
        }
        self.intents[pi] = {
            "id": pi,
            "status": intent_status,
            "amount": amount,
            "amount_received": amount if intent_status == "succeeded" else 0,
            "currency": "inr",
            "payment_method": "pm_card_visa",
            "latest_charge": f"ch_{session_id}",
        }
        return pi


class RecordingMailer:
    def __init__(self, fail: bool = False):
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail
        self.default_sender = "noreply@subsage.test"
        self.configured = True

    def send(self, to: str, subject: str, body: str, sender: Optional[str] = None) -> None:
        if self.fail:
            raise OSError("SMTP indisponible")
        self.sent.append({"to": to, "subject": subject, "body": body, "sender": sender})


def create_user(db, username: str = "alice", email: str = "alice@example.com", password: str = "secret123") -> Dict[str, Any]:
    db.execute(
        "INSERT INTO users (email, username, password) VALUES (:email, :username, :password)",
        {"email": email, "username": username, "password": hash_password(password)},
    )
    return db.fetch_one("SELECT id, email, username FROM users WHERE username = :u", {"u": username})


def create_subscription(db, user_id: int, name: str = "Netflix", start: str = "2024-01-01",
                        expiry: str = "2024-02-01", amount: float = 499.99, type_: str = "Streaming") -> Dict[str, Any]:
    with db.transaction() as tx:
        tx.execute(
            "INSERT INTO subscriptions (user_id, name, type, start, expiry, amount) "
            "VALUES (:user_id, :name, :type, :start, :expiry, :amount)",
            {"user_id": user_id, "name": name, "type": type_, "start": start, "expiry": expiry, "amount": amount},
        )
        return tx.fetch_one("SELECT * FROM subscriptions ORDER BY id DESC LIMIT 1")


def count_rows(db, table: str) -> int:
    return db.fetch_one(f"SELECT COUNT(*) AS n FROM {table}")["n"]


@pytest.fixture()
def db() -> Generator[Database, None, None]:
    database = Database("sqlite://")
    database.init_schema()
    yield database
    database.dispose()


@pytest.fixture()
def provider() -> FakeCheckoutProvider:
    return FakeCheckoutProvider()


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def user(db) -> Dict[str, Any]:
    return create_user(db)


@pytest.fixture()
def app(db, provider, mailer, monkeypatch):
    monkeypatch.setenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    application = create_app()
    application.state.db = db
    application.state.checkout_provider = provider
    application.state.mailer = mailer
    application.state.dispatcher = NotificationDispatcher(db, mailer, mailer.default_sender)
    return application


@pytest.fixture()
def anon_client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture()
def client(app, user) -> Generator[TestClient, None, None]:
    app.dependency_overrides[require_user] = lambda: {"id": user["id"], "username": user["username"]}
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(require_user, None)


@pytest.fixture()
def make_subscription(db, user):
    def _make(**kwargs) -> Dict[str, Any]:
        kwargs.setdefault("user_id", user["id"])
        return create_subscription(db, **kwargs)
    return _make


@pytest.fixture()
def make_user(db):
    return lambda **kwargs: create_user(db, **kwargs)


@pytest.fixture()
def row_count(db):
    return lambda table: count_rows(db, table)


@pytest.fixture()
def failing_mailer() -> RecordingMailer:
    return RecordingMailer(fail=True)
