from fastapi import FastAPI
from fastapi.testclient import TestClient

from subsage.utils.csrf import CSRF_COOKIE_NAME, CSRF_HEADER_NAME, register_csrf_middleware
from subsage.utils.security import COOKIE_NAME


def _make_app():
    app = FastAPI()
    register_csrf_middleware(app)

    @app.get("/simple")
    def simple_get():
        return {"ok": True}

    @app.post("/simple")
    def simple_post():
        return {"ok": True}

    # Chemin exempté (webhook Stripe signé)
    @app.post("/payments/webhook")
    def webhook():
        return {"ok": True}

    return app


def test_csrf_cookie_set_on_get():
    client = TestClient(_make_app())
    assert client.get("/simple").status_code == 200
    assert CSRF_COOKIE_NAME in client.cookies


def test_post_without_session_cookie_is_allowed():
    client = TestClient(_make_app())
    assert client.post("/simple").status_code == 200


def test_post_with_session_and_no_token_is_blocked():
    client = TestClient(_make_app())
    client.cookies.set(COOKIE_NAME, "dummy-session")
    r = client.post("/simple")
    assert r.status_code == 403
    assert r.json()["detail"] == "CSRF verification failed"


def test_post_with_valid_header_is_allowed():
    client = TestClient(_make_app())
    client.get("/simple")
    token = client.cookies.get(CSRF_COOKIE_NAME)
    client.cookies.set(COOKIE_NAME, "dummy-session")
    assert client.post("/simple", headers={CSRF_HEADER_NAME: token}).status_code == 200


def test_post_with_mismatched_header_is_blocked():
    client = TestClient(_make_app())
    client.get("/simple")
    client.cookies.set(COOKIE_NAME, "dummy-session")
    assert client.post("/simple", headers={CSRF_HEADER_NAME: "forged"}).status_code == 403


def test_form_field_token_is_accepted():
    client = TestClient(_make_app())
    client.get("/simple")
    token = client.cookies.get(CSRF_COOKIE_NAME)
    client.cookies.set(COOKIE_NAME, "dummy-session")
    r = client.post("/simple", data={"csrf_token": token})
    assert r.status_code == 200


def test_webhook_is_exempt():
    client = TestClient(_make_app())
    client.cookies.set(COOKIE_NAME, "dummy-session")
    assert client.post("/payments/webhook").status_code == 200
