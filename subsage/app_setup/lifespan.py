"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Construit une seule fois la passerelle BD (schéma créé si absent), le client Stripe,
  le client SMTP et le dispatcher de notifications, rangés dans app.state.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Variables d’environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l’init échoue
"""
import os
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from subsage import config
from subsage.infra.db import Database
from subsage.infra.mailer import SmtpMailer
from subsage.notifications.dispatcher import NotificationDispatcher
from subsage.payments.stripe_client import StripeCheckoutProvider

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except ImportError:
    FakeRedis = None


def init_resources(app: FastAPI) -> None:
    """
    Range les ressources dans app.state; celles déjà présentes (injectées par les tests) sont conservées.
    """
    state = app.state
    if getattr(state, "db", None) is None:
        config.DATA_DIR.mkdir(parents=True, exist_ok=True)
        state.db = Database(config.DATABASE_URL, echo=config.DATABASE_ECHO)
        state.db.init_schema()
    if getattr(state, "checkout_provider", None) is None:
        state.checkout_provider = StripeCheckoutProvider(config.STRIPE_SECRET_KEY, config.STRIPE_WEBHOOK_SECRET)
    if getattr(state, "mailer", None) is None:
        state.mailer = SmtpMailer(
            host=config.MAIL_SERVER,
            port=config.MAIL_PORT,
            username=config.MAIL_USERNAME,
            password=config.MAIL_PASSWORD,
            use_tls=config.MAIL_USE_TLS,
            default_sender=config.MAIL_DEFAULT_SENDER,
        )
    if getattr(state, "dispatcher", None) is None:
        state.dispatcher = NotificationDispatcher(state.db, state.mailer, config.MAIL_DEFAULT_SENDER)


async def init_rate_limiter(app: FastAPI, logger: logging.Logger) -> bool:
    """
    Configure le rate limiting et gère les fallbacks.
    Retourne True si FastAPILimiter a été initialisé (à fermer à l'arrêt).
    """
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        return False
    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            if not FakeRedis:
                raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
        return True
    except (RuntimeError, OSError, aioredis.RedisError) as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")
        else:
            app.state.rate_limit_enabled = False
            logger.warning(f"Rate limiting disabled due to init error: {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("uvicorn.error")
    owns_db = getattr(app.state, "db", None) is None
    init_resources(app)
    logger.info("Base de données prête (%s)", app.state.db.dialect)
    limiter_ready = await init_rate_limiter(app, logger)
    try:
        yield
    finally:
        if limiter_ready:
            await FastAPILimiter.close()
        if owns_db:
            app.state.db.dispose()
