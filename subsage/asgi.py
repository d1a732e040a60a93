"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

En production, un process manager (ex: gunicorn -k uvicorn.workers.UvicornWorker) importe
`subsage.asgi:app`; toute la configuration est centralisée dans subsage.app_setup.factory.
"""
from subsage.app_setup.factory import create_app

app = create_app()
