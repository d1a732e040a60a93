from typing import Any, Dict
import logging

from subsage.errors import PersistenceError
from subsage.infra.schema import TABLE_NAMES

logger = logging.getLogger(__name__)


def _check_table(db, table: str) -> Dict[str, Any]:
    try:
        # Nom de table issu du schéma déclaré, jamais d'une entrée utilisateur
        row = db.fetch_one(f"SELECT COUNT(*) AS n FROM {table}")
        return {"ok": True, "rows": int((row or {}).get("n") or 0)}
    except PersistenceError as e:
        return {"ok": False, "error": e.message}


def health_db_info(db) -> Dict[str, Any]:
    """Connectivité de la base et sondage de chaque table du schéma (sans lever)."""
    info: Dict[str, Any] = {
        "dialect": db.dialect,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        db.fetch_one("SELECT 1 AS ok")
        info["connect_ok"] = True
    except PersistenceError as e:
        logger.warning("health.db connexion impossible")
        info["error"] = e.message
        return info
    for t in TABLE_NAMES:
        info["tables"][t] = _check_table(db, t)
    return info
