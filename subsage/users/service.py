"""
Tableau de bord utilisateur: agrégats par mois (abonnements, paiements) et payeurs distincts.
L'agrégation est faite en Python pour rester portable SQLite/PostgreSQL
(dates stockées en texte ISO, pas de fonction de formatage SQL commune).
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional
import logging

from subsage.utils.dates import parse_timestamp
from . import repository

logger = logging.getLogger(__name__)


def _month(value: Any) -> Optional[str]:
    try:
        return f"{parse_timestamp(value).month:02d}"
    except ValueError:
        return None


def _subscription_counts(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    counts: Dict[tuple, int] = defaultdict(int)
    for row in rows:
        month = _month(row.get("start"))
        if month is None:
            continue
        counts[(month, row.get("name"))] += 1
    return [{"month": m, "name": n, "count": c} for (m, n), c in sorted(counts.items(), key=lambda kv: (kv[0][0], str(kv[0][1])))]


def _payment_sums(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    sums: Dict[tuple, float] = defaultdict(float)
    for row in rows:
        month = _month(row.get("created_at"))
        if month is None:
            continue
        sums[(month, row.get("subscription_name"))] += float(row.get("amount") or 0)
    return [
        {"month": m, "subscription_name": n, "amount": round(a, 2)}
        for (m, n), a in sorted(sums.items(), key=lambda kv: (kv[0][0], str(kv[0][1])))
    ]


def get_user_dashboard(db, user: Dict[str, Any]) -> Dict[str, Any]:
    user_id = user["id"]
    return {
        "username": user.get("username"),
        "subscription_data": _subscription_counts(repository.list_subscription_starts(db, user_id)),
        "payment_data": _payment_sums(repository.list_payment_amounts(db, user_id)),
        "unique_payers": repository.count_unique_payers(db, user_id),
    }
