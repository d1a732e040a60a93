# module subsage.utils.dates
"""
Horodatages stockés en ISO 8601 (date seule ou date + heure).
Les calculs se font en datetime naïf UTC; format_like conserve la forme d'origine (décalage compris).
"""
from datetime import date, datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value) -> datetime:
    """
    Parse une valeur stockée ('2024-01-10', '2024-01-10T08:00:00', '...Z', datetime, date).
    Soulève ValueError si la valeur est vide ou illisible.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        raw = str(value or "").strip()
        if not raw:
            raise ValueError("date vide")
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        dt = datetime.fromisoformat(raw)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def is_date_only(value) -> bool:
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    return len(str(value or "").strip()) == 10


def _stored_tzinfo(value):
    if isinstance(value, datetime):
        return value.tzinfo
    raw = str(value or "").strip()
    if raw.endswith("Z"):
        return timezone.utc
    try:
        return datetime.fromisoformat(raw).tzinfo
    except ValueError:
        return None


def format_like(original, dt: datetime) -> str:
    """
    Sérialise dt (naïf UTC) au même format que la valeur d'origine:
    date seule, ISO naïf, ou ISO avec le même décalage ('Z' conservé).
    """
    if is_date_only(original):
        return dt.date().isoformat()
    tz = _stored_tzinfo(original)
    if tz is None:
        return dt.isoformat()
    out = dt.replace(tzinfo=timezone.utc).astimezone(tz).isoformat()
    if str(original).strip().endswith("Z") and out.endswith("+00:00"):
        out = out[:-6] + "Z"
    return out
