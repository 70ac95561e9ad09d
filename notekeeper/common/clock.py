import threading
from datetime import datetime, timedelta, timezone

_lock = threading.Lock()
_last = None


def creation_timestamp() -> datetime:
    """Horodatage UTC strictement croissant dans le process.

    Deux enregistrements créés à la suite ne partagent jamais la même date,
    l'ordre de création reste donc l'ordre de tri.
    """
    global _last
    now = datetime.now(timezone.utc)
    with _lock:
        if _last is not None and now <= _last:
            now = _last + timedelta(microseconds=1)
        _last = now
    return now


def as_naive_utc(value: datetime) -> datetime:
    # SQLite relit les DateTime sans tzinfo
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
