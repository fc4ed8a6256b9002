"""UTC datetime helpers shared by the sources and the local store."""

import re
from datetime import datetime, timezone
from typing import Optional

# Fractional seconds of any length; Firestore sends nanoseconds
_FRACTION = re.compile(r"\.(\d+)")

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Return ``dt`` as an aware UTC datetime; naive values are taken to be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp or a bare date into a UTC datetime.

    Accepted shapes include ``2025-11-04T12:00:00Z``,
    ``2025-11-04T12:00:00.123456789Z``, ``2025-11-04T12:00:00+00:00`` and
    ``2025-11-04``. Anything else yields None.
    """
    text = (iso_string or "").strip()
    if not text:
        return None

    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    # fromisoformat only takes up to six fractional digits on older interpreters
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return ensure_utc(datetime.strptime(text, "%Y-%m-%d"))
    except ValueError:
        return None


def format_timestamp(dt: datetime) -> str:
    """Fixed-width UTC text, so string order matches time order."""
    return ensure_utc(dt).strftime(STORAGE_FORMAT)
