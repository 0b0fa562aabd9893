from __future__ import annotations

import re
from datetime import date, datetime, timezone

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def now_utc_iso() -> str:
    """Return an RFC 3339/ISO timestamp in UTC with seconds precision."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def today_iso() -> str:
    return date.today().isoformat()


def is_iso_date(value: str | None) -> bool:
    """True for zero-padded ``YYYY-MM-DD`` strings naming a real calendar day."""
    text = str(value or "")
    if not _ISO_DATE_RE.match(text):
        return False
    try:
        date.fromisoformat(text)
    except ValueError:
        return False
    return True
