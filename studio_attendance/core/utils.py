# studio_attendance/core/utils.py
import json
import logging
import math
from datetime import date, datetime, timezone
from typing import Any, List

logger = logging.getLogger(__name__)


def parse_group_ids(value: Any) -> List[str]:
    """Accepts a list, a JSON array string or a comma-separated string."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [v.strip() for v in value if isinstance(v, str) and v.strip()]
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except ValueError:
                logger.warning(f"Failed to parse groupIds: {text!r}")
                return []
            return parse_group_ids(parsed) if isinstance(parsed, list) else []
        return [part.strip() for part in text.split(",") if part.strip()]
    return []


def percentage(part: int, total: int) -> int:
    # Half-up, so 2/8 -> 25 and 1/8 -> 13.
    if total <= 0:
        return 0
    return int(math.floor(100 * part / total + 0.5))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime) -> str:
    """``2025-01-31T17:45:03.120Z`` - sorts lexicographically in time order."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_iso_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


POLISH_ALPHABET = "aąbcćdeęfghijklłmnńoópqrsśtuvwxyzźż"
_POLISH_ORDER = {ch: i for i, ch in enumerate(POLISH_ALPHABET)}


def polish_sort_key(text: str):
    """Collation key following the Polish alphabet, case-insensitive."""
    lowered = (text or "").lower()
    return (
        tuple(_POLISH_ORDER.get(ch, len(POLISH_ALPHABET) + ord(ch)) for ch in lowered),
        text or "",
    )
