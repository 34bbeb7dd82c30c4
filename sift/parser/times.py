"""
Timestamp parsing for publish/update times found in HTML metadata.

Sites publish these in every format imaginable. We accept a strict
offset-aware ISO-8601 timestamp first, then a short list of naive
patterns that are interpreted as UTC. Anything else is "absent".
"""

from datetime import datetime, timezone
from typing import Optional

from dateutil.parser import isoparse

from ..logger import get_module_logger

logger = get_module_logger("parser.times")

# Naive fallbacks, tried in order. Date-only values land on midnight UTC.
FALLBACK_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
)


def parse_time(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a timestamp string into a UTC datetime.

    Returns None for blank or unparsable input; never raises.
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    try:
        parsed = isoparse(text)
    except (ValueError, OverflowError):
        parsed = None
    # Only offset-aware results count here; naive ones go through the
    # fallback list so the accepted shapes stay explicit.
    if parsed is not None and parsed.tzinfo is not None:
        try:
            return parsed.astimezone(timezone.utc)
        except (ValueError, OverflowError):
            # "0001-01-01T00:00:00+01:00" has no UTC equivalent
            logger.debug(f"Timestamp out of range: {text!r}")
            return None

    for fmt in FALLBACK_FORMATS:
        try:
            naive = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return naive.replace(tzinfo=timezone.utc)

    logger.debug(f"Unparsable timestamp: {text!r}")
    return None
