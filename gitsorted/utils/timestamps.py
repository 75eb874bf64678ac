"""Timestamp helpers."""

from datetime import datetime, timezone
from itertools import takewhile


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a timestamp into a timezone-aware UTC datetime.

    Accepts ISO-8601 strings (with ``Z`` or an explicit offset) as well as the
    ``2023-11-02 17:04:05.123456 UTC`` form written by earlier releases.
    Naive values are taken to be UTC.

    Raises:
        ValueError: If the value is not a recognizable timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif not isinstance(value, str):
        raise ValueError(f"Unrecognized timestamp: {value!r}")
    else:
        text = value.strip()
        if text.endswith(" UTC"):
            text = text[: -len(" UTC")]
        elif text.endswith("Z"):
            text = text[:-1] + "+00:00"
        # fromisoformat accepts at most six fractional digits
        head, dot, tail = text.partition(".")
        if dot:
            digits = "".join(takewhile(str.isdigit, tail))
            suffix = tail[len(digits) :]
            text = f"{head}.{digits[:6]}{suffix}"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Unrecognized timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
