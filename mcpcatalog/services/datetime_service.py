"""Timestamp helpers for store writes and backup object keys."""

from __future__ import annotations

from datetime import datetime, timezone

import pendulum

# Store column format: YYYY-MM-DD HH:MM:SS.ffffff±TZ
STRICT_FORMAT = "%Y-%m-%d %H:%M:%S.%f%z"


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def parse_datetime(value: str | datetime, default_tz: str = "UTC") -> datetime:
    """Timezone-aware datetime from an S3 ``LastModified`` value or a stored timestamp.

    Naive input is placed in ``default_tz``. Strings that parse to something
    other than a point in time, such as an ISO 8601 duration, raise ValueError.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=pendulum.timezone(default_tz))  # type: ignore[arg-type]
        return value

    parsed = pendulum.parse(value.strip(), tz=default_tz, strict=False)
    if not isinstance(parsed, pendulum.DateTime):
        msg = f"{value!r} is not a timestamp"
        raise ValueError(msg)
    return parsed


def format_datetime(dt: datetime) -> str:
    return _aware(dt).strftime(STRICT_FORMAT)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    """ISO 8601 text for JSON payloads; naive values are taken as UTC."""
    return _aware(dt).isoformat()


def key_timestamp(dt: datetime) -> str:
    """ISO timestamp safe for object keys: ``:`` and ``.`` become ``-``."""
    utc = _aware(dt).astimezone(timezone.utc)
    iso = utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")
