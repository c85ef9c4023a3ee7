"""Validation of inbound unsubscribe links.

All checks are pure: they depend only on their arguments, and the caller
supplies "now" and the mailing list snapshot. They run in a fixed order and
the first failure raises.
"""

import re
from collections.abc import Container
from datetime import UTC, datetime, timedelta

from unsubscribe_service.core.errors import (
    InvalidEmailFormat,
    InvalidTimestamp,
    LinkExpired,
    NotSubscribed,
)

EMAIL_PATTERN = re.compile(r"[a-zA-Z]+\.[a-zA-Z]+@gmail\.com")

DEFAULT_MAX_LINK_AGE = timedelta(hours=48)

# Non-ISO layouts accepted for the link timestamp
_FALLBACK_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S %z",
)


def validate_email_format(email: str | None) -> str:
    """Require the ``first.last@gmail.com`` shape."""
    if not email or not email.strip() or not EMAIL_PATTERN.fullmatch(email):
        raise InvalidEmailFormat()
    return email


def parse_link_timestamp(raw: str | None) -> datetime:
    """Parse the link-issue timestamp into an aware UTC datetime.

    Naive values are taken to be UTC. An offset that moves the instant out of
    the representable range raises LinkExpired.
    """
    if not raw or not raw.strip():
        raise InvalidTimestamp()
    value = raw.strip()

    parsed = _parse_iso(value)
    if parsed is None:
        for fmt in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        raise InvalidTimestamp()

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError as exc:
        # Offset pushes the instant past year 1 or 9999; never inside the window
        raise LinkExpired() from exc


def _parse_iso(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    # An unencoded "+" in a query string arrives as a space: "...T10:00:00 02:00"
    head, sep, tail = value.rpartition(" ")
    if sep and "T" in head and ":" in tail:
        try:
            return datetime.fromisoformat(f"{head}+{tail}")
        except ValueError:
            return None
    return None


def check_link_freshness(
    link_time: datetime,
    now: datetime,
    max_age: timedelta = DEFAULT_MAX_LINK_AGE,
) -> None:
    """Reject links issued in the future or more than ``max_age`` ago.

    Both cases raise the same error so clock skew is not observable.
    """
    if link_time > now or now - link_time > max_age:
        raise LinkExpired()


def check_membership(email: str, mailing_list: Container[str]) -> None:
    if email not in mailing_list:
        raise NotSubscribed()


def validate_unsubscribe_request(
    email: str | None,
    raw_timestamp: str | None,
    mailing_list: Container[str],
    *,
    now: datetime | None = None,
    max_age: timedelta = DEFAULT_MAX_LINK_AGE,
) -> str:
    """Run shape, freshness and membership checks in order.

    Returns the validated email.
    """
    valid_email = validate_email_format(email)
    link_time = parse_link_timestamp(raw_timestamp)
    check_link_freshness(link_time, now or datetime.now(UTC), max_age)
    check_membership(valid_email, mailing_list)
    return valid_email
