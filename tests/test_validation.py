"""Tests for the unsubscribe link validation pipeline.

Pure unit tests: every check takes "now" and the mailing list explicitly.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from unsubscribe_service.core.errors import (
    InvalidEmailFormat,
    InvalidTimestamp,
    LinkExpired,
    NotSubscribed,
    UnsubscribeError,
)
from unsubscribe_service.services.validation import (
    check_link_freshness,
    check_membership,
    parse_link_timestamp,
    validate_email_format,
    validate_unsubscribe_request,
)

NOW = datetime(2024, 10, 1, 12, 0, 0, tzinfo=UTC)
MAILING_LIST = frozenset({"jane.doe@gmail.com", "john.smith@gmail.com"})


class TestEmailFormat:
    @pytest.mark.parametrize(
        "email",
        ["jane.doe@gmail.com", "JANE.Doe@gmail.com", "a.b@gmail.com"],
    )
    def test_accepts_first_last_gmail(self, email: str) -> None:
        assert validate_email_format(email) == email

    @pytest.mark.parametrize(
        "email",
        [
            "",
            "   ",
            None,
            "jane@gmail.com",
            "jane.doe@yahoo.com",
            "jane.doe.smith@gmail.com",
            "jane1.doe@gmail.com",
            "jane.doe@gmail.com.evil",
            " jane.doe@gmail.com",
            "jane.doe@GMAIL.com",
            "jane_doe@gmail.com",
        ],
    )
    def test_rejects_other_shapes(self, email: str | None) -> None:
        with pytest.raises(InvalidEmailFormat):
            validate_email_format(email)


class TestParseTimestamp:
    def test_iso_with_z(self) -> None:
        assert parse_link_timestamp("2024-10-01T10:00:00Z") == datetime(
            2024, 10, 1, 10, 0, tzinfo=UTC
        )

    def test_naive_is_utc(self) -> None:
        assert parse_link_timestamp("2024-10-01T10:00:00") == datetime(
            2024, 10, 1, 10, 0, tzinfo=UTC
        )

    def test_offset_is_converted_to_utc(self) -> None:
        parsed = parse_link_timestamp("2024-10-01T12:00:00+02:00")
        assert parsed == datetime(2024, 10, 1, 10, 0, tzinfo=UTC)
        assert parsed.tzinfo is UTC

    def test_unencoded_plus_in_offset(self) -> None:
        """'+' decoded to a space by the query string is tolerated."""
        assert parse_link_timestamp("2024-10-01T12:00:00 02:00") == datetime(
            2024, 10, 1, 10, 0, tzinfo=UTC
        )

    def test_us_style_date_time(self) -> None:
        assert parse_link_timestamp("10/01/2024 10:00:00") == datetime(
            2024, 10, 1, 10, 0, tzinfo=UTC
        )

    def test_date_only(self) -> None:
        assert parse_link_timestamp("2024-10-01") == datetime(2024, 10, 1, tzinfo=UTC)

    @pytest.mark.parametrize(
        "raw",
        [
            "9999-12-31T23:59:59-01:00",
            "0001-01-01T00:00:00+01:00",
            "9999-12-31 23:59:59 -0100",
        ],
    )
    def test_offset_past_representable_range_is_expired(self, raw: str) -> None:
        with pytest.raises(LinkExpired):
            parse_link_timestamp(raw)

    @pytest.mark.parametrize("raw", ["", "  ", None, "yesterday", "2024-13-45T00:00:00", "1727776800"])
    def test_unparseable_raises(self, raw: str | None) -> None:
        with pytest.raises(InvalidTimestamp):
            parse_link_timestamp(raw)


class TestFreshness:
    def test_recent_link_passes(self) -> None:
        check_link_freshness(NOW - timedelta(hours=1), NOW)

    def test_exactly_now_passes(self) -> None:
        check_link_freshness(NOW, NOW)

    def test_exactly_48_hours_old_passes(self) -> None:
        check_link_freshness(NOW - timedelta(hours=48), NOW)

    def test_48_hours_and_one_second_fails(self) -> None:
        with pytest.raises(LinkExpired):
            check_link_freshness(NOW - timedelta(hours=48, seconds=1), NOW)

    def test_one_second_in_future_fails(self) -> None:
        with pytest.raises(LinkExpired):
            check_link_freshness(NOW + timedelta(seconds=1), NOW)

    def test_future_and_stale_share_message(self) -> None:
        with pytest.raises(LinkExpired) as future:
            check_link_freshness(NOW + timedelta(days=1), NOW)
        with pytest.raises(LinkExpired) as stale:
            check_link_freshness(NOW - timedelta(days=3), NOW)
        assert future.value.message == stale.value.message

    def test_custom_max_age(self) -> None:
        with pytest.raises(LinkExpired):
            check_link_freshness(NOW - timedelta(hours=2), NOW, max_age=timedelta(hours=1))

    def test_aware_link_in_other_zone(self) -> None:
        tz = timezone(timedelta(hours=-5))
        check_link_freshness(datetime(2024, 10, 1, 6, 0, tzinfo=tz), NOW)  # 11:00 UTC


class TestMembership:
    def test_member_passes(self) -> None:
        check_membership("jane.doe@gmail.com", MAILING_LIST)

    def test_non_member_fails(self) -> None:
        with pytest.raises(NotSubscribed):
            check_membership("grace.hopper@gmail.com", MAILING_LIST)

    def test_membership_is_case_sensitive(self) -> None:
        with pytest.raises(NotSubscribed):
            check_membership("Jane.Doe@gmail.com", MAILING_LIST)


class TestPipeline:
    def test_valid_request_returns_email(self) -> None:
        email = validate_unsubscribe_request(
            "jane.doe@gmail.com", "2024-10-01T11:00:00Z", MAILING_LIST, now=NOW
        )
        assert email == "jane.doe@gmail.com"

    def test_shape_checked_before_timestamp(self) -> None:
        with pytest.raises(InvalidEmailFormat):
            validate_unsubscribe_request("jane@gmail.com", "garbage", MAILING_LIST, now=NOW)

    def test_timestamp_checked_before_membership(self) -> None:
        with pytest.raises(InvalidTimestamp):
            validate_unsubscribe_request("grace.hopper@gmail.com", "garbage", MAILING_LIST, now=NOW)

    def test_freshness_checked_before_membership(self) -> None:
        with pytest.raises(LinkExpired):
            validate_unsubscribe_request(
                "grace.hopper@gmail.com", "2024-09-01T00:00:00Z", MAILING_LIST, now=NOW
            )

    def test_out_of_range_offset_is_expired(self) -> None:
        with pytest.raises(LinkExpired):
            validate_unsubscribe_request(
                "jane.doe@gmail.com", "9999-12-31T23:59:59-01:00", MAILING_LIST, now=NOW
            )

    def test_membership_checked_last(self) -> None:
        with pytest.raises(NotSubscribed):
            validate_unsubscribe_request(
                "grace.hopper@gmail.com", "2024-10-01T11:00:00Z", MAILING_LIST, now=NOW
            )

    def test_all_failures_are_recoverable_errors(self) -> None:
        for exc_type in (InvalidEmailFormat, InvalidTimestamp, LinkExpired, NotSubscribed):
            assert issubclass(exc_type, UnsubscribeError)
