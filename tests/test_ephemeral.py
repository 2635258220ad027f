"""Tests for the ephemeral delegation message."""

from datetime import datetime, timezone

import pytest

from authchain.chain.ephemeral import (
    from_epoch_ms,
    get_ephemeral_message,
    parse_ephemeral_payload,
    parse_expiration,
    to_epoch_ms,
    to_iso_string,
)
from authchain.chain.exceptions import PayloadParseError, StructuralError


ADDRESS = "0x08bdc29abFB11C6a1BB201b7EF3c41273aEA23EA"


class TestEphemeralMessage:
    """Message construction."""

    def test_message_format(self):
        """Three lines: title, address, ISO expiration with milliseconds."""
        expiration = datetime(2020, 3, 16, 20, 38, 9, 875000, tzinfo=timezone.utc)
        assert get_ephemeral_message(ADDRESS, expiration) == (
            "Decentraland Login\n"
            f"Ephemeral address: {ADDRESS}\n"
            "Expiration: 2020-03-16T20:38:09.875Z"
        )

    def test_iso_string_converts_to_utc(self):
        """Offsets are normalized to Z."""
        dt = datetime.fromisoformat("2020-01-20T19:57:11.334-03:00")
        assert to_iso_string(dt) == "2020-01-20T22:57:11.334Z"

    def test_epoch_ms_conversion(self):
        """Epoch milliseconds are exact."""
        assert to_epoch_ms(from_epoch_ms(1584391089875)) == 1584391089875
        assert to_iso_string(from_epoch_ms(1584391089875)) == "2020-03-16T20:38:09.875Z"


class TestParseEphemeralPayload:
    """Payload parsing."""

    def test_parses_address_and_expiration(self):
        payload = f"Decentraland Login\nEphemeral address: {ADDRESS}\nExpiration: 2020-03-16T20:38:09.875Z"
        parsed = parse_ephemeral_payload(payload)
        assert parsed.ephemeral_address == ADDRESS
        assert parsed.expiration_ms == 1584391089875
        assert parsed.message == payload

    def test_crlf_and_lf_parse_identically(self):
        """Carriage returns are ignored."""
        lf = f"Decentraland Login\nEphemeral address: {ADDRESS}\nExpiration: 2020-03-16T20:38:09.875Z"
        crlf = lf.replace("\n", "\r\n")
        assert parse_ephemeral_payload(crlf) == parse_ephemeral_payload(lf)

    def test_title_is_not_checked(self):
        """Any first line is accepted."""
        payload = f"Some App\nEphemeral address: {ADDRESS}\nExpiration: 2020-03-16T20:38:09.875Z"
        assert parse_ephemeral_payload(payload).ephemeral_address == ADDRESS

    def test_too_few_lines(self):
        with pytest.raises(PayloadParseError):
            parse_ephemeral_payload(f"Decentraland Login\nEphemeral address: {ADDRESS}")

    def test_missing_address_prefix(self):
        with pytest.raises(PayloadParseError):
            parse_ephemeral_payload(f"Decentraland Login\nAddress: {ADDRESS}\nExpiration: 2020-03-16T20:38:09.875Z")

    def test_missing_expiration_prefix(self):
        with pytest.raises(PayloadParseError):
            parse_ephemeral_payload(f"Decentraland Login\nEphemeral address: {ADDRESS}\nExpires: 2020-03-16")

    def test_empty_address(self):
        with pytest.raises(PayloadParseError):
            parse_ephemeral_payload("Decentraland Login\nEphemeral address: \nExpiration: 2020-03-16T20:38:09.875Z")

    def test_parse_error_is_structural(self):
        """Parse failures are reported as structural errors."""
        with pytest.raises(StructuralError):
            parse_ephemeral_payload("QmEntity")


class TestParseExpiration:
    """Expiration timestamp formats."""

    def test_iso_with_z(self):
        assert parse_expiration("2020-01-20T22:57:11.334Z") == 1579561031334

    def test_iso_with_offset(self):
        assert parse_expiration("2020-01-20T19:57:11.334-03:00") == 1579561031334

    @pytest.mark.parametrize("value, expected", [
        ("2020-01-20T22:57:11Z", 1579561031000),
        ("2020-01-20T22:57:11.3Z", 1579561031300),
        ("2020-01-20T22:57:11.33Z", 1579561031330),
        ("2020-01-20T22:57:11.3341Z", 1579561031334),
        ("2020-01-20T22:57:11.334999999Z", 1579561031334),
        ("2020-01-20T19:57:11.3-03:00", 1579561031300),
    ])
    def test_iso_fraction_lengths(self, value, expected):
        """Any number of fractional second digits is accepted."""
        assert parse_expiration(value) == expected

    def test_javascript_date_string(self):
        """Date.toString() form produced by some contract wallet signers."""
        expected = to_epoch_ms(datetime(7112, 8, 6, 13, 14, 51, tzinfo=timezone.utc))
        assert parse_expiration("Tue Aug 06 7112 10:14:51 GMT-0300 (Argentina Standard Time)") == expected

    def test_javascript_date_string_utc(self):
        js = parse_expiration("Tue Jan 21 2020 16:34:32 GMT+0000 (Coordinated Universal Time)")
        assert js == parse_expiration("2020-01-21T16:34:32Z")

    def test_invalid_expiration(self):
        with pytest.raises(PayloadParseError):
            parse_expiration("tomorrow")

    def test_invalid_month(self):
        with pytest.raises(PayloadParseError):
            parse_expiration("Tue Foo 21 2020 16:34:32 GMT+0000")
