"""Ephemeral delegation message.

Payload structure (three lines, "\\n" or "\\r\\n" separated):

    <human-readable title>
    Ephemeral address: <ephemeral-eth-address>
    Expiration: <timestamp>

Example:

    Decentraland Login
    Ephemeral address: 0x123456
    Expiration: 2020-01-20T22:57:11.334Z

The timestamp is ISO-8601 when produced by this library. Credentials signed
through some contract wallets carry the JavaScript Date.toString() form
instead ("Tue Aug 06 7112 10:14:51 GMT-0300 (Argentina Standard Time)"), so
both are accepted.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from authchain.core.config import EPHEMERAL_MESSAGE_TITLE
from .exceptions import PayloadParseError


EPHEMERAL_ADDRESS_PREFIX = "Ephemeral address: "
EXPIRATION_PREFIX = "Expiration: "

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_JS_DATE_RE = re.compile(
    r"^(?:[A-Za-z]{3},? )?([A-Za-z]{3}) (\d{1,2}) (\d{4}) "
    r"(\d{2}):(\d{2}):(\d{2}) GMT([+-])(\d{2}):?(\d{2})"
)

# Fractional seconds of any length; fromisoformat before 3.11 takes only 3 or 6 digits
_ISO_FRACTION_RE = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


@dataclass(frozen=True)
class EphemeralPayload:
    """Parsed ephemeral payload.

    Attributes:
        message: The payload with every carriage return removed.
        ephemeral_address: Address delegated to, as written in the payload.
        expiration_ms: Expiration instant in epoch milliseconds.
    """
    message: str
    ephemeral_address: str
    expiration_ms: int


def to_epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


def to_iso_string(dt: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def get_ephemeral_message(ephemeral_address: str, expiration: datetime) -> str:
    return (
        f"{EPHEMERAL_MESSAGE_TITLE}\n"
        f"{EPHEMERAL_ADDRESS_PREFIX}{ephemeral_address}\n"
        f"{EXPIRATION_PREFIX}{to_iso_string(expiration)}"
    )


def parse_expiration(value: str) -> int:
    """Parse an expiration timestamp to epoch milliseconds.

    Raises:
        PayloadParseError: Neither ISO-8601 nor JavaScript Date.toString().
    """
    value = value.strip()

    match = _JS_DATE_RE.match(value)
    if match:
        month, day, year, hh, mm, ss, sign, off_h, off_m = match.groups()
        if month not in _MONTHS:
            raise PayloadParseError(f"Invalid expiration: {value}")
        offset = timedelta(hours=int(off_h), minutes=int(off_m))
        if sign == "-":
            offset = -offset
        try:
            dt = datetime(
                int(year), _MONTHS.index(month) + 1, int(day),
                int(hh), int(mm), int(ss),
                tzinfo=timezone(offset),
            )
        except ValueError as e:
            raise PayloadParseError(f"Invalid expiration: {value}") from e
        return to_epoch_ms(dt)

    iso = value[:-1] + "+00:00" if value.endswith("Z") else value
    iso = _ISO_FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", iso)
    try:
        dt = datetime.fromisoformat(iso)
    except ValueError as e:
        raise PayloadParseError(f"Invalid expiration: {value}") from e
    return to_epoch_ms(dt)


def parse_ephemeral_payload(payload: str) -> EphemeralPayload:
    """Split an ephemeral payload into its address and expiration.

    Carriage returns are stripped first, so "\\r\\n" and "\\n" payloads with
    the same content parse identically.

    Raises:
        PayloadParseError: Fewer than three lines or missing line prefixes.
    """
    message = payload.replace("\r", "")
    parts = message.split("\n")
    if len(parts) < 3:
        raise PayloadParseError("Invalid ephemeral payload: expected three lines")

    if not parts[1].startswith(EPHEMERAL_ADDRESS_PREFIX):
        raise PayloadParseError("Invalid ephemeral payload: missing ephemeral address")
    if not parts[2].startswith(EXPIRATION_PREFIX):
        raise PayloadParseError("Invalid ephemeral payload: missing expiration")

    ephemeral_address = parts[1][len(EPHEMERAL_ADDRESS_PREFIX):].strip()
    if not ephemeral_address:
        raise PayloadParseError("Invalid ephemeral payload: empty ephemeral address")

    return EphemeralPayload(
        message=message,
        ephemeral_address=ephemeral_address,
        expiration_ms=parse_expiration(parts[2][len(EXPIRATION_PREFIX):]),
    )
