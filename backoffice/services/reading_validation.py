"""Write-time validation for meter readings.

Every create and update passes through ``validate_reading`` before anything
reaches the database. Validation is pure: it returns a normalised
``ValidatedReading`` or raises one of ``InvalidTarget``, ``InvalidValue``.
Range queries use ``validate_range`` which raises ``InvalidRange``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from backoffice.domain.dates import as_utc
from backoffice.domain.exceptions import InvalidRange, InvalidValue
from backoffice.domain.target import DeviceTarget, target_from_ids

MAX_FRACTIONAL_DIGITS = 6


@dataclass(frozen=True)
class ReadingCandidate:
    """Unvalidated reading fields in their wire shape."""

    meter_id: UUID | None
    submeter_id: UUID | None
    reading_value: Any
    reading_date: datetime | None
    consumption: Any = None
    entered_by_user_id: UUID | None = None


@dataclass(frozen=True)
class ValidatedReading:
    """Reading fields that satisfy every write rule."""

    target: DeviceTarget
    reading_value: Decimal
    reading_date: datetime
    consumption: Decimal | None = None
    entered_by_user_id: UUID | None = None


def _as_decimal(field: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidValue(field, value, "must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidValue(field, value, "must be a number") from None


def check_measurement(field: str, value: Any) -> Decimal:
    """Check a reading or consumption value: finite, non-negative, at most six decimals."""
    if value is None:
        raise InvalidValue(field, value, "is required")

    number = _as_decimal(field, value)
    if not number.is_finite():
        raise InvalidValue(field, value, "must be finite")
    if number < 0:
        raise InvalidValue(field, value, "must not be negative")

    # Trailing zeros are not significant: 1.5000000 has one fractional digit
    exponent = number.normalize().as_tuple().exponent
    if exponent < -MAX_FRACTIONAL_DIGITS:
        raise InvalidValue(
            field, value, f"must have at most {MAX_FRACTIONAL_DIGITS} fractional digits"
        )
    return number


def validate_reading(candidate: ReadingCandidate) -> ValidatedReading:
    """Validate a reading about to be written."""
    target = target_from_ids(candidate.meter_id, candidate.submeter_id)
    reading_value = check_measurement("reading_value", candidate.reading_value)

    consumption = None
    if candidate.consumption is not None:
        consumption = check_measurement("consumption", candidate.consumption)

    if candidate.reading_date is None:
        raise InvalidValue("reading_date", None, "is required")

    return ValidatedReading(
        target=target,
        reading_value=reading_value,
        reading_date=as_utc(candidate.reading_date),
        consumption=consumption,
        entered_by_user_id=candidate.entered_by_user_id,
    )


def merge_update(existing: Any, patch: dict[str, Any]) -> ReadingCandidate:
    """Overlay an update onto a stored reading.

    Keys present in ``patch`` win, including explicit ``None`` which clears the
    field. The result is what the record would look like after the update.
    """

    def pick(name: str) -> Any:
        return patch[name] if name in patch else getattr(existing, name)

    return ReadingCandidate(
        meter_id=pick("meter_id"),
        submeter_id=pick("submeter_id"),
        reading_value=pick("reading_value"),
        reading_date=pick("reading_date"),
        consumption=pick("consumption"),
        entered_by_user_id=pick("entered_by_user_id"),
    )


def validate_range(start_date: datetime, end_date: datetime) -> tuple[datetime, datetime]:
    """Require ``start_date`` strictly before ``end_date``; return both in UTC."""
    start, end = as_utc(start_date), as_utc(end_date)
    if start >= end:
        raise InvalidRange(start_date, end_date)
    return start, end
