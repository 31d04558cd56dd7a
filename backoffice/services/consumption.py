"""Consumption between two dates for one meter or submeter."""

import logging
from datetime import datetime
from decimal import Decimal

from backoffice.domain.exceptions import InsufficientData
from backoffice.domain.target import DeviceTarget
from backoffice.repositories.meter_reading import MeterReadingRepository
from backoffice.services.reading_validation import validate_range

logger = logging.getLogger(__name__)


def calculate_consumption(
    repository: MeterReadingRepository,
    target: DeviceTarget,
    start_date: datetime,
    end_date: datetime,
) -> Decimal:
    """Compute usage for ``target`` between ``start_date`` and ``end_date``.

    Each date is resolved to its boundary reading: the latest reading taken at
    or before it. Consumption is the end boundary value minus the start
    boundary value.

    A negative result is returned as is; it usually means the meter was reset
    or replaced and callers should treat it as a data-quality signal.

    Raises:
        InvalidRange: If ``start_date`` is not strictly before ``end_date``.
        InsufficientData: If either boundary has no reading.

    """
    start, end = validate_range(start_date, end_date)

    start_reading = repository.find_boundary(target, start)
    if start_reading is None:
        raise InsufficientData(target, start)

    end_reading = repository.find_boundary(target, end)
    if end_reading is None:
        raise InsufficientData(target, end)

    consumption = end_reading.reading_value - start_reading.reading_value
    if consumption < 0:
        logger.warning(
            "Negative consumption %s for %s between %s and %s (readings %s, %s)",
            consumption,
            target,
            start,
            end,
            start_reading.id,
            end_reading.id,
        )
    return consumption
