"""Database models."""

from backoffice.models.account import Account
from backoffice.models.meter import Meter, Submeter
from backoffice.models.meter_reading import MeterReading
from backoffice.models.property import Property, Unit
from backoffice.models.user import User
from backoffice.models.utility_type import UtilityType

__all__ = [
    "Account",
    "Meter",
    "MeterReading",
    "Property",
    "Submeter",
    "Unit",
    "User",
    "UtilityType",
]
