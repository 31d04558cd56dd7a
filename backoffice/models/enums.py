"""Enum definitions for users and devices."""

from enum import Enum


class UserRole(str, Enum):
    """Role assigned to a back-office user."""

    SUPER_ADMIN = "super_admin"
    ACCOUNT_ADMIN = "account_admin"
    PROPERTY_MANAGER = "property_manager"
    TENANT = "tenant"


class DeviceStatus(str, Enum):
    """Operational status shared by meters and submeters."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
