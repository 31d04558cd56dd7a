"""Error taxonomy for the meter-reading engine.

Every failure the engine reports is a ``ReadingError`` subclass. The HTTP
layer maps each class to a status code in ``backoffice.api.errors``.
"""


class ReadingError(Exception):
    """Base class for all meter-reading engine failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidTarget(ReadingError):
    """Raised when a reading does not reference exactly one of meter or submeter."""

    def __init__(self, meter_id=None, submeter_id=None):
        self.meter_id = meter_id
        self.submeter_id = submeter_id
        if meter_id is not None and submeter_id is not None:
            message = "Exactly one of meter_id or submeter_id must be set, got both"
        else:
            message = "Exactly one of meter_id or submeter_id must be set, got neither"
        super().__init__(message)


class InvalidValue(ReadingError):
    """Raised when a reading or consumption value is negative or too precise."""

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field}={value}: {reason}")


class InvalidRange(ReadingError):
    """Raised when a date range does not start strictly before it ends."""

    def __init__(self, start_date, end_date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(f"start_date {start_date} must be earlier than end_date {end_date}")


class InvalidQuery(ReadingError):
    """Raised when listing options name a field that cannot be sorted on."""


class InsufficientData(ReadingError):
    """Raised when no reading exists at or before a consumption boundary."""

    def __init__(self, target, boundary_date):
        self.target = target
        self.boundary_date = boundary_date
        super().__init__(f"No reading for {target} at or before {boundary_date}")


class NotFound(ReadingError):
    """Raised when a record is unknown or hidden by its deleted state."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class PersistenceError(ReadingError):
    """Raised when the record store rejects a write."""

    def __init__(self, message: str, integrity: bool = False):
        self.integrity = integrity
        super().__init__(message)


class StaleRecord(PersistenceError):
    """Raised when a concurrent writer updated the record first."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} was modified concurrently")
