class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class StructuralError(AppError):
    """Raised when a school day, break set or slot grid is malformed."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ConflictError(AppError):
    """Raised when a teacher or room is double-booked."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class SetupIncompleteError(AppError):
    """Raised when class, site or academic year is missing from a timetable."""
    def __init__(self, missing_fields: list[str]):
        super().__init__(
            f"Missing required setup fields: {', '.join(missing_fields)}",
            status_code=400,
            details={"missing_fields": list(missing_fields)},
        )

class TimetableLockedError(AppError):
    """Raised when an active timetable is edited in place."""
    def __init__(self, timetable_id: str, version: int):
        super().__init__(
            f"Timetable {timetable_id} (version {version}) is active; create a new version to edit it",
            status_code=409,
            details={"timetable_id": timetable_id, "version": version},
        )

class ActivationError(AppError):
    """Raised when a timetable cannot be activated."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)
