class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(AppError):
    """Raised when a required field is missing or a value is outside the timetable grid."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class SlotOccupiedError(AppError):
    """Raised when a class already has a lesson in the requested slot."""
    def __init__(self, class_id: str, day: str, period_id: int, entry_id: str | None = None):
        details = {"classId": class_id, "day": day, "periodId": period_id}
        if entry_id is not None:
            details["occupiedBy"] = entry_id
        super().__init__(
            f"Class {class_id} already has a lesson on {day} period {period_id}",
            status_code=409,
            details=details,
        )


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource": resource_type, "id": resource_id},
        )


class OverwriteConfirmationRequired(AppError):
    """Raised before a destructive copy runs without the caller's confirmation."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class VersionConflictError(AppError):
    """Raised when a dataset was saved by someone else since it was loaded."""
    def __init__(self, key: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Dataset {key} changed since it was loaded",
            status_code=409,
            details={"key": key, "baseVersion": expected_version, "serverVersion": actual_version},
        )
