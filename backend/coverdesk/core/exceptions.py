class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class SchedulingConflictError(AppError):
    """Raised when a write would break a scheduling rule the caller must resolve first."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class WorkloadCapError(SchedulingConflictError):
    """Raised when an explicit assignment would push a teacher over the weekly cap."""
    def __init__(self, teacher_id: str, total_minutes: int, cap_minutes: int):
        super().__init__(
            f"Would exceed weekly cap ({total_minutes}/{cap_minutes} minutes)",
            details={"teacher_id": teacher_id, "total_minutes": total_minutes, "cap_minutes": cap_minutes},
        )

class InvalidTransitionError(AppError):
    """Raised when a substitution request is moved to a status its current status does not allow."""
    def __init__(self, entity_type: str, current: str, target: str):
        super().__init__(
            f"Cannot move {entity_type} from '{current}' to '{target}'",
            status_code=409,
            details={"current": current, "target": target},
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class InvalidSlotError(AppError):
    """Raised when a stored slot would end up outside the teaching window after an edit."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)
