from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity} not found: {entity_id}",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class StorageUnavailableError(AppException):
    """Raised by key-value stores when a read or write cannot be completed."""
    def __init__(self, message: str = "Storage is unavailable", key: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="STORAGE_UNAVAILABLE",
            details={"key": key} if key else None
        )

class MalformedRecordError(AppException):
    def __init__(self, record_type: str, record_id: Optional[str], reason: str):
        super().__init__(
            message=f"Malformed {record_type} record {record_id or '<no id>'}: {reason}",
            status_code=422,
            error_code="MALFORMED_RECORD",
            details={"record_type": record_type, "id": record_id}
        )

class InvalidScheduleRequestError(AppException):
    def __init__(self, message: str = "A valid scheduled instant is required"):
        super().__init__(
            message=message,
            status_code=422,
            error_code="INVALID_SCHEDULE_REQUEST"
        )
