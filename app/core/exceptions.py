from typing import Optional, Any

class OrchestratorError(Exception):
    """
    Base exception for the conversation orchestrator.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class InvalidEventError(OrchestratorError):
    """
    Raised when an inbound event envelope cannot be understood at all.
    """
    def __init__(self, message: str = "Invalid event payload", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_EVENT", status_code=400, details=details)

class StorageError(OrchestratorError):
    """
    Raised when the document store rejects or fails an operation.
    """
    def __init__(self, message: str = "Storage operation failed", details: Optional[Any] = None):
        super().__init__(message, code="STORAGE_ERROR", status_code=503, details=details)

class EventProcessingError(OrchestratorError):
    """
    Raised when an event handler fails on its primary path.
    The transport is expected to redeliver the event.
    """
    def __init__(self, message: str = "Event processing failed", details: Optional[Any] = None):
        super().__init__(message, code="EVENT_PROCESSING_FAILED", status_code=500, details=details)
