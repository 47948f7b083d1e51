"""
Custom exceptions for the CMS backend
"""

class CMSError(Exception):
    """Base exception for all CMS errors"""
    def __init__(self, message: str = "", status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

class ControllerError(CMSError):
    """Raised when a controller cannot carry out a storage operation"""
    pass

class ConflictError(CMSError):
    """Raised when a write would overwrite an existing key"""
    def __init__(self, message: str = ""):
        super().__init__(message, status_code=409)

class OperationNotSupported(CMSError):
    """Raised when a model's controller does not implement an operation"""
    def __init__(self, message: str = ""):
        super().__init__(message, status_code=404)

class InvalidCursor(CMSError, ValueError):
    """Raised when a pagination cursor cannot be decoded"""
    def __init__(self, message: str = ""):
        super().__init__(message, status_code=400)

class UpstreamError(CMSError):
    """Raised when an external API keeps failing"""
    pass

class EmailDeliveryError(CMSError):
    """Raised when the email API rejects a message"""
    pass

class InvalidInput(CMSError, ValueError):
    """Raised when a query parameter fails validation"""
    def __init__(self, message: str = ""):
        super().__init__(message, status_code=400)
