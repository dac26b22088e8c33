from typing import Optional, Any

class SmsVerificationError(Exception):
    """
    Base exception for the SMS verification service.

    Caller-facing conditions (throttled, expired, not found...) are returned
    as outcomes and never raised. Exceptions signal faults the caller cannot
    recover from by showing a message.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(self.message)

class TokenGenerationError(SmsVerificationError):
    """
    Raised when no collision-free token was found within the retry cap.
    """
    def __init__(self, message: str = "Could not generate a unique confirmation token", details: Optional[Any] = None):
        super().__init__(message, code="TOKEN_GENERATION_FAILED", details=details)

class ConcurrentUpdateError(SmsVerificationError):
    """
    Raised when an account was modified by another request between read and write.
    """
    def __init__(self, message: str = "Account was modified concurrently", details: Optional[Any] = None):
        super().__init__(message, code="CONCURRENT_UPDATE", details=details)

class ConfigurationError(SmsVerificationError):
    """
    Raised when settings are missing or inconsistent.
    """
    def __init__(self, message: str = "Invalid configuration", details: Optional[Any] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)
