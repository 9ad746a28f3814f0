"""Error taxonomy for the comparison pipeline.

Every error carries a stable ``code`` used in server-side logs. Clients never
see the code: the HTTP layer maps all of them to the same generic 500 body.
"""
from typing import Optional


class ComparisonError(Exception):
    code = "COMPARISON_FAILED"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_log_dict(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InputDecodingError(ComparisonError):
    """The request fields could not be decoded (e.g. malformed platforms)."""
    code = "INPUT_DECODING"


class InvalidVendorsError(InputDecodingError):
    """The vendor argument is not a list of names and the policy rejects it."""
    code = "INVALID_VENDORS"


class ModelInvocationError(ComparisonError):
    """The external model could not be reached or refused the call."""
    code = "MODEL_INVOCATION"


class ModelTimeoutError(ModelInvocationError):
    code = "MODEL_TIMEOUT"


class RequestCancelledError(ModelInvocationError):
    code = "REQUEST_CANCELLED"


class ResponseParseError(ComparisonError):
    """The model answer is not valid JSON after fence stripping."""
    code = "RESPONSE_PARSE"


class SchemaValidationError(ResponseParseError):
    """The model answer is JSON but does not match the comparison schema."""
    code = "SCHEMA_VALIDATION"
