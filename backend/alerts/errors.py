"""
Alert Errors
Exception taxonomy shared by the store, registry, price sources and API.

Every error carries the HTTP status it maps to, so the API layer can turn
it into a response without knowing where it was raised.
"""

from typing import Any, Dict, Optional


class AlertServiceError(Exception):
    """Base class for expected failures"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "status": self.status_code}


class ValidationError(AlertServiceError):
    """Missing or malformed input, rejected before any state change"""
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class NotFoundError(AlertServiceError):
    """Unknown alert id"""
    status_code = 404


class UpstreamError(AlertServiceError):
    """Price provider outage, timeout or malformed payload"""
    status_code = 502
