"""Taxonomie des erreurs du suivi / Tracking error taxonomy.

Chaque erreur porte un code stable en plus du message lisible.
Each error carries a stable code in addition to the readable message.
"""

import enum


class ErrorCode(str, enum.Enum):
    """Codes d'erreur stables / Stable error codes."""
    INVALID_FIX = "INVALID_FIX"
    NO_ACTIVE_ASSIGNMENT = "NO_ACTIVE_ASSIGNMENT"
    MULTIPLE_ACTIVE_ASSIGNMENTS = "MULTIPLE_ACTIVE_ASSIGNMENTS"
    ASSIGNMENT_VEHICLE_MISMATCH = "ASSIGNMENT_VEHICLE_MISMATCH"
    ASSIGNMENT_MISMATCH = "ASSIGNMENT_MISMATCH"
    TRACKING_WINDOW_CLOSED = "TRACKING_WINDOW_CLOSED"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    DRIVER_LOCATION_UNAVAILABLE = "DRIVER_LOCATION_UNAVAILABLE"
    ALERT_NOT_FOUND = "ALERT_NOT_FOUND"
    ALERT_ALREADY_RESOLVED = "ALERT_ALREADY_RESOLVED"
    INVALID_QUERY = "INVALID_QUERY"


class ServiceError(Exception):
    """Erreur metier typee / Typed domain error."""

    code: ErrorCode
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidFix(ServiceError):
    code = ErrorCode.INVALID_FIX
    status_code = 422


class InvalidQuery(ServiceError):
    code = ErrorCode.INVALID_QUERY
    status_code = 422


class StorageUnavailable(ServiceError):
    """Stockage indisponible, reessayable / Store unavailable, retryable."""
    code = ErrorCode.STORAGE_UNAVAILABLE
    status_code = 503


class DriverLocationUnavailable(ServiceError):
    code = ErrorCode.DRIVER_LOCATION_UNAVAILABLE
    status_code = 404


class AlertNotFound(ServiceError):
    code = ErrorCode.ALERT_NOT_FOUND
    status_code = 404


class AlertAlreadyResolved(ServiceError):
    code = ErrorCode.ALERT_ALREADY_RESOLVED
    status_code = 409
