"""
Domain errors raised by the service layer.

Each carries the user-facing message and the HTTP status the routes
should answer with.
"""


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class ValidationFailed(ServiceError):
    status_code = 422


class TrackingError(ServiceError):
    """The courier-tracking API could not be reached or refused the request"""
    status_code = 502
