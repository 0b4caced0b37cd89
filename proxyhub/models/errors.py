from __future__ import annotations


class HubError(Exception):
    status_code: int = 500
    error_type: str = "server_error"
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, param: str | None = None, code: str | None = None):
        self.message = message or self.message
        self.param = param
        self.code = code
        super().__init__(self.message)


class AuthenticationError(HubError):
    status_code = 401
    error_type = "authentication_error"
    message = "Invalid master key"


class InvalidRequestError(HubError):
    status_code = 400
    error_type = "invalid_request_error"
    message = "Invalid request"


class PathNotFoundError(HubError):
    status_code = 404
    error_type = "path_not_found"
    message = "Path not found"


class ServiceUnavailableError(HubError):
    status_code = 503
    error_type = "service_unavailable"
    message = "Service unavailable"
