from .errors import (
    AuthenticationError,
    HubError,
    InvalidRequestError,
    PathNotFoundError,
    ServiceUnavailableError,
)
from .requests import TogglePathRequest

__all__ = [
    "AuthenticationError",
    "HubError",
    "InvalidRequestError",
    "PathNotFoundError",
    "ServiceUnavailableError",
    "TogglePathRequest",
]
