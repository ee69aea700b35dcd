from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reqbuilder.request import Request


class RequestError(Exception):
    """Base error for building or sending a request"""

    def __init__(self, message: str, request: "Request | None" = None):
        super().__init__(message)
        self.message = message
        self.request = request


class TransportError(RequestError):
    """The HTTP client failed to complete the round trip"""


class InvalidRequestError(RequestError):
    """The method or URL cannot be turned into an HTTP request"""


class SerializationError(RequestError):
    """A body value could not be encoded"""


__all__ = [
    "RequestError",
    "TransportError",
    "InvalidRequestError",
    "SerializationError",
]
