"""Fluent HTTP request builder on top of httpx."""

from .configs import BuilderConfig, builder_config
from .errors import InvalidRequestError, RequestError, SerializationError, TransportError
from .ext_logging import init_logging
from .models import Param, Response, ResponseBody, new_param
from .request import Request
from .types import BodySource, FormFields, Sender

__all__ = [
    "Request",
    "Response",
    "ResponseBody",
    "Param",
    "new_param",
    "RequestError",
    "TransportError",
    "InvalidRequestError",
    "SerializationError",
    "BuilderConfig",
    "builder_config",
    "init_logging",
    "BodySource",
    "FormFields",
    "Sender",
]
