from collections.abc import Mapping
from typing import IO, Protocol

import httpx

BodySource = IO[bytes] | bytes
FormFields = Mapping[str, str]


class Sender(Protocol):
    """Anything that executes a materialized request, e.g. ``httpx.Client``."""

    def send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response: ...
