import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import httpx


@dataclass(frozen=True)
class Param:
    key: str
    value: str


def new_param(key: str, value: str) -> Param:
    return Param(key, value)


def first_value(params: list[Param], key: str) -> str:
    for param in params:
        if param.key == key:
            return param.value
    return ""


class ResponseBody:
    """Caller-owned stream over a response body.

    Closing it releases the underlying httpx response, and the client too
    when the client was created for this single call.
    """

    def __init__(self, response: httpx.Response, client: httpx.Client | None = None):
        self._response = response
        self._client = client

    @property
    def closed(self) -> bool:
        return self._response.is_closed and self._client is None

    def read(self) -> bytes:
        return self._response.read()

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        yield from self._response.iter_bytes(chunk_size=chunk_size)

    def close(self) -> None:
        self._response.close()
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ResponseBody":
        return self

    def __exit__(self, *_args: Any) -> None:
        self.close()


@dataclass(frozen=True)
class Response:
    status_code: int
    duration: timedelta
    body: ResponseBody | None = None
    headers: list[Param] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def get_header(self, key: str) -> str:
        key = key.lower()
        for header in self.headers:
            if header.key.lower() == key:
                return header.value
        return ""

    def content(self) -> bytes:
        if self.body is None:
            return b""
        return self.body.read()

    def text(self) -> str:
        return self.content().decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.content())
