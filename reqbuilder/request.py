import io
import logging
import re
import time
from datetime import timedelta
from typing import IO, Any
from urllib.parse import parse_qsl, urlsplit, urlunsplit

import httpx

from reqbuilder.configs import builder_config
from reqbuilder.encoders import (
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    XML_CONTENT_TYPE,
    FilePart,
    encode_form,
    encode_json,
    encode_multipart,
    encode_pairs,
    encode_xml,
    multipart_content_type,
    new_boundary,
)
from reqbuilder.errors import InvalidRequestError, SerializationError, TransportError
from reqbuilder.ext_logging import trace_id_generator, trace_id_var
from reqbuilder.models import Param, Response, ResponseBody, first_value, new_param
from reqbuilder.types import BodySource, FormFields, Sender

logger = logging.getLogger(__name__)

# RFC 9110 token
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


class Request:
    """
    Mutable HTTP request builder.

    Headers and query parameters are append-only and keep their insertion
    order; the body is replaced by every ``add_body*`` call. ``send``
    materializes the request and executes it with httpx.

    When a typed body cannot be encoded the request stays usable: the
    Content-Type header is kept and the body is left as it was. Pass
    ``strict=True`` (or set ``REQBUILDER_STRICT_BODY``) to get a
    SerializationError instead.
    """

    def __init__(self, method: str, url: str, *, strict: bool | None = None):
        self._method = method
        self._url = url
        self._strict = builder_config.STRICT_BODY if strict is None else strict
        self.body: IO[bytes] | None = None
        self.headers: list[Param] = []
        self.query: list[Param] = []

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        return self._url

    def __repr__(self) -> str:
        return f"<Request {self._method} {self._url}>"

    def add_header(self, key: str, value: str) -> None:
        self.headers.append(new_param(key, value))

    def add_query(self, key: str, value: str) -> None:
        self.query.append(new_param(key, value))

    def add_body(self, body: BodySource) -> None:
        if isinstance(body, (bytes, bytearray)):
            body = io.BytesIO(body)
        self.body = body

    def add_body_string(self, body: str) -> None:
        self.add_body(body.encode("utf-8"))

    def add_body_json(self, body: Any) -> None:
        self.add_header("Content-Type", JSON_CONTENT_TYPE)
        try:
            data = encode_json(body)
        except SerializationError as e:
            self._body_failed(e)
            return
        self.add_body(data)

    def add_body_xml(self, body: Any) -> None:
        self.add_header("Content-Type", XML_CONTENT_TYPE)
        try:
            data = encode_xml(body)
        except SerializationError as e:
            self._body_failed(e)
            return
        self.add_body(data)

    def add_body_form(self, body: FormFields) -> None:
        self.add_header("Content-Type", FORM_CONTENT_TYPE)
        self.add_body(encode_form(body))

    def add_body_multipart_form(self, body: FormFields) -> None:
        boundary = new_boundary()
        self.add_header("Content-Type", multipart_content_type(boundary))
        self.add_body(encode_multipart(body, boundary))

    def add_body_multipart_form_file(
        self,
        body: FormFields,
        file_key: str,
        file_name: str,
        file_path: str,
    ) -> None:
        boundary = new_boundary()
        self.add_header("Content-Type", multipart_content_type(boundary))
        try:
            with open(file_path, "rb") as f:
                content = f.read()
        except OSError as e:
            self._body_failed(SerializationError(f"cannot read {file_path}: {e}"))
            return
        self.add_body(encode_multipart(body, boundary, FilePart(file_key, file_name, content)))

    def _body_failed(self, error: SerializationError) -> None:
        error.request = self
        if self._strict:
            raise error
        logger.warning(f"Leaving body of {self!r} unset: {error.message}")

    def get_header(self, key: str) -> str:
        return first_value(self.headers, key)

    def get_query(self, key: str) -> str:
        return first_value(self.query, key)

    def _materialize_url(self) -> str:
        try:
            parts = urlsplit(self._url)
        except ValueError as e:
            raise InvalidRequestError(f"invalid URL {self._url!r}: {e}", self) from e
        pairs = parse_qsl(parts.query, keep_blank_values=True)
        pairs.extend((query.key, query.value) for query in self.query)
        return urlunsplit(parts._replace(query=encode_pairs(pairs)))

    def _materialize_content(self) -> bytes | IO[bytes] | None:
        if isinstance(self.body, io.BytesIO):
            return self.body.getvalue()
        return self.body

    def make(self) -> httpx.Request:
        if not _METHOD_RE.match(self._method):
            raise InvalidRequestError(f"invalid method {self._method!r}", self)

        url = self._materialize_url()
        try:
            return httpx.Request(
                method=self._method,
                url=url,
                headers=[(header.key, header.value) for header in self.headers],
                content=self._materialize_content(),
            )
        except httpx.InvalidURL as e:
            raise InvalidRequestError(f"invalid URL {url!r}: {e}", self) from e
        except UnicodeEncodeError as e:
            raise InvalidRequestError(f"header is not encodable: {e}", self) from e

    def send(self, client: Sender | None = None) -> Response:
        """
        Execute the request and return the response.

        Args:
            client: Client to send with. A private ``httpx.Client`` is used
                when omitted and is closed together with the response body.

        Returns:
            Response whose body stream must be closed by the caller

        Raises:
            InvalidRequestError: the method or URL is malformed
            TransportError: the round trip failed
        """
        token = trace_id_var.set(trace_id_var.get() or trace_id_generator())
        try:
            start = time.perf_counter()
            native = self.make()

            owned: httpx.Client | None = None
            if client is None:
                client = owned = httpx.Client()

            logger.debug(f"-> {native.method} {native.url}")
            try:
                http_response = client.send(native, stream=True)
            except Exception as e:
                if owned is not None:
                    owned.close()
                if isinstance(e, httpx.TransportError):
                    raise TransportError(f"{native.method} {native.url} failed: {e}", self) from e
                raise

            duration = timedelta(seconds=time.perf_counter() - start)
            logger.debug(
                f"<- {http_response.status_code} ({int(duration.total_seconds() * 1000)}ms)"
            )

            encoding = http_response.headers.encoding
            return Response(
                status_code=http_response.status_code,
                duration=duration,
                body=ResponseBody(http_response, owned),
                headers=[
                    Param(key.decode(encoding), value.decode(encoding))
                    for key, value in http_response.headers.raw
                ],
            )
        finally:
            trace_id_var.reset(token)
