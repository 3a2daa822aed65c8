"""
Request-level coordination: run a handler, negotiate, pick the status and
write headers and body.
"""

import dataclasses
import io
import logging
import shutil
from http import HTTPStatus
from typing import Any, BinaryIO, Callable, Optional, Protocol

from . import mediatypes
from .accept import parse_accept
from .config import Config
from .exceptions import RsvpError, SinkError
from .mediatypes import content_type_media_type
from .models import Body, MultiValueHeaders, Request, Response, ResponseWriter
from .negotiation import choose_media_type, negotiate
from .renderers import render

logger = logging.getLogger(__name__)

Handler = Callable[[ResponseWriter, Request], Body]

FAILED_TO_WRITE = "RSVP failed to write a response"


class ResponseSink(Protocol):
    """Where a rendered response goes: a status, then body bytes."""

    def write_header(self, status: int) -> None:
        ...

    def write(self, data: bytes) -> Any:
        ...


class BufferedResponse:
    """
    A ResponseSink that collects the response in memory.

    The status is written at most once; writing body bytes first implies 200.
    """

    def __init__(self, headers: Optional[MultiValueHeaders] = None):
        self.headers = headers if headers is not None else MultiValueHeaders()
        self.status_code: Optional[int] = None
        self._body = io.BytesIO()

    def write_header(self, status: int) -> None:
        if self.status_code is not None:
            logger.warning(f"Superfluous write_header({status}), status already {self.status_code}")
            return
        self.status_code = status

    def write(self, data: bytes) -> int:
        if self.status_code is None:
            self.write_header(HTTPStatus.OK)
        return self._body.write(data)

    def to_response(self) -> Response:
        return Response(
            status_code=self.status_code or HTTPStatus.OK,
            body=self._body.getvalue(),
            headers=self.headers,
        )


def _set_content_type(media_type: str, headers: MultiValueHeaders, config: Config):
    content_type = config.registry.content_type(media_type) or media_type
    logger.debug(f"Setting Content-Type to {content_type!r}")
    headers["Content-Type"] = content_type


def _missing_template(body: Body, media_type: str, config: Config) -> bool:
    if not body.template_name:
        return False
    if media_type == mediatypes.PLAINTEXT:
        return config.text_template is None
    if media_type == mediatypes.HTML:
        return config.html_template is None
    return False


def write_body(body: Body,
               sink: BinaryIO,
               config: Config,
               writer: ResponseWriter,
               request: Request) -> int:
    """
    Negotiate and render a Body the handler already returned.

    Returns:
        The status code to send
    """
    headers = writer.headers
    status = body.status

    if not body.template_name and writer.template_name:
        logger.debug(f"Using default template name: {writer.template_name}")
        body = dataclasses.replace(body, template_name=writer.template_name)

    accept = request.get_accept_header()

    content_type = headers.get("Content-Type") or ""
    if content_type:
        committed = content_type_media_type(content_type)
        if config.registry.is_registered(committed):
            logger.debug(f"Content-Type is set to a recognised type, so predetermined media type is {committed!r}")
            body = dataclasses.replace(body, predetermined_media_type=committed)

    extension = request.path_extension()
    negotiation = negotiate(body, config, accept, extension)
    media_type = negotiation.media_type

    if body.is_redirect:
        logger.debug("Redirect")
        if body.redirect_location:
            headers["Location"] = body.redirect_location

        if body.is_blank or accept == "":
            logger.debug("Redirect returning empty")
            return status

        if not media_type:
            media_type = choose_media_type("", negotiation.offers, parse_accept(""), config.registry)
            logger.debug(f"Redirect body not acceptable, falling back to {media_type!r}")

        if not content_type:
            _set_content_type(media_type, headers, config)
        render(body, media_type, sink, config)
        return status

    if not media_type:
        if negotiation.unknown_extension:
            logger.debug(f"Extension {extension!r} does not map to any offer")
            return HTTPStatus.NOT_FOUND

        logger.debug("Not acceptable. Ignoring Accept header and setting status code to 406...")
        status = HTTPStatus.NOT_ACCEPTABLE
        media_type = choose_media_type("", negotiation.offers, parse_accept(""), config.registry)
        logger.debug(f"New media type {media_type!r}")

    if _missing_template(body, media_type, config):
        logger.debug(f"No template set configured for {media_type}")
        return HTTPStatus.NOT_FOUND

    if body.redirect_location:
        headers["Location"] = body.redirect_location

    if body.is_blank:
        logger.debug("Early returning because body is blank")
        return status

    if not content_type:
        _set_content_type(media_type, headers, config)

    render(body, media_type, sink, config)
    return status


def write(sink: BinaryIO,
          config: Config,
          headers: MultiValueHeaders,
          request: Request,
          handler: Handler) -> int:
    """
    Run ``handler`` and write its response body to ``sink``.

    Headers are written into ``headers``. Nothing is written to ``sink``
    before negotiation has settled the status, which is returned for the
    caller to send.

    This is for wrapping handlers in middleware that needs to transform the
    body, e.g. compression; ``write_handler`` covers the common case.

    Raises:
        RsvpError: If the response could not be rendered
    """
    writer = ResponseWriter(headers)
    body = handler(writer, request)
    return int(write_body(body, sink, config, writer, request))


def write_response(status: int, sink: ResponseSink, body: BinaryIO) -> None:
    """Write ``status`` to ``sink`` and copy ``body`` after it."""
    logger.debug(f"Setting status to {status}")
    sink.write_header(status)
    try:
        shutil.copyfileobj(body, sink)
    except OSError as e:
        raise SinkError(f"Copying response body: {e}") from e


def internal_error_response(headers: Optional[MultiValueHeaders] = None) -> Response:
    headers = headers.copy() if headers is not None else MultiValueHeaders()
    if "Location" in headers:
        del headers["Location"]
    headers["Content-Type"] = "text/plain; charset=utf-8"
    headers["X-Content-Type-Options"] = "nosniff"
    return Response(
        status_code=int(HTTPStatus.INTERNAL_SERVER_ERROR),
        body=f"{FAILED_TO_WRITE}\n".encode("utf-8"),
        headers=headers,
    )


def write_handler(config: Config, request: Request, handler: Handler) -> Response:
    """
    Run ``handler`` and return the complete response.

    Render failures are logged and answered with 500 Internal Server Error.
    """
    sink = BufferedResponse()
    buf = io.BytesIO()
    try:
        status = write(buf, config, sink.headers, request, handler)
    except RsvpError as e:
        logger.error(f"[RSVP ERROR]: writing response: {e}")
        return internal_error_response(sink.headers)

    buf.seek(0)
    write_response(status, sink, buf)
    return sink.to_response()
