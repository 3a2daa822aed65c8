"""
HTTP response construction with server-driven content negotiation.

A handler returns a single Body; rsvp picks its wire format from the
request's Accept header, the URL path extension and any Content-Type the
handler committed to, so that browsers, API clients and CLIs each get a
suitable representation of the same endpoint.
"""

from http import HTTPStatus

from .accept import Proposal, parse_accept, parse_proposal
from .adapters import ASGIAdapter, create_asgi_app
from .config import Config
from .exceptions import (
    EncoderError,
    HtmlTemplateMissError,
    PayloadShapeError,
    ProposalError,
    RsvpError,
    SinkError,
    TemplateMissError,
    TextTemplateMissError,
    UnhandledMediaTypeError,
)
from .mediatypes import ExtensionHandler, MediaTypeRegistry, default_registry
from .models import (
    Body,
    CsvMarshaler,
    HTTPMethod,
    Html,
    MultiValueHeaders,
    Request,
    Response,
    ResponseWriter,
    blank,
    data,
)
from .negotiation import choose_media_type, media_types
from .response import BufferedResponse, write, write_handler, write_response
from .template_helpers import html_templates, text_templates

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = [
    "Body",
    "blank",
    "data",
    "Html",
    "CsvMarshaler",
    "Config",
    "Request",
    "Response",
    "ResponseWriter",
    "MultiValueHeaders",
    "HTTPMethod",
    "HTTPStatus",
    "Proposal",
    "parse_accept",
    "parse_proposal",
    "media_types",
    "choose_media_type",
    "MediaTypeRegistry",
    "ExtensionHandler",
    "default_registry",
    "html_templates",
    "text_templates",
    "write",
    "write_handler",
    "write_response",
    "BufferedResponse",
    "ASGIAdapter",
    "create_asgi_app",
    "RsvpError",
    "ProposalError",
    "TemplateMissError",
    "HtmlTemplateMissError",
    "TextTemplateMissError",
    "PayloadShapeError",
    "EncoderError",
    "UnhandledMediaTypeError",
    "SinkError",
]
