"""
Content renderers for the supported media types, and the dispatcher that
picks one for the negotiated media type.
"""

import base64
import csv
import dataclasses
import datetime
import io
import json
import logging
from typing import TYPE_CHECKING, Any, BinaryIO, Dict

from markupsafe import Markup

from . import mediatypes
from .exceptions import (
    EncoderError,
    HtmlTemplateMissError,
    NotAStringError,
    NotBytesError,
    NotCsvError,
    NotHtmlError,
    RsvpError,
    SinkError,
    TextTemplateMissError,
    UnhandledMediaTypeError,
)
from .gob import encode_gob
from .negotiation import BYTE_TYPES
from .template_helpers import lookup_template, render_template
from .xml_encoding import encode_xml

if TYPE_CHECKING:
    from .config import Config
    from .models import Body

logger = logging.getLogger(__name__)


class ContentRenderer:
    """Base class for content renderers."""

    def __init__(self, media_type: str):
        self.media_type = media_type

    def can_render(self, media_type: str) -> bool:
        """Check if this renderer handles the negotiated media type."""
        return media_type == self.media_type

    def render(self, body: "Body", sink: BinaryIO, config: "Config") -> None:
        """Write the body to the sink as this content type."""
        raise NotImplementedError

    def render_template(self, environment, body: "Body", sink: BinaryIO, miss_error) -> None:
        """Render the body's named template from ``environment`` into the sink."""
        try:
            template = lookup_template(environment, body.template_name)
        except Exception as e:
            raise EncoderError(self.media_type, f"loading template {body.template_name}: {e}") from e
        if template is None:
            raise miss_error(body.template_name)
        try:
            output = render_template(template, body.data)
        except Exception as e:
            raise EncoderError(self.media_type, f"template {body.template_name}: {e}") from e
        sink.write(output.encode("utf-8"))


class HTMLRenderer(ContentRenderer):
    """HTML content renderer: a named HTML template, or Html-marked data verbatim."""

    def __init__(self):
        super().__init__(mediatypes.HTML)

    def render(self, body: "Body", sink: BinaryIO, config: "Config") -> None:
        if body.template_name and config.html_template is not None:
            logger.debug("Template name is set, so expecting an HTML template...")
            self.render_template(config.html_template, body, sink, HtmlTemplateMissError)
            return

        if isinstance(body.data, Markup):
            sink.write(str(body.data).encode("utf-8"))
            return

        raise NotHtmlError(body.data)


class PlainTextRenderer(ContentRenderer):
    """Plain text content renderer: a named text template, or string data verbatim."""

    def __init__(self):
        super().__init__(mediatypes.PLAINTEXT)

    def render(self, body: "Body", sink: BinaryIO, config: "Config") -> None:
        if body.template_name and config.text_template is not None:
            logger.debug("Template name is set, so expecting a text template...")
            self.render_template(config.text_template, body, sink, TextTemplateMissError)
            return

        if isinstance(body.data, str):
            sink.write(body.data.encode("utf-8"))
            return

        raise NotAStringError(body.data)


def json_default(value: Any) -> Any:
    """Convert values the json module cannot serialize on its own."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, BYTE_TYPES):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JSONRenderer(ContentRenderer):
    """JSON content renderer. Output always ends with a newline."""

    def __init__(self):
        super().__init__(mediatypes.JSON)

    def render(self, body: "Body", sink: BinaryIO, config: "Config") -> None:
        sink.write(self.encode(body.data, config.json_prefix, config.json_indent).encode("utf-8"))

    def encode(self, data: Any, prefix: str = "", indent: str = "") -> str:
        try:
            if prefix or indent:
                text = json.dumps(
                    data, default=json_default, ensure_ascii=False, allow_nan=False,
                    indent=indent, separators=(",", ": "),
                )
                text = text.replace("\n", "\n" + prefix)
            else:
                text = json.dumps(
                    data, default=json_default, ensure_ascii=False, allow_nan=False,
                    separators=(",", ":"),
                )
        except (TypeError, ValueError) as e:
            raise EncoderError(self.media_type, str(e)) from e
        return text + "\n"


class XMLRenderer(ContentRenderer):
    """XML content renderer."""

    def __init__(self):
        super().__init__(mediatypes.XML)

    def render(self, body: "Body", sink: BinaryIO, config: "Config") -> None:
        sink.write(encode_xml(body.data, config.xml_prefix, config.xml_indent).encode("utf-8"))


class CSVRenderer(ContentRenderer):
    """CSV content renderer for payloads implementing ``marshal_csv``."""

    def __init__(self):
        super().__init__(mediatypes.CSV)

    def render(self, body: "Body", sink: BinaryIO, config: "Config") -> None:
        from .models import CsvMarshaler

        if not isinstance(body.data, CsvMarshaler):
            raise NotCsvError(body.data)

        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        try:
            body.data.marshal_csv(writer)
        except RsvpError:
            raise
        except Exception as e:
            raise EncoderError(self.media_type, str(e)) from e
        sink.write(buf.getvalue().encode("utf-8"))


class BytesRenderer(ContentRenderer):
    """Writes byte payloads verbatim."""

    def __init__(self):
        super().__init__(mediatypes.BYTES)

    def render(self, body: "Body", sink: BinaryIO, config: "Config") -> None:
        if not isinstance(body.data, BYTE_TYPES):
            raise NotBytesError(body.data)
        sink.write(bytes(body.data))


class GobRenderer(ContentRenderer):
    def __init__(self):
        super().__init__(mediatypes.GOB)

    def render(self, body: "Body", sink: BinaryIO, config: "Config") -> None:
        sink.write(encode_gob(body.data))


RENDERERS: Dict[str, ContentRenderer] = {
    renderer.media_type: renderer
    for renderer in (
        HTMLRenderer(),
        PlainTextRenderer(),
        JSONRenderer(),
        XMLRenderer(),
        CSVRenderer(),
        BytesRenderer(),
        GobRenderer(),
    )
}


def _render_extension(body: "Body", media_type: str, sink: BinaryIO, config: "Config") -> None:
    for handler in config.registry.extension_handlers:
        if not handler.claims(media_type):
            continue
        try:
            handler.render(body.data, sink)
        except RsvpError:
            raise
        except OSError:
            raise
        except Exception as e:
            raise EncoderError(media_type, f"an extension handler failed: {e}") from e
        return
    raise UnhandledMediaTypeError(media_type)


def render(body: "Body", media_type: str, sink: BinaryIO, config: "Config") -> None:
    """
    Render ``body`` as ``media_type`` into ``sink``.

    Raises:
        TemplateMissError: A template name is set but missing from its template set
        PayloadShapeError: The payload cannot take the shape ``media_type`` needs
        EncoderError: A serializer failed
        UnhandledMediaTypeError: Neither a renderer nor an extension handles ``media_type``
        SinkError: Writing to ``sink`` failed
    """
    logger.debug(f"Rendering {media_type}...")
    try:
        renderer = RENDERERS.get(media_type)
        if renderer is not None:
            renderer.render(body, sink, config)
        else:
            _render_extension(body, media_type, sink, config)
    except RsvpError:
        raise
    except OSError as e:
        raise SinkError(f"Writing {media_type} response: {e}") from e
    except Exception as e:
        raise EncoderError(media_type, str(e)) from e
