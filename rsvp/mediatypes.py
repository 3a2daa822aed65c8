"""
Supported media types and the registry that maps them to headers, path
extensions and extension renderers.
"""

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

PLAINTEXT = "text/plain"
HTML = "text/html"
CSV = "text/csv"
BYTES = "application/octet-stream"
JSON = "application/json"
XML = "application/xml"
GOB = "application/vnd.golang.gob"

SUPPORTED_MEDIA_TYPES = (PLAINTEXT, HTML, CSV, BYTES, JSON, XML, GOB)

DEFAULT_CONTENT_TYPES = {
    PLAINTEXT: "text/plain; charset=utf-8",
    HTML: "text/html; charset=utf-8",
    CSV: "text/csv; charset=utf-8",
    BYTES: BYTES,
    JSON: JSON,
    XML: XML,
    GOB: GOB,
}

DEFAULT_EXTENSIONS = {
    "txt": PLAINTEXT,
    "html": HTML,
    "htm": HTML,
    "csv": CSV,
    "json": JSON,
    "xml": XML,
    "bin": BYTES,
    "gob": GOB,
}


@dataclass(frozen=True)
class ExtensionHandler:
    """
    A renderer added to the dispatcher at startup.

    Attributes:
        claims: Predicate deciding whether this handler renders a media type
        render: Serializer called with the payload and a binary sink
    """

    claims: Callable[[str], bool]
    render: Callable[[Any, BinaryIO], None]


class RegistryFrozenError(RuntimeError):
    """Raised when registering into a registry that is already serving."""

    pass


class MediaTypeRegistry:
    """
    Media type lookups shared read-only by every request.

    Populate it at startup, e.g. with ``rsvp.msgpack_support.install``;
    adapters call ``freeze()`` once they begin serving.
    """

    def __init__(self,
                 content_types: Optional[Dict[str, str]] = None,
                 extensions: Optional[Dict[str, str]] = None):
        self._content_types: Dict[str, str] = dict(content_types or {})
        self._extensions: Dict[str, str] = dict(extensions or {})
        self._extended_media_types: Tuple[str, ...] = ()
        self._handlers: Tuple[ExtensionHandler, ...] = ()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def extended_media_types(self) -> Tuple[str, ...]:
        """Media types offered for every payload after the built-in offers."""
        return self._extended_media_types

    @property
    def extension_handlers(self) -> Tuple[ExtensionHandler, ...]:
        return self._handlers

    def freeze(self) -> "MediaTypeRegistry":
        self._frozen = True
        return self

    def _check_writable(self):
        if self._frozen:
            raise RegistryFrozenError("Media types must be registered before serving requests")

    def is_registered(self, media_type: str) -> bool:
        return media_type in self._content_types

    def content_type(self, media_type: str) -> Optional[str]:
        """Return the Content-Type header value for a media type."""
        return self._content_types.get(media_type)

    def proposal_for_extension(self, extension: str) -> Optional[str]:
        """Return the media type a URL path extension asks for, if any."""
        return self._extensions.get(extension)

    def register(self,
                 media_type: str,
                 handler: Optional[ExtensionHandler] = None,
                 content_type: Optional[str] = None,
                 extensions: Iterable[str] = (),
                 offer: bool = True) -> None:
        """
        Register an extension media type.

        Args:
            media_type: The media type, e.g. ``application/vnd.msgpack``
            handler: Renderer for the media type
            content_type: Content-Type header value, defaults to the media type
            extensions: URL path extensions (without dot) that propose it
            offer: Whether every payload offers this media type
        """
        self._check_writable()
        self._content_types[media_type] = content_type or media_type
        for extension in extensions:
            self._extensions[extension.lower()] = media_type
        if handler is not None:
            self._handlers = self._handlers + (handler,)
        if offer and media_type not in self._extended_media_types:
            self._extended_media_types = self._extended_media_types + (media_type,)
        logger.debug(f"Registered media type {media_type}")

    def copy(self) -> "MediaTypeRegistry":
        """Return an unfrozen copy that can be extended independently."""
        registry = MediaTypeRegistry(self._content_types, self._extensions)
        registry._extended_media_types = self._extended_media_types
        registry._handlers = self._handlers
        return registry


def default_registry() -> MediaTypeRegistry:
    """Build a registry holding only the always-supported media types."""
    return MediaTypeRegistry(DEFAULT_CONTENT_TYPES, DEFAULT_EXTENSIONS)


def content_type_media_type(content_type: str) -> str:
    """Extract the media type from a Content-Type header value."""
    return content_type.split(";", 1)[0].strip().lower()
