"""
Core data models: the response Body a handler returns, the request metadata
negotiation reads, and the ResponseWriter handlers write metadata into.
"""

from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Protocol, Tuple, Union, runtime_checkable

from markupsafe import Markup

from .exceptions import InvalidStatusError
from .status import StatusMixin

if TYPE_CHECKING:
    from .config import Config


# A payload wrapped in Html is written as raw HTML instead of negotiating to text/plain.
Html = Markup


@runtime_checkable
class CsvMarshaler(Protocol):
    """A payload that can render itself as text/csv rows."""

    def marshal_csv(self, writer: Any) -> None:
        """Write rows with ``writer.writerow``/``writer.writerows``."""
        ...


class MultiValueHeaders:
    """
    Multi-value, case-insensitive headers container.

    HTTP headers are case-insensitive per RFC 9110, and the same header can
    appear multiple times. Lookups ignore case and ``get_all`` returns every
    value in insertion order.

    Example::

        headers = MultiValueHeaders()
        headers.add('Set-Cookie', 'session=abc')
        headers.add('Set-Cookie', 'user=123')
        headers.get('set-cookie')      # Returns 'session=abc' (first value)
        headers.get_all('set-cookie')  # Returns ['session=abc', 'user=123']
        headers['content-type'] = 'application/json'  # Sets single value
    """

    def __init__(self, data=None):
        # Dict[lowercase_name, List[Tuple[original_name, value]]]
        self._headers: Dict[str, List[Tuple[str, str]]] = {}

        if data is not None:
            if isinstance(data, MultiValueHeaders):
                self._headers = {k: list(v) for k, v in data._headers.items()}
            elif isinstance(data, dict):
                for key, value in data.items():
                    if isinstance(value, list):
                        for v in value:
                            self.add(key, v)
                    else:
                        self.add(key, value)
            elif isinstance(data, (list, tuple)):
                for key, value in data:
                    self.add(key, value)

    def add(self, name: str, value: str) -> None:
        """Add a header value, allowing multiple values for the same name."""
        self._headers.setdefault(name.lower(), []).append((name, value))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first value for a header name."""
        if not isinstance(name, str):
            return default

        values = self._headers.get(name.lower())
        if values:
            return values[0][1]
        return default

    def get_all(self, name: str) -> List[str]:
        """Get all values for a header name."""
        return [value for _, value in self._headers.get(name.lower(), [])]

    def set(self, name: str, value: str) -> None:
        """Set a header to a single value, replacing any existing values."""
        self._headers[name.lower()] = [(name, value)]

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def __getitem__(self, name: str) -> str:
        if not isinstance(name, str):
            raise KeyError(name)

        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return name.lower() in self._headers

    def __delitem__(self, name: str) -> None:
        if not isinstance(name, str):
            raise KeyError(name)

        name_lower = name.lower()
        if name_lower not in self._headers:
            raise KeyError(name)
        del self._headers[name_lower]

    def __iter__(self) -> Iterator[str]:
        """Iterate over header names (using original casing of first occurrence)."""
        for values in self._headers.values():
            if values:
                yield values[0][0]

    def items(self) -> List[Tuple[str, str]]:
        """Return (name, first_value) pairs."""
        return [(values[0][0], values[0][1]) for values in self._headers.values() if values]

    def items_all(self) -> List[Tuple[str, str]]:
        """Return all (name, value) pairs including duplicates."""
        result = []
        for values in self._headers.values():
            result.extend(values)
        return result

    def __repr__(self):
        return f"MultiValueHeaders({self.items()!r})"

    def __len__(self):
        return len(self._headers)

    def copy(self) -> "MultiValueHeaders":
        return MultiValueHeaders(self)


class HTTPMethod(str, Enum):
    """
    Common HTTP request methods.

    ``Request.method`` is a plain uppercase string, so methods outside this
    enum (PROPFIND, TRACE, ...) still reach the handler. Members compare
    equal to their string values.
    """

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"


@dataclass
class Request:
    """The request metadata that content negotiation reads."""

    method: str
    path: str
    headers: Union[Dict[str, str], MultiValueHeaders] = field(default_factory=MultiValueHeaders)
    body: Optional[bytes] = None

    def __post_init__(self):
        if isinstance(self.method, HTTPMethod):
            self.method = self.method.value
        self.method = self.method.upper()
        if not isinstance(self.headers, MultiValueHeaders):
            self.headers = MultiValueHeaders(self.headers)

    def get_accept_header(self) -> str:
        """Get the Accept header; an absent header is the empty string."""
        return self.headers.get("Accept") or ""

    def path_extension(self) -> str:
        """
        The lowercase file extension of the final path segment, without dot.

        Only GET requests select a representation by extension; for every
        other method this is empty.
        """
        if self.method != HTTPMethod.GET:
            return ""
        name = self.path.rsplit("/", 1)[-1]
        if "." not in name:
            return ""
        return name.rsplit(".", 1)[1].lower()


@dataclass(frozen=True)
class Body(StatusMixin):
    """
    The content body of an HTTP response.

    By default a Body is a 200 OK response. Use the ``status_*`` methods
    (e.g. ``status_found``) for anything else; they return a new Body.

    Attributes:
        data: The payload to render. ``None`` renders as JSON ``null``,
            not as an empty response; use ``data("")`` for an empty
            text/plain body or ``blank()`` for no body and no Content-Type.
        template_name: Template to select from ``Config.html_template`` or
            ``Config.text_template``. ``ResponseWriter.default_template_name``
            sets a default for a whole handler.
    """

    data: Any = None
    template_name: str = ""
    status_code: int = 0
    redirect_location: str = ""
    predetermined_media_type: str = ""
    blank_override: bool = False

    def __post_init__(self):
        if self.status_code != 0 and not 100 <= self.status_code <= 599:
            raise InvalidStatusError(f"Status code {self.status_code} is outside 100-599")
        if self.is_redirect and self.status_code != HTTPStatus.NOT_MODIFIED and not self.redirect_location:
            raise InvalidStatusError(f"Redirect status {self.status_code} requires a location")

    @property
    def is_blank(self) -> bool:
        """A blank body never runs a serializer and never gets a Content-Type."""
        return self.data is None and self.blank_override

    @property
    def status(self) -> int:
        return self.status_code or int(HTTPStatus.OK)

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    def media_types(self, config: "Config") -> Iterator[str]:
        """Yield, in server preference order, the media types this Body offers."""
        from .negotiation import media_types

        return media_types(self, config)


def blank() -> Body:
    """A blank response with no Content-Type. Status 200 by default."""
    return Body(blank_override=True)


def data(value: Any) -> Body:
    """Equivalent to ``Body(data=value)``.

    ``data(None)`` renders as JSON ``null``; see ``blank()`` for an empty response.
    """
    return Body(data=value)


class ResponseWriter:
    """
    Response metadata a handler may write into while it runs.

    The body itself is controlled by the Body the handler returns; this object
    only carries headers and the default template name.
    """

    def __init__(self, headers: Optional[MultiValueHeaders] = None):
        self.headers = headers if headers is not None else MultiValueHeaders()
        self._default_template_name = ""

    def default_template_name(self, name: str) -> None:
        """
        Associate a default template name with the current handler.

        It is used when the returned Body has no ``template_name`` of its own.
        """
        self._default_template_name = name

    @property
    def template_name(self) -> str:
        return self._default_template_name


@dataclass
class Response:
    """A fully rendered HTTP response."""

    status_code: int
    body: bytes = b""
    headers: MultiValueHeaders = field(default_factory=MultiValueHeaders)

    def __post_init__(self):
        if not isinstance(self.headers, MultiValueHeaders):
            self.headers = MultiValueHeaders(self.headers)

        # Do not include Content-Length for 204 responses
        if self.status_code != HTTPStatus.NO_CONTENT:
            self.headers["Content-Length"] = str(len(self.body))

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)
