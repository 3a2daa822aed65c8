"""
Exceptions raised while negotiating and rendering responses.
"""


class RsvpError(Exception):
    """Base exception for rsvp errors."""

    pass


class ProposalError(RsvpError, ValueError):
    """Raised when a single Accept proposal is malformed.

    The Accept parser catches these and drops the offending proposal;
    they are only visible when calling ``parse_proposal`` directly.
    """

    pass


class EmptyMediaTypeError(ProposalError):
    """Raised for an empty media-type."""

    def __init__(self, message="Empty media-type"):
        super().__init__(message)


class EmptySupertypeError(ProposalError):
    """Raised when the supertype of <supertype>/<subtype> is empty."""

    def __init__(self, message="Empty media supertype, i.e. <supertype>/<subtype>"):
        super().__init__(message)


class EmptySubtypeError(ProposalError):
    """Raised when the subtype of <supertype>/<subtype> is empty."""

    def __init__(self, message="Empty media subtype, i.e. <supertype>/<subtype>"):
        super().__init__(message)


class WildSupertypeError(ProposalError):
    """Raised for */<subtype> where the subtype is not a wildcard."""

    def __init__(self, message="Supertype may not be wild on its own, i.e. */<subtype>"):
        super().__init__(message)


class BadWeightError(ProposalError):
    """Raised when the q parameter cannot be used as a weight."""

    def __init__(self, message="Couldn't parse weight as a float", original_exception=None):
        self.message = message
        self.original_exception = original_exception
        super().__init__(self.message)


class TemplateMissError(RsvpError):
    """Raised when a template name is set but the template set has no such template."""

    def __init__(self, template_name: str, message: str):
        self.template_name = template_name
        super().__init__(message)


class HtmlTemplateMissError(TemplateMissError):
    """TemplateName was set, but it failed to match within the HTML template set."""

    def __init__(self, template_name: str):
        super().__init__(
            template_name,
            f"Template name {template_name!r} was set, but it failed to match within the HTML templates",
        )


class TextTemplateMissError(TemplateMissError):
    """TemplateName was set, but it failed to match within the text template set."""

    def __init__(self, template_name: str):
        super().__init__(
            template_name,
            f"Template name {template_name!r} was set, but it failed to match within the text templates",
        )


class PayloadShapeError(RsvpError, TypeError):
    """Raised when the payload cannot be rendered as the negotiated media type."""

    media_type = ""

    def __init__(self, data):
        self.data = data
        super().__init__(
            f"Trying to render data as {self.media_type} but this type is not supported: {data!r}"
        )


class NotAStringError(PayloadShapeError):
    media_type = "text/plain"


class NotHtmlError(PayloadShapeError):
    media_type = "text/html"


class NotCsvError(PayloadShapeError):
    media_type = "text/csv"


class NotBytesError(PayloadShapeError):
    media_type = "application/octet-stream"


class EncoderError(RsvpError):
    """Raised when a serializer fails to encode the payload."""

    def __init__(self, media_type: str, message: str):
        self.media_type = media_type
        super().__init__(f"Rendering data as {media_type}: {message}")


class UnhandledMediaTypeError(RsvpError):
    """Raised when negotiation chose a media type that no renderer claims."""

    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"Unhandled media type: {media_type!r}")


class SinkError(RsvpError):
    """Raised when writing to the response sink fails."""

    pass


class InvalidStatusError(RsvpError, ValueError):
    """Raised for status codes the response lifecycle cannot honour."""

    pass
