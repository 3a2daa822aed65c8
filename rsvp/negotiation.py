"""
Server-driven content negotiation.

``media_types`` enumerates what a Body can be rendered as, in server
preference order; ``choose_media_type`` picks the first offer matching the
path extension or, failing that, the client's Accept proposals.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional

from markupsafe import Markup

from . import mediatypes
from .accept import WILDCARD, parse_accept
from .mediatypes import MediaTypeRegistry

if TYPE_CHECKING:
    from .config import Config
    from .models import Body

logger = logging.getLogger(__name__)

BYTE_TYPES = (bytes, bytearray, memoryview)


def media_types(body: "Body", config: "Config") -> Iterator[str]:
    """
    Yield the media types ``body`` offers, in server preference order.

    The order follows this pattern:
      1. A predetermined media type, alone
      2. Type-specific (Html marker, string, bytes)
      3. Generic structured (JSON, XML)
      4. Interface implementations (CSV)
      5. Binary fallback (gob), then registered extensions
      6. Template-based (HTML template, text template)
    """
    from .models import CsvMarshaler

    if body.predetermined_media_type:
        logger.debug(f"Overriding media types with {body.predetermined_media_type}")
        yield body.predetermined_media_type
        return

    payload = body.data
    if isinstance(payload, Markup):
        yield mediatypes.HTML
    elif isinstance(payload, str):
        yield mediatypes.PLAINTEXT
    elif isinstance(payload, BYTE_TYPES):
        yield mediatypes.BYTES

    yield mediatypes.JSON
    yield mediatypes.XML

    if isinstance(payload, CsvMarshaler):
        yield mediatypes.CSV

    yield mediatypes.GOB

    yield from config.registry.extended_media_types

    if body.template_name:
        if config.html_template is not None:
            yield mediatypes.HTML
        if config.text_template is not None:
            yield mediatypes.PLAINTEXT


def split_media_type(media_type: str):
    supertype, _, subtype = media_type.partition("/")
    return supertype, subtype


def media_types_equal(offer: str, proposal: str) -> bool:
    """
    Whether ``offer`` satisfies ``proposal``.

    ``*/*`` matches anything; ``type/*`` matches any subtype of ``type``.
    Both arguments must be well-formed ``type/subtype`` strings.
    """
    proposed_supertype, proposed_subtype = split_media_type(proposal)
    if proposed_supertype == WILDCARD:
        return True

    offered_supertype, offered_subtype = split_media_type(offer)
    if proposed_supertype == offered_supertype:
        return proposed_subtype == WILDCARD or proposed_subtype == offered_subtype

    return False


def first_match(offers: List[str], proposal: str) -> Optional[str]:
    for offer in offers:
        if media_types_equal(offer, proposal):
            return offer
    return None


def choose_media_type(extension: str,
                      offers: List[str],
                      proposals: Iterable[str],
                      registry: MediaTypeRegistry) -> str:
    """
    Pick the media type to render.

    Args:
        extension: Lowercase path extension without dot, or empty
        offers: Media types the body offers, in server preference order
        proposals: Accepted media types, highest precedence first
        registry: Resolves the extension to a proposed media type

    Returns:
        The first matching offer, or an empty string when nothing matches
    """
    if extension:
        logger.debug(f"Checking extension: {extension!r}")
        proposal = registry.proposal_for_extension(extension)
        if proposal is None:
            return ""
        return first_match(offers, proposal) or ""

    for proposal in proposals:
        logger.debug(f"Proposing {proposal!r} against offers {offers}")
        match = first_match(offers, proposal)
        if match is not None:
            return match

    return ""


@dataclass(frozen=True)
class Negotiation:
    """The outcome of negotiating one response."""

    offers: List[str]
    media_type: str
    extension: str = ""

    @property
    def matched(self) -> bool:
        return self.media_type != ""

    @property
    def unknown_extension(self) -> bool:
        """An extension was requested but resolves to nothing this body offers."""
        return not self.matched and self.extension != ""


def negotiate(body: "Body", config: "Config", accept: str, extension: str = "") -> Negotiation:
    """Enumerate ``body``'s offers and match them against the request."""
    offers = list(media_types(body, config))
    logger.debug(f"Offers: {offers}")
    media_type = choose_media_type(extension, offers, parse_accept(accept), config.registry)
    logger.debug(f"Chosen media type: {media_type!r}")
    return Negotiation(offers=offers, media_type=media_type, extension=extension)
