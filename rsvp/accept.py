"""
Accept header parsing.

Turns a raw ``Accept`` header into media-type proposals ordered by
negotiation precedence, following RFC 9110 section 12.5.1.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

from .exceptions import (
    BadWeightError,
    EmptyMediaTypeError,
    EmptySubtypeError,
    EmptySupertypeError,
    ProposalError,
    WildSupertypeError,
)

logger = logging.getLogger(__name__)

WILDCARD = "*"
ANY_MEDIA_TYPE = "*/*"


@dataclass(frozen=True)
class Proposal:
    """A single client preference from an Accept header."""

    supertype: str
    subtype: str
    weight: float = 1.0
    params: Dict[str, List[str]] = field(default_factory=dict, compare=False)

    @property
    def media_type(self) -> str:
        return f"{self.supertype}/{self.subtype}"

    @property
    def specificity(self) -> int:
        """0 for a concrete type, 1 for ``type/*``, 2 for ``*/*``."""
        if self.supertype == WILDCARD:
            return 2
        if self.subtype == WILDCARD:
            return 1
        return 0


def split_and_strip(value: str, sep: str) -> List[str]:
    return [part.strip() for part in value.split(sep)]


def parse_pair(pair: str) -> Tuple[str, str]:
    """Split ``key=value`` into a trimmed tuple; a missing value is empty."""
    key, _, value = pair.partition("=")
    return key.strip(), value.strip()


def parse_parameters(tokens: List[str]) -> Dict[str, List[str]]:
    """Collect ``key=value`` tokens, keeping every value of repeated keys."""
    params: Dict[str, List[str]] = {}
    for token in tokens:
        if not token:
            continue
        key, value = parse_pair(token)
        params.setdefault(key, []).append(value)
    return params


def parse_weight(weight: str) -> float:
    """Parse a q value, clamping it into [0, 1]."""
    if len(weight) > 4:
        raise BadWeightError(
            "Weight is unlikely to be valid because it contains more than 4 characters"
        )
    try:
        value = float(weight)
    except ValueError as e:
        raise BadWeightError(f"Couldn't parse weight {weight!r} as a float", original_exception=e)
    if math.isnan(value):
        raise BadWeightError(f"Weight {weight!r} is not a number")
    return min(max(value, 0.0), 1.0)


def parse_proposal(value: str) -> Proposal:
    """
    Parse one comma-separated element of an Accept header.

    Args:
        value: e.g. ``"text/html;level=1;q=0.7"``

    Returns:
        The parsed Proposal

    Raises:
        ProposalError: If the element is malformed
    """
    tokens = split_and_strip(value, ";")
    media_type = tokens[0]
    if not media_type:
        raise EmptyMediaTypeError()

    parts = split_and_strip(media_type, "/")
    supertype = parts[0]
    if not supertype:
        raise EmptySupertypeError()
    if len(parts) < 2 or not parts[1]:
        raise EmptySubtypeError()
    subtype = parts[1]
    if supertype == WILDCARD and subtype != WILDCARD:
        raise WildSupertypeError()

    params = parse_parameters(tokens[1:])
    weight = 1.0
    weights = params.get("q")
    if weights:
        weight = parse_weight(weights[0])

    return Proposal(supertype=supertype, subtype=subtype, weight=weight, params=params)


def parse_proposals(accept: str) -> List[Proposal]:
    """Parse every well-formed proposal of an Accept header, in input order."""
    proposals = []
    for element in split_and_strip(accept, ","):
        try:
            proposals.append(parse_proposal(element))
        except ProposalError as e:
            logger.debug(f"Dropping malformed Accept proposal {element!r}: {e}")
    return proposals


def sort_proposals(proposals: List[Proposal]) -> List[Proposal]:
    """Order proposals by weight, then specificity; ties keep input order."""
    return sorted(proposals, key=lambda p: (-p.weight, p.specificity))


def parse_accept(accept: str) -> Iterator[str]:
    """
    Yield media types from an Accept header, highest precedence first.

    An empty header yields a single ``*/*``. Malformed proposals are dropped
    rather than failing the header.
    """
    if accept == "":
        yield ANY_MEDIA_TYPE
        return

    for proposal in sort_proposals(parse_proposals(accept)):
        yield proposal.media_type
