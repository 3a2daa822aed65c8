"""
Configuration shared read-only by every request.
"""

from dataclasses import dataclass, field
from typing import Optional

from jinja2 import Environment

from .mediatypes import MediaTypeRegistry, default_registry


@dataclass(frozen=True)
class Config:
    """
    Rendering configuration.

    Attributes:
        html_template: Template set for text/html; None disables HTML template offers
        text_template: Template set for text/plain; None disables text template offers
        json_prefix: Prefix written at the start of every JSON line after the first
        json_indent: JSON indentation; empty means compact output
        xml_prefix: Prefix written at the start of every XML line after the first
        xml_indent: XML indentation; empty means no newlines
        registry: Media type registry, extended at startup
    """

    html_template: Optional[Environment] = None
    text_template: Optional[Environment] = None
    json_prefix: str = ""
    json_indent: str = ""
    xml_prefix: str = ""
    xml_indent: str = ""
    registry: MediaTypeRegistry = field(default_factory=default_registry)
