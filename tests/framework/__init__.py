"""
Test framework for content negotiation testing using 4-layer architecture.
"""

from .dsl import RsvpApiDsl, HttpRequest, HttpResponse
from .drivers import DirectDriver, AsgiDriver
from .multi_driver_base import MultiDriverTestBase

__all__ = [
    'RsvpApiDsl',
    'HttpRequest',
    'HttpResponse',
    'DirectDriver',
    'AsgiDriver',
    'MultiDriverTestBase',
]
