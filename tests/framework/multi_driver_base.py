"""
Multi-driver test base for automatic driver discovery and execution.

This module provides a base class that automatically runs tests against all available drivers.
Each test file should inherit from MultiDriverTestBase and define a create_handler() method.
"""

import pytest
from typing import List
from abc import ABC, abstractmethod

from rsvp import Config
from rsvp.response import Handler
from .dsl import RsvpApiDsl
from .drivers import AsgiDriver, DirectDriver, DriverInterface


class MultiDriverTestBase(ABC):
    """
    Base class for multi-driver tests.

    Automatically runs each test method against all available drivers.
    Subclasses must implement create_handler() to define the handler under test,
    and may override create_config() to configure templates or formatting.
    """

    # Override this in subclasses to control which drivers to test
    ENABLED_DRIVERS = [
        'direct',   # Direct driver: calls write_handler
        'asgi',     # ASGI driver: runs the ASGI adapter in-process
    ]

    # Optional: Override to exclude specific drivers for certain test files
    EXCLUDED_DRIVERS = []

    @abstractmethod
    def create_handler(self) -> Handler:
        """
        Create the handler for testing.

        It is run against all enabled drivers.
        """
        pass

    def create_config(self) -> Config:
        """Create the rendering configuration. Called once per driver."""
        return Config()

    @classmethod
    def get_available_drivers(cls) -> List[str]:
        """Get list of available driver names for this test class."""
        available = [driver for driver in cls.ENABLED_DRIVERS
                    if driver not in cls.EXCLUDED_DRIVERS]
        return available

    @classmethod
    def create_driver(cls, driver_name: str, handler: Handler, config: Config) -> DriverInterface:
        """Create a driver instance for the given driver name."""
        driver_map = {
            'direct': lambda: DirectDriver(handler, config),
            'asgi': lambda: AsgiDriver(handler, config),
        }

        if driver_name not in driver_map:
            pytest.skip(f"Driver '{driver_name}' not available. Available: {list(driver_map.keys())}")

        return driver_map[driver_name]()

    @pytest.fixture(scope="class")
    def api(self, request):
        """
        Parametrized fixture that provides API client for each enabled driver.

        This fixture is automatically parametrized with all enabled drivers.
        """
        driver_name = request.param
        driver = self.create_driver(driver_name, self.create_handler(), self.create_config())
        yield RsvpApiDsl(driver), driver_name

