#!/usr/bin/env python3
"""
Example demonstrating logging in rsvp.

This example shows how to configure logging to see different log levels:
- DEBUG: Offers, proposals and the chosen media type
- ERROR: Responses that failed to render (answered with 500)
"""

import logging

from rsvp import Body, Config, Request, data, html_templates, write_handler


def setup_logging():
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def greeting(w, r):
    return data({"message": "Hello, World!"})


def broken(w, r):
    """Names a template the template set does not contain."""
    return Body(data="oops", template_name="missing")


if __name__ == "__main__":
    # Set up logging to see all messages
    setup_logging()

    config = Config(html_template=html_templates({"home": "<h1>{{ message }}</h1>"}))

    requests = [
        ("Negotiated JSON", Request(method="GET", path="/", headers={"Accept": "application/json"}), greeting),
        ("Not acceptable", Request(method="GET", path="/", headers={"Accept": "text/csv"}), greeting),
        ("Unknown extension", Request(method="GET", path="/greeting.blah"), greeting),
        ("Template miss", Request(method="GET", path="/", headers={"Accept": "text/html"}), broken),
    ]

    for label, request, handler in requests:
        print(f"\n--- {label} ---")
        response = write_handler(config, request, handler)
        print(f"{response.status_code} {response.content_type}: {response.body!r}")
