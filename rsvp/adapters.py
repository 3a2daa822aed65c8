"""
ASGI adapter for serving rsvp handlers.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .config import Config
from .models import MultiValueHeaders, Request, Response
from .response import Handler, internal_error_response, write_handler

logger = logging.getLogger(__name__)


class ASGIAdapter:
    """
    ASGI 3.0 adapter for running an rsvp handler on ASGI servers.

    The handler stays synchronous: it runs in the default thread pool while
    the event loop keeps serving. Each HTTP request gets exactly one
    ``http.response.start`` followed by one ``http.response.body``.

    The config's media type registry is frozen when the adapter is created,
    so extensions must be installed before.

    Example:
        ```python
        from rsvp import Config, data, html_templates
        from rsvp.adapters import ASGIAdapter

        def home(w, r):
            w.default_template_name("home")
            return data({"title": "Hello"})

        app = ASGIAdapter(home, Config(html_template=html_templates(package="./templates")))

        # Run with uvicorn
        # uvicorn module:app --reload
        ```
    """

    def __init__(self, handler: Handler, config: Optional[Config] = None):
        self.handler = handler
        self.config = config if config is not None else Config()
        self.config.registry.freeze()

    async def __call__(self,
                       scope: Dict[str, Any],
                       receive: Callable[[], Awaitable[Dict[str, Any]]],
                       send: Callable[[Dict[str, Any]], Awaitable[None]]):
        """
        ASGI 3.0 application entry point.

        Args:
            scope: ASGI connection scope dictionary
            receive: Async callable to receive ASGI messages
            send: Async callable to send ASGI messages
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            # Only handle HTTP and lifespan
            await send({
                "type": "http.response.start",
                "status": 404,
                "headers": [[b"content-type", b"text/plain"]],
            })
            await send({
                "type": "http.response.body",
                "body": b"Not Found - Only HTTP protocol is supported",
            })
            return

        request = await self._read_request(scope, receive)

        try:
            loop = asyncio.get_event_loop()
            response = await loop.run_in_executor(None, write_handler, self.config, request, self.handler)
        except Exception as e:
            logger.error(f"Handler failed for {request.method} {request.path}: {e}", exc_info=True)
            response = internal_error_response()

        await self._send_response(response, send)

    async def _handle_lifespan(self, receive, send):
        """Acknowledge lifespan startup and shutdown; rsvp has nothing to set up."""
        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _read_request(self, scope: Dict[str, Any], receive) -> Request:
        """Build a Request from the scope and the full request body."""
        # ASGI uses lowercase names and bytes
        headers = MultiValueHeaders()
        for header_name, header_value in scope.get("headers", []):
            headers.add(header_name.decode("latin-1").lower(), header_value.decode("latin-1"))

        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)
        body = b"".join(chunks)

        return Request(method=scope["method"], path=scope["path"], headers=headers, body=body or None)

    def _prepare_asgi_headers(self, response: Response) -> List[List[bytes]]:
        return [
            [name.lower().encode("latin-1"), str(value).encode("latin-1")]
            for name, value in response.headers.items_all()
        ]

    async def _send_response(self, response: Response, send):
        await send({
            "type": "http.response.start",
            "status": int(response.status_code),
            "headers": self._prepare_asgi_headers(response),
        })
        await send({
            "type": "http.response.body",
            "body": response.body,
        })


def create_asgi_app(handler: Handler, config: Optional[Config] = None) -> ASGIAdapter:
    """
    Create an ASGI application from an rsvp handler.

    Examples:
        ```python
        asgi_app = create_asgi_app(home, Config(json_indent="  "))

        # Run with uvicorn
        # uvicorn module:asgi_app --reload
        ```
    """
    return ASGIAdapter(handler, config)
