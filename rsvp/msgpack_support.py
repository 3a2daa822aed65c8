"""
MessagePack support (``application/vnd.msgpack``).

Requires the ``msgpack`` extra. Install it into a registry at startup:

    registry = default_registry()
    msgpack_support.install(registry)
    config = Config(registry=registry)
"""

import dataclasses
import logging
from typing import Any, BinaryIO

import msgpack

from .mediatypes import ExtensionHandler, MediaTypeRegistry

logger = logging.getLogger(__name__)

MSGPACK = "application/vnd.msgpack"


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"can not serialize {type(value).__name__!r} object")


def render_msgpack(data: Any, sink: BinaryIO) -> None:
    logger.debug("Rendering msgpack...")
    sink.write(msgpack.packb(data, default=_default, use_bin_type=True))


def install(registry: MediaTypeRegistry) -> None:
    """Offer MessagePack for every payload and serve it for ``.msgpack`` paths."""
    registry.register(
        MSGPACK,
        handler=ExtensionHandler(claims=lambda media_type: media_type == MSGPACK, render=render_msgpack),
        extensions=("msgpack",),
    )
