"""
Tests for the MessagePack extension.
"""

import io
from dataclasses import dataclass

import pytest

from rsvp import Config, data
from rsvp.exceptions import EncoderError
from rsvp.mediatypes import default_registry
from rsvp.renderers import render
from tests.framework import MultiDriverTestBase

msgpack = pytest.importorskip("msgpack")

from rsvp import msgpack_support  # noqa: E402


@dataclass
class Point:
    x: int
    y: int


def msgpack_config():
    registry = default_registry()
    msgpack_support.install(registry)
    return Config(registry=registry)


class TestInstall:
    def test_registers_media_type(self):
        config = msgpack_config()

        assert config.registry.is_registered("application/vnd.msgpack")
        assert config.registry.proposal_for_extension("msgpack") == "application/vnd.msgpack"
        assert config.registry.extended_media_types == ("application/vnd.msgpack",)

    def test_offered_after_gob(self):
        offers = list(data({"a": 1}).media_types(msgpack_config()))

        assert offers[-2:] == ["application/vnd.golang.gob", "application/vnd.msgpack"]

    def test_unserializable_payload(self):
        with pytest.raises(EncoderError) as exc_info:
            render(data(object()), "application/vnd.msgpack", io.BytesIO(), msgpack_config())

        assert exc_info.value.media_type == "application/vnd.msgpack"


class TestMsgpackResponses(MultiDriverTestBase):
    def create_config(self):
        return msgpack_config()

    def create_handler(self):
        def handler(w, r):
            if r.path.startswith("/point"):
                return data(Point(1, 2))
            return data({"message": "hi", "values": [1, 2, 3]})
        return handler

    def test_by_accept(self, api):
        api_client, driver_name = api

        response = api_client.get_as("/", "application/vnd.msgpack")

        assert response.status_code == 200
        assert response.content_type == "application/vnd.msgpack"
        assert msgpack.unpackb(response.body, raw=False) == {"message": "hi", "values": [1, 2, 3]}

    def test_by_extension(self, api):
        api_client, driver_name = api

        response = api_client.execute(api_client.get("/point.msgpack"))

        assert response.status_code == 200
        assert msgpack.unpackb(response.body, raw=False) == {"x": 1, "y": 2}

    def test_json_is_still_preferred(self, api):
        api_client, driver_name = api

        response = api_client.execute(api_client.get("/"))

        assert response.content_type == "application/json"

