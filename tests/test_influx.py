"""
Tests for the InfluxDB writers.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from ohmgraphite.config.schema import Influx2Config, InfluxConfig
from ohmgraphite.writers.influx import (
    HttpLineWriter,
    Influx2Writer,
    InfluxWriter,
    format_point,
    format_points,
)

from conftest import make_reading, two_sensor_snapshot


class InfluxStub:
    """Records write requests; answers with a configurable status."""

    def __init__(self, status: int = 204):
        self.status = status
        self.requests: list[dict] = []

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/write", self.handle)
        app.router.add_post("/api/v2/write", self.handle)
        return app

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(
            {
                "path": request.path,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "body": await request.text(),
            }
        )
        return web.Response(status=self.status, text="" if self.status < 300 else "boom")


def test_format_point_escapes() -> None:
    reading = make_reading("/cpu/0/temperature/0", 55.5, sensor="CPU Core #1", hardware="Intel, Inc")

    line = format_point(reading, "box1", 1700000000)

    assert line == (
        "temperature,host=box1,app=ohm,hardware=Intel\\,\\ Inc,hardware_type=cpu,"
        "identifier=/cpu/0/temperature/0,sensor=CPU\\ Core\\ #1,sensor_index=0 "
        "value=55.5 1700000000"
    )


def test_format_points_one_line_per_reading() -> None:
    body = format_points(two_sensor_snapshot(), "box1")

    lines = body.split("\n")
    assert len(lines) == 2
    assert lines[1].startswith("fan,host=box1,")


def run_writer(writer, stub: InfluxStub, times: int = 1):
    async def scenario():
        server = test_utils.TestServer(stub.app())
        await server.start_server()
        base = str(server.make_url("/")).rstrip("/")
        if isinstance(writer.config, InfluxConfig):
            writer.config.address = base
        else:
            writer.config.url = base
        try:
            for _ in range(times):
                await writer.write(two_sensor_snapshot())
        finally:
            await writer.close()
            await server.close()

    asyncio.run(scenario())


def test_influx_v1_write() -> None:
    stub = InfluxStub()
    writer = InfluxWriter(InfluxConfig(address="", db="ohm", user="ohm", password="pw"), "box1")

    run_writer(writer, stub)

    request = stub.requests[0]
    assert request["path"] == "/write"
    assert request["query"] == {"db": "ohm", "precision": "s"}
    assert request["headers"]["Authorization"].startswith("Basic ")
    assert "host=box1" in request["body"]
    assert len(request["body"].split("\n")) == 2


def test_influx_v2_write() -> None:
    stub = InfluxStub()
    writer = Influx2Writer(Influx2Config(url="", org="home", bucket="ohm", token="t0k"), "box1")

    run_writer(writer, stub, times=2)

    assert len(stub.requests) == 2
    request = stub.requests[0]
    assert request["path"] == "/api/v2/write"
    assert request["query"] == {"org": "home", "bucket": "ohm", "precision": "s"}
    assert request["headers"]["Authorization"] == "Token t0k"


def test_influx_error_status_raises() -> None:
    stub = InfluxStub(status=500)
    writer = InfluxWriter(InfluxConfig(address="", db="ohm"), "box1")

    with pytest.raises(RuntimeError, match="500"):
        run_writer(writer, stub)


def test_line_writer_needs_endpoint() -> None:
    with pytest.raises(TypeError):
        HttpLineWriter("box1")
