"""
Tests for the Graphite writer.
"""

import asyncio

import pytest

from ohmgraphite.config.loader import ConfigLoader
from ohmgraphite.manager import create_manager
from ohmgraphite.scheduler import MetricTimer
from ohmgraphite.sensors.models import SensorType, Snapshot
from ohmgraphite.writers.graphite import GraphiteWriter, format_line, normalize

from conftest import StaticSource, make_reading, two_sensor_snapshot


class GraphiteReceiver:
    """Minimal carbon receiver collecting plaintext lines."""

    def __init__(self):
        self.lines: list[str] = []
        self.connections = 0
        self.server: asyncio.AbstractServer | None = None

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        while line := await reader.readline():
            self.lines.append(line.decode().rstrip("\n"))
        writer.close()

    async def start(self) -> int:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        self.server.close()
        await self.server.wait_closed()

    async def wait_for_lines(self, count: int, timeout: float = 2.0) -> None:
        async def poll():
            while len(self.lines) < count:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(poll(), timeout)


class StalledReceiver:
    """Accepts connections but never reads from them."""

    def __init__(self):
        self.release = asyncio.Event()
        self.server: asyncio.AbstractServer | None = None

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await self.release.wait()
        writer.close()

    async def start(self) -> int:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        self.release.set()
        self.server.close()
        await self.server.wait_closed()


def large_snapshot(count: int = 20000) -> Snapshot:
    return Snapshot(
        readings=tuple(
            make_reading(f"/cpu/0/load/{i}", float(i), sensor_type=SensorType.LOAD, index=i)
            for i in range(count)
        )
    )


def test_normalize() -> None:
    assert normalize("/lpc/nct6798d/temperature/0") == "lpc.nct6798d.temperature.0"


def test_format_line_plain() -> None:
    reading = make_reading("/cpu/0/temperature/0", 55.5)

    assert format_line(reading, "box1", 1700000000) == "ohm.box1.cpu.0.temperature.0.temperature 55.5 1700000000"


def test_format_line_tags() -> None:
    reading = make_reading("/cpu/0/temperature/0", 55.5, sensor="CPU Package", hardware="Intel Core i7")

    line = format_line(reading, "box1", 1700000000, tags=True)

    assert line == (
        "ohm.box1.cpu.cpu.0.temperature.0.temperature"
        ";host=box1;app=ohm;hardware=Intel_Core_i7;hardware_type=cpu"
        ";sensor_type=temperature;sensor_index=0;raw_name=CPU_Package"
        " 55.5 1700000000"
    )


def test_writer_reuses_connection() -> None:
    async def scenario():
        receiver = GraphiteReceiver()
        port = await receiver.start()
        writer = GraphiteWriter("127.0.0.1", port, "box1")
        try:
            await writer.write(two_sensor_snapshot())
            await writer.write(two_sensor_snapshot())
            await receiver.wait_for_lines(4)
        finally:
            await writer.close()
            await receiver.stop()
        return receiver

    receiver = asyncio.run(scenario())

    assert receiver.connections == 1
    assert len(receiver.lines) == 4


def test_writer_raises_when_unreachable() -> None:
    async def scenario():
        receiver = GraphiteReceiver()
        port = await receiver.start()
        await receiver.stop()

        writer = GraphiteWriter("127.0.0.1", port, "box1")
        with pytest.raises(OSError):
            await writer.write(two_sensor_snapshot())
        await writer.close()

    asyncio.run(scenario())


def test_graphite_config_exports_one_tick() -> None:
    config = ConfigLoader().load_string(
        """
        interval 10s;
        name "box1";
        graphite { host "10.0.0.5"; port 2003; }
        """
    )
    source = StaticSource()

    manager = create_manager(config, source)

    assert isinstance(manager, MetricTimer)
    assert manager.interval == 10.0
    assert isinstance(manager.writer, GraphiteWriter)
    assert (manager.writer.host, manager.writer.port) == ("10.0.0.5", 2003)

    async def scenario():
        receiver = GraphiteReceiver()
        port = await receiver.start()
        # Point the configured writer at the local receiver
        manager.writer.host, manager.writer.port = "127.0.0.1", port
        try:
            ok = await manager.tick()
            await receiver.wait_for_lines(2)
        finally:
            await manager.stop()
            await receiver.stop()
        return ok, receiver.lines

    ok, lines = asyncio.run(scenario())

    assert ok is True
    assert source.calls == 1
    assert len(lines) == 2
    assert all(line.startswith("ohm.box1.") for line in lines)
    assert any(" 55.5 " in line for line in lines)
    assert any(" 1200.0 " in line for line in lines)


def test_stalled_receiver_times_out_write() -> None:
    snapshot = large_snapshot()

    async def scenario():
        receiver = StalledReceiver()
        port = await receiver.start()
        writer = GraphiteWriter("127.0.0.1", port, "box1", timeout=0.2)
        try:
            with pytest.raises(asyncio.TimeoutError):
                # Fill the socket buffers until the send blocks
                for _ in range(200):
                    await writer.write(snapshot)
            # The stalled connection is dropped so the next write reconnects
            assert writer._writer is None
            await asyncio.wait_for(writer.close(), timeout=1.0)
        finally:
            await receiver.stop()

    asyncio.run(scenario())


def test_stop_returns_while_receiver_stalled() -> None:
    snapshot = large_snapshot()
    writer = GraphiteWriter("127.0.0.1", 0, "box1", timeout=0.3)
    timer = MetricTimer(0.05, StaticSource(snapshot), writer)

    async def scenario():
        receiver = StalledReceiver()
        writer.port = await receiver.start()
        try:
            await timer.start()
            await asyncio.sleep(1.0)
            loop = asyncio.get_running_loop()
            started = loop.time()
            await asyncio.wait_for(timer.stop(), timeout=5.0)
            return loop.time() - started
        finally:
            await receiver.stop()

    elapsed = asyncio.run(scenario())

    assert elapsed < 2.0
    assert not timer.running
