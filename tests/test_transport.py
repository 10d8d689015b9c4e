"""Tests for the serial and network transports."""

import asyncio

import pytest

from flipdot.config import NetworkConfig, SerialConfig
from flipdot.transport import (
    NetworkTransport,
    SerialTransport,
    TransportConnectError,
    TransportWriteError,
    create_transport,
)


class FakeSerial:
    def __init__(self, short: bool = False, error: Exception | None = None):
        self.short = short
        self.error = error
        self.written: list[bytes] = []
        self.closed = False

    async def write_async(self, data: bytes) -> int:
        if self.error:
            raise self.error
        self.written.append(data)
        return len(data) - 1 if self.short else len(data)

    def close(self) -> None:
        self.closed = True


async def start_sink(close_first: int = 0):
    """Loopback server collecting bytes; closes the first `close_first` connections at once."""
    received: list[bytes] = []
    connections = 0

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        nonlocal connections
        connections += 1
        if connections <= close_first:
            writer.close()
            return
        while data := await reader.read(4096):
            received.append(data)
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port, received


async def wait_for_bytes(received: list[bytes], size: int) -> bytes:
    for _ in range(100):
        if sum(len(b) for b in received) >= size:
            break
        await asyncio.sleep(0.01)
    return b"".join(received)


def test_create_transport_selects_by_kind():
    assert isinstance(create_transport(SerialConfig()), SerialTransport)
    assert isinstance(create_transport(NetworkConfig()), NetworkTransport)
    with pytest.raises(ValueError):
        create_transport(object())  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_serial_connect_missing_device_is_fatal():
    transport = SerialTransport(SerialConfig(port="/dev/flipdot-does-not-exist"))
    with pytest.raises(TransportConnectError):
        await transport.connect()
    assert not transport.is_connected()


@pytest.mark.asyncio
async def test_serial_write_not_connected():
    transport = SerialTransport(SerialConfig())
    with pytest.raises(TransportWriteError):
        await transport.write(b"\x80\x82\x8f")


@pytest.mark.asyncio
async def test_serial_write_and_close():
    transport = SerialTransport(SerialConfig())
    fake = FakeSerial()
    transport._serial = fake  # type: ignore[assignment]

    await transport.write(b"\x80\x82\x8f")
    assert fake.written == [b"\x80\x82\x8f"]

    await transport.close()
    assert fake.closed
    assert not transport.is_connected()


@pytest.mark.asyncio
async def test_serial_short_write_and_io_error_are_recoverable():
    transport = SerialTransport(SerialConfig())
    transport._serial = FakeSerial(short=True)  # type: ignore[assignment]
    with pytest.raises(TransportWriteError, match="Short write"):
        await transport.write(b"\x80\x82\x8f")

    transport._serial = FakeSerial(error=OSError("unplugged"))  # type: ignore[assignment]
    with pytest.raises(TransportWriteError):
        await transport.write(b"\x80\x82\x8f")
    # Connection object is kept; the next tick simply tries again
    assert transport.is_connected()


@pytest.mark.asyncio
async def test_network_write_delivers_bytes():
    server, port, received = await start_sink()
    transport = NetworkTransport(NetworkConfig(port=port))
    try:
        await transport.connect()
        assert transport.is_connected()
        await transport.write(b"\x80\x82\x8f")
        await transport.write(b"\x80\x82\x8f")
        assert await wait_for_bytes(received, 6) == b"\x80\x82\x8f" * 2
    finally:
        await transport.close()
        server.close()
        await server.wait_closed()
    assert not transport.is_connected()


@pytest.mark.asyncio
async def test_network_connect_refused_is_fatal():
    server, port, _ = await start_sink()
    server.close()
    await server.wait_closed()

    transport = NetworkTransport(NetworkConfig(port=port, connect_timeout=0.5))
    with pytest.raises(TransportConnectError):
        await transport.connect()


@pytest.mark.asyncio
async def test_network_reconnects_after_peer_hangs_up():
    server, port, received = await start_sink(close_first=1)
    transport = NetworkTransport(NetworkConfig(port=port))
    try:
        await transport.connect()
        # let the hang-up reach the client
        for _ in range(50):
            if not transport.is_connected():
                break
            await asyncio.sleep(0.01)
        assert not transport.is_connected()

        await transport.write(b"\x80\x82\x8f")
        assert await wait_for_bytes(received, 3) == b"\x80\x82\x8f"
        assert transport.is_connected()
    finally:
        await transport.close()
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_network_write_fails_when_simulator_gone():
    server, port, _ = await start_sink(close_first=1)
    transport = NetworkTransport(NetworkConfig(port=port, connect_timeout=0.5))
    await transport.connect()
    server.close()
    await server.wait_closed()

    for _ in range(50):
        if not transport.is_connected():
            break
        await asyncio.sleep(0.01)

    with pytest.raises(TransportWriteError):
        await transport.write(b"\x80\x82\x8f")
    await transport.close()
