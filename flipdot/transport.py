"""
Transport I/O Boundary

This module provides the Transport classes, which carry encoded controller
frames to the panel. Two carriers exist: an RS-485 serial line to the real
hardware and a TCP socket to the development simulator. Both send the same
bytes, so the display never needs to know which one it drives.

I/O boundary classes - handle all link interaction and connection management.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

from aioserial import AioSerial
from serial import SerialException

from .config import NetworkConfig, SerialConfig, TransportConfig


logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Base exception for transport errors."""

    pass


class TransportConnectError(TransportError):
    """Raised when the link cannot be opened. Fatal at startup."""

    pass


class TransportWriteError(TransportError):
    """Raised when a write fails mid-stream. Recoverable."""

    pass


class Transport(ABC):
    """
    Abstract base class for the display link.

    Defines the byte-sink interface shared by the serial and network carriers.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the link.

        Raises:
            TransportConnectError: If the link cannot be opened
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the link. Safe to call when not connected."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write encoded controller frames.

        Raises:
            TransportWriteError: If the write fails
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Human-readable link description for logs and stats."""
        pass


class SerialTransport(Transport):
    """
    Serial transport using aioserial.

    Drives the panel controller over RS-485 through a USB serial adapter.
    """

    def __init__(self, config: SerialConfig):
        self.config = config
        self._serial: Optional[AioSerial] = None
        self._io_lock = asyncio.Lock()

    async def connect(self) -> None:
        async with self._io_lock:
            try:
                self._serial = AioSerial(
                    port=self.config.port,
                    baudrate=self.config.baudrate,
                    timeout=self.config.timeout,
                )
                # Give the adapter a moment to settle
                await asyncio.sleep(0.1)
                logger.info(
                    f"Connected to serial port {self.config.port} @ {self.config.baudrate}"
                )
            except (SerialException, OSError, ValueError) as e:
                self._serial = None
                raise TransportConnectError(
                    f"Serial connect to {self.config.port} failed: {e}"
                ) from e

    async def close(self) -> None:
        async with self._io_lock:
            if self._serial:
                try:
                    self._serial.close()
                    logger.info("Disconnected from serial port")
                except (SerialException, OSError) as e:
                    logger.warning(f"Serial close failed: {e}")
                finally:
                    self._serial = None

    def is_connected(self) -> bool:
        return self._serial is not None

    async def write(self, data: bytes) -> None:
        async with self._io_lock:
            if not self._serial:
                raise TransportWriteError("Not connected to serial port")

            try:
                bytes_written = await self._serial.write_async(data)
            except (SerialException, OSError) as e:
                raise TransportWriteError(f"Serial write failed: {e}") from e

            if bytes_written != len(data):
                raise TransportWriteError(
                    f"Short write: {bytes_written}/{len(data)} bytes"
                )

    def describe(self) -> str:
        return f"serial:{self.config.port}@{self.config.baudrate}"


class NetworkTransport(Transport):
    """
    TCP transport to the development simulator.

    Keeps one persistent connection. A write that finds the connection broken
    drops it; the next write opens a fresh one before sending.
    """

    def __init__(self, config: NetworkConfig):
        self.config = config
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._io_lock = asyncio.Lock()

    async def _open(self) -> None:
        self._reader, self._writer = await asyncio.wait_for(
            asyncio.open_connection(self.config.host, self.config.port),
            timeout=self.config.connect_timeout,
        )
        logger.info(f"Connected to simulator at {self.config.host}:{self.config.port}")

    async def connect(self) -> None:
        async with self._io_lock:
            try:
                await self._open()
            except (OSError, asyncio.TimeoutError) as e:
                self._reader = self._writer = None
                raise TransportConnectError(
                    f"Network connect to {self.config.host}:{self.config.port} failed: {e}"
                ) from e

    async def _drop(self) -> None:
        writer = self._writer
        self._reader = self._writer = None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Ignoring error while closing socket: {e}")

    async def close(self) -> None:
        async with self._io_lock:
            if self._writer is not None:
                await self._drop()
                logger.info("Disconnected from simulator")

    def is_connected(self) -> bool:
        if self._writer is None or self._writer.is_closing():
            return False
        # The simulator never talks back, so EOF means it hung up
        return not (self._reader is not None and self._reader.at_eof())

    async def write(self, data: bytes) -> None:
        async with self._io_lock:
            if not self.is_connected():
                await self._drop()
                try:
                    await self._open()
                except (OSError, asyncio.TimeoutError) as e:
                    self._reader = self._writer = None
                    raise TransportWriteError(f"Reconnect failed: {e}") from e

            assert self._writer is not None
            try:
                self._writer.write(data)
                await self._writer.drain()
            except OSError as e:
                await self._drop()
                raise TransportWriteError(f"Network write failed: {e}") from e

    def describe(self) -> str:
        return f"network:{self.config.host}:{self.config.port}"


_TRANSPORTS: Dict[str, Type[Transport]] = {
    SerialConfig.kind: SerialTransport,
    NetworkConfig.kind: NetworkTransport,
}


def create_transport(config: TransportConfig) -> Transport:
    """
    Factory function creating the transport named by the config's tag.

    Raises:
        ValueError: If the config kind has no transport
    """
    transport_cls = _TRANSPORTS.get(getattr(config, "kind", ""))
    if transport_cls is None:
        raise ValueError(f"No transport for configuration {config!r}")

    logger.info(f"Creating {transport_cls.__name__}")
    return transport_cls(config)  # type: ignore[call-arg]
