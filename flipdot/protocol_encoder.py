"""
Pure Protocol Encoding Logic

This module contains the ProtocolEncoder class, which frames panel payloads
for the flip-dot controller, and the ProtocolDecoder used by the development
simulator to read the same byte stream back. Neither does any I/O.

Frame format: [0x80, command, address, <payload bytes...>, 0x8F]
Refresh-all:  [0x80, 0x82, 0x8F]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .protocol_config import (
    COMMANDS,
    FLUSH_COMMAND,
    FRAME_END,
    FRAME_START,
    ProtocolConfig,
    Refresh,
)


class ProtocolDecodeError(ValueError):
    """Raised when a byte stream does not follow the controller framing."""

    pass


class ProtocolEncoder:
    """
    Pure protocol encoder for flip-dot panel frames.

    All methods take inputs and return encoded bytes.
    """

    HEADER = FRAME_START
    EOT = FRAME_END

    def encode_panel_frame(
        self, address: int, payload: bytes, protocol: ProtocolConfig
    ) -> bytes:
        """
        Encode a single panel frame.

        Args:
            address: Panel RS-485 address (0-255)
            payload: Column bytes, one per panel column
            protocol: Protocol configuration (provides command byte)

        Raises:
            ValueError: If the payload length doesn't match the protocol
        """
        if len(payload) != protocol.data_bytes:
            raise ValueError(
                f"Payload for panel {address} is {len(payload)} bytes, "
                f"protocol '{protocol.description}' expects {protocol.data_bytes}"
            )
        return (
            bytes([self.HEADER, protocol.command_byte, address & 0xFF])
            + payload
            + bytes([self.EOT])
        )

    def encode_many(
        self, panel_payloads: Dict[int, bytes], protocol: ProtocolConfig
    ) -> Iterable[bytes]:
        for address, payload in panel_payloads.items():
            yield self.encode_panel_frame(address, payload, protocol)

    def encode_flush(self) -> bytes:
        """Encode the refresh-all command ([0x80, 0x82, 0x8F])."""
        return bytes([self.HEADER, FLUSH_COMMAND, self.EOT])

    def encode_display(
        self, panel_payloads: Dict[int, bytes], protocol: ProtocolConfig
    ) -> bytes:
        """
        Encode a whole display update as one byte string.

        Buffered protocols get a trailing refresh-all so every panel flips
        at the same time.
        """
        frames = list(self.encode_many(panel_payloads, protocol))
        if protocol.refresh is Refresh.BUFFER:
            frames.append(self.encode_flush())
        return b"".join(frames)


@dataclass(frozen=True)
class ProtocolMessage:
    """One decoded controller message. Refresh-all has no address or payload."""

    command: int
    address: Optional[int] = None
    payload: bytes = b""

    @property
    def is_flush(self) -> bool:
        return self.command == FLUSH_COMMAND

    @property
    def protocol(self) -> Optional[ProtocolConfig]:
        return COMMANDS.get(self.command)


class ProtocolDecoder:
    """
    Incremental decoder for the controller byte stream.

    Bytes may arrive split at arbitrary points; incomplete messages are kept
    until the next `feed`.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet decoded."""
        return len(self._buffer)

    def feed(self, data: bytes) -> List[ProtocolMessage]:
        self._buffer.extend(data)
        messages: List[ProtocolMessage] = []
        while True:
            message = self._next_message()
            if message is None:
                return messages
            messages.append(message)

    def _next_message(self) -> Optional[ProtocolMessage]:
        buf = self._buffer
        if len(buf) < 2:
            return None
        if buf[0] != FRAME_START:
            raise ProtocolDecodeError(
                f"Expected frame start 0x{FRAME_START:02X}, got 0x{buf[0]:02X}"
            )

        command = buf[1]
        if command == FLUSH_COMMAND:
            size = 3
            if len(buf) < size:
                return None
            self._check_end(buf, size)
            del buf[:size]
            return ProtocolMessage(command=command)

        protocol = COMMANDS.get(command)
        if protocol is None:
            raise ProtocolDecodeError(f"Unknown command byte 0x{command:02X}")

        size = 3 + protocol.data_bytes + 1
        if len(buf) < size:
            return None
        self._check_end(buf, size)
        message = ProtocolMessage(
            command=command, address=buf[2], payload=bytes(buf[3 : size - 1])
        )
        del buf[:size]
        return message

    @staticmethod
    def _check_end(buf: bytearray, size: int) -> None:
        if buf[size - 1] != FRAME_END:
            raise ProtocolDecodeError(
                f"Expected frame end 0x{FRAME_END:02X}, got 0x{buf[size - 1]:02X}"
            )


def decode_messages(data: bytes) -> List[ProtocolMessage]:
    """
    Decode a complete byte string into controller messages.

    Raises:
        ProtocolDecodeError: If the data is malformed or ends mid-message
    """
    decoder = ProtocolDecoder()
    messages = decoder.feed(data)
    if decoder.pending:
        raise ProtocolDecodeError(
            f"Truncated stream: {decoder.pending} trailing bytes"
        )
    return messages
