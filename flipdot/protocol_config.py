"""
Flip-dot controller protocol configuration.

Frame format: 0x80 Command Address Data 0x8F
Each data byte carries one column of a panel, bit 0 being the top dot.
"""

from enum import Enum
from typing import NamedTuple


class DataBytes(Enum):
    """Number of data bytes for the supported panel widths."""

    BYTES_7 = 7  # 7x7 panels
    BYTES_14 = 14  # 14x7 panels
    BYTES_28 = 28  # 28x7 panels

    def __str__(self) -> str:
        return f"{self.value} bytes"


class Refresh(Enum):
    """Panel refresh behavior."""

    INSTANT = "instant"  # Show data as soon as received
    BUFFER = "buffer"  # Store data, show on refresh command

    def __str__(self) -> str:
        return self.value


class ProtocolConfig(NamedTuple):
    """Command byte and metadata for a data size and refresh mode."""

    command_byte: int
    data_bytes: int
    refresh: Refresh
    description: str


PROTOCOL_MAP = {
    (DataBytes.BYTES_7, Refresh.INSTANT): ProtocolConfig(
        command_byte=0x87,
        data_bytes=7,
        refresh=Refresh.INSTANT,
        description="7x7 instant refresh",
    ),
    (DataBytes.BYTES_14, Refresh.INSTANT): ProtocolConfig(
        command_byte=0x92,
        data_bytes=14,
        refresh=Refresh.INSTANT,
        description="14x7 instant refresh",
    ),
    (DataBytes.BYTES_14, Refresh.BUFFER): ProtocolConfig(
        command_byte=0x93,
        data_bytes=14,
        refresh=Refresh.BUFFER,
        description="14x7 buffered refresh",
    ),
    (DataBytes.BYTES_28, Refresh.INSTANT): ProtocolConfig(
        command_byte=0x83,
        data_bytes=28,
        refresh=Refresh.INSTANT,
        description="28x7 instant refresh",
    ),
    (DataBytes.BYTES_28, Refresh.BUFFER): ProtocolConfig(
        command_byte=0x84,
        data_bytes=28,
        refresh=Refresh.BUFFER,
        description="28x7 buffered refresh",
    ),
}

# Reverse lookup used when decoding a byte stream
COMMANDS = {cfg.command_byte: cfg for cfg in PROTOCOL_MAP.values()}

FRAME_START = 0x80
FRAME_END = 0x8F
FLUSH_COMMAND = 0x82  # Refresh all buffered panels (0 data bytes)
PANEL_HEIGHT = 7  # dots per column, one byte per column


def data_bytes_from_panel_width(width: int) -> DataBytes:
    """Get the DataBytes member for a panel width.

    Raises:
        ValueError: If the width is not 7, 14 or 28
    """
    for member in DataBytes:
        if member.value == width:
            return member
    raise ValueError(
        f"Unsupported panel width: {width}. Supported widths: 7, 14, 28"
    )


def supports_buffered_refresh(data_bytes: DataBytes) -> bool:
    return (data_bytes, Refresh.BUFFER) in PROTOCOL_MAP


def get_protocol_config(data_bytes: DataBytes, refresh: Refresh) -> ProtocolConfig:
    """Get protocol configuration for given data size and refresh mode.

    Raises:
        ValueError: If the combination is not supported
    """
    config = PROTOCOL_MAP.get((data_bytes, refresh))
    if not config:
        raise ValueError(
            f"Unsupported configuration: {data_bytes} with {refresh} refresh"
        )
    return config


def protocol_for_layout(panel_width: int, panel_count: int) -> ProtocolConfig:
    """
    Pick the protocol for a display.

    Multiple panels use buffered refresh followed by a refresh-all command so
    every panel flips at once; a single panel uses instant refresh.
    """
    data_bytes = data_bytes_from_panel_width(panel_width)
    if panel_count > 1 and supports_buffered_refresh(data_bytes):
        return get_protocol_config(data_bytes, Refresh.BUFFER)
    return get_protocol_config(data_bytes, Refresh.INSTANT)
