"""
Display - Change Tracking and Dispatch

This module contains the Display class, which owns the panel geometry,
remembers the last bitmap that actually reached the panel, and only writes
to the transport when the newest bitmap differs from it.

Policy layer - uses pure classes (FrameMapper, ProtocolEncoder) and the
I/O boundary (Transport).
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np
from PIL import Image

from .binarize import to_bitmap
from .config import PanelGeometry
from .frame_mapper import FrameMapper
from .protocol_config import protocol_for_layout
from .protocol_encoder import ProtocolEncoder
from .transport import Transport, TransportError
from .validation import validate_frame_size


logger = logging.getLogger(__name__)

Raster = Union[Image.Image, np.ndarray]


class DisplayError(Exception):
    """Base exception for display errors."""

    pass


class DisplayFlushError(DisplayError):
    """Raised when a flush could not be written. The frame stays dirty."""

    pass


class Display:
    """
    Dirty-tracking flip-dot display.

    `set_image_data` compares the new bitmap against the last flushed one,
    `flush` ships it. The flushed snapshot only moves on a successful write,
    so a failed flush is retried with whatever bitmap is current next time.
    """

    def __init__(
        self,
        geometry: PanelGeometry,
        transport: Transport,
        frame_mapper: Optional[FrameMapper] = None,
        protocol_encoder: Optional[ProtocolEncoder] = None,
    ):
        self.geometry = geometry
        self.transport = transport
        self.frame_mapper = frame_mapper or FrameMapper()
        self.protocol_encoder = protocol_encoder or ProtocolEncoder()
        self.protocol = protocol_for_layout(geometry.panel_width, geometry.panel_count)

        self._current: Optional[np.ndarray] = None
        self._last_flushed: Optional[np.ndarray] = None
        self._dirty: Optional[bool] = None
        self.flush_count = 0

        logger.info(
            f"Display initialized: {geometry.panel_count} panels, "
            f"{self.width}x{self.height}, mirrored={geometry.mirrored}, "
            f"protocol={self.protocol.description}"
        )

    @property
    def width(self) -> int:
        return self.geometry.width

    @property
    def height(self) -> int:
        return self.geometry.height

    @property
    def last_flushed(self) -> Optional[np.ndarray]:
        """Copy of the last bitmap successfully written, or None before the first flush."""
        return None if self._last_flushed is None else self._last_flushed.copy()

    async def connect(self) -> None:
        await self.transport.connect()

    async def close(self) -> None:
        await self.transport.close()

    def is_connected(self) -> bool:
        return self.transport.is_connected()

    def set_image_data(self, raster: Raster) -> None:
        """
        Set the frame to show next. No I/O happens here.

        Args:
            raster: Binarized RGBA frame, a Pillow image or a (height, width, 4)
                uint8 array, exactly the display size

        Raises:
            FrameSizeError: If the frame size doesn't match the display
        """
        if isinstance(raster, Image.Image):
            validate_frame_size(raster.size, (self.width, self.height))
            rgba = np.asarray(raster.convert("RGBA"), dtype=np.uint8)
        else:
            rgba = np.asarray(raster, dtype=np.uint8)
            if rgba.ndim != 3 or rgba.shape[2] != 4:
                raise ValueError(
                    f"expected an (H, W, 4) RGBA array, got shape {rgba.shape}"
                )
            h, w = rgba.shape[:2]
            validate_frame_size((w, h), (self.width, self.height))

        self._current = to_bitmap(rgba)
        self._dirty = self._last_flushed is None or not np.array_equal(
            self._current, self._last_flushed
        )

    def is_dirty(self) -> bool:
        """
        Whether the bitmap from the latest `set_image_data` still has to be sent.

        Raises:
            DisplayError: If no image data has been set yet
        """
        if self._dirty is None:
            raise DisplayError("is_dirty() called before set_image_data()")
        return self._dirty

    def encode(self) -> bytes:
        """Encode the current bitmap into controller frames for all panels."""
        if self._current is None:
            raise DisplayError("No image data set")
        payloads = self.frame_mapper.map_bitmap_to_payloads(self._current, self.geometry)
        return self.protocol_encoder.encode_display(payloads, self.protocol)

    async def flush(self) -> bool:
        """
        Write the current bitmap if it is dirty.

        Returns:
            bool: True if a frame was written, False if nothing changed

        Raises:
            DisplayError: If no image data has been set yet
            DisplayFlushError: If the transport write failed
        """
        if not self.is_dirty():
            return False

        assert self._current is not None
        bitmap = self._current
        data = self.encode()

        try:
            await self.transport.write(data)
        except TransportError as e:
            raise DisplayFlushError(
                f"Failed to flush frame to {self.transport.describe()}: {e}"
            ) from e

        self._last_flushed = bitmap
        # set_image_data may not have replaced the bitmap during the write
        self._dirty = not np.array_equal(self._current, bitmap)
        self.flush_count += 1
        logger.debug(f"Flushed {len(data)} bytes to {self.geometry.panel_count} panels")
        return True

    def get_display_stats(self) -> dict:
        """Get display statistics and information."""
        return {
            "canvas_size": f"{self.width}x{self.height}",
            "panel_count": self.geometry.panel_count,
            "panel_width": self.geometry.panel_width,
            "mirrored": self.geometry.mirrored,
            "addresses": self.geometry.addresses,
            "protocol": self.protocol.description,
            "flush_count": self.flush_count,
            "dirty": self._dirty,
            "connected": self.is_connected(),
            "transport": self.transport.describe(),
        }
