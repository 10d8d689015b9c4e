"""
Pure Frame Mapping Logic

This module contains the FrameMapper class, which slices a full display
bitmap into per-panel column payloads. It has no I/O dependencies.
"""

from __future__ import annotations

from typing import Dict, TYPE_CHECKING

import numpy as np

from .validation import validate_frame_size

if TYPE_CHECKING:
    from .config import PanelGeometry


class FrameMapper:
    """
    Pure frame mapping operations for flip-dot displays.

    All methods take inputs and return outputs without modifying state.
    """

    def map_bitmap_to_panels(
        self, bitmap: np.ndarray, geometry: "PanelGeometry"
    ) -> Dict[int, np.ndarray]:
        """
        Map a display bitmap to per-panel boolean arrays.

        Args:
            bitmap: Boolean array of shape (height, width)
            geometry: Panel geometry of the display

        Returns:
            Dict[int, np.ndarray]: `panel address -> (panel_height, panel_width)`
            boolean array, in row-major layout order.

        Raises:
            FrameSizeError: If the bitmap doesn't match the geometry
        """
        h, w = bitmap.shape
        validate_frame_size((w, h), (geometry.width, geometry.height))

        if geometry.mirrored:
            bitmap = np.fliplr(bitmap)

        pw, ph = geometry.panel_width, geometry.panel_height
        panel_arrays: Dict[int, np.ndarray] = {}
        for row, addresses in enumerate(geometry.layout):
            for col, address in enumerate(addresses):
                panel_arrays[address] = bitmap[
                    row * ph : (row + 1) * ph, col * pw : (col + 1) * pw
                ]
        return panel_arrays

    def pack_columns(self, panel: np.ndarray) -> bytes:
        """
        Pack a panel bitmap into one byte per column, LSB = top dot.

        For example a column with only the top dot on packs to 0b00000001.
        """
        packed = np.packbits(panel.astype(np.uint8), axis=0, bitorder="little")
        return packed[0].tobytes()

    def unpack_columns(self, payload: bytes, panel_height: int) -> np.ndarray:
        """Inverse of `pack_columns`: boolean array of shape (panel_height, len(payload))."""
        cols = np.frombuffer(payload, dtype=np.uint8)[np.newaxis, :]
        bits = np.unpackbits(cols, axis=0, count=panel_height, bitorder="little")
        return bits.astype(bool)

    def map_bitmap_to_payloads(
        self, bitmap: np.ndarray, geometry: "PanelGeometry"
    ) -> Dict[int, bytes]:
        """Map a display bitmap straight to `panel address -> column bytes`."""
        return {
            address: self.pack_columns(panel)
            for address, panel in self.map_bitmap_to_panels(bitmap, geometry).items()
        }
