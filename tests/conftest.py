"""Shared fixtures: panel geometries and a transport that records writes."""

from typing import List

import numpy as np
import pytest
from PIL import Image

from flipdot.config import PanelGeometry
from flipdot.transport import Transport, TransportWriteError


class RecordingTransport(Transport):
    """In-memory transport capturing every write; can be told to fail."""

    def __init__(self) -> None:
        self.writes: List[bytes] = []
        self.fail_writes = 0
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    def is_connected(self) -> bool:
        return self.connected

    async def write(self, data: bytes) -> None:
        if self.fail_writes:
            self.fail_writes -= 1
            raise TransportWriteError("simulated write failure")
        self.writes.append(bytes(data))

    def describe(self) -> str:
        return "recording"


def solid_frame(width: int, height: int, value: int) -> Image.Image:
    return Image.new("RGBA", (width, height), (value, value, value, 255))


def frame_from_bitmap(bitmap: np.ndarray) -> np.ndarray:
    """Binarized RGBA array for a boolean bitmap."""
    h, w = bitmap.shape
    rgba = np.zeros((h, w, 4), dtype=np.uint8)
    rgba[bitmap, :3] = 255
    rgba[..., 3] = 255
    return rgba


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def single_panel() -> PanelGeometry:
    """One 28x7 panel at address 0."""
    return PanelGeometry(layout=((0,),), panel_width=28)


@pytest.fixture
def stacked_panels() -> PanelGeometry:
    """Two 28x7 panels stacked into a 28x14 display."""
    return PanelGeometry(layout=((1,), (2,)), panel_width=28)


@pytest.fixture
def grid_panels() -> PanelGeometry:
    """Two rows of two 14x7 panels, 28x14, mirrored."""
    return PanelGeometry(layout=((1, 2), (3, 4)), panel_width=14, mirrored=True)
