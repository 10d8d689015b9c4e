"""
Render Step - Per-Tick Orchestration

Each tick draws the scene into the frame, binarizes it, and sends it either to
the display (only when it changed) or, in development mode, to a PNG file.
The output path is fixed at construction; it never changes between ticks.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

from PIL import Image

from .artifact import save_frame
from .binarize import binarize
from .display import Display, DisplayFlushError
from .scene import GameState
from .ticker import TickContext


logger = logging.getLogger(__name__)


class Scene(Protocol):
    def draw(self, image: Image.Image, ctx: TickContext, state: GameState) -> None: ...


StateProvider = Callable[[], GameState]


class RenderStep:
    """
    Callable tick handler wiring scene → binarizer → display.

    Args:
        scene: Draws into the frame each tick; must not resize it
        display: Target display; its width/height size the frame
        state_provider: Returns the game state snapshot for the tick
        artifact_path: When set, frames go to this PNG and the display is
            never touched (development mode)
    """

    def __init__(
        self,
        scene: Scene,
        display: Display,
        state_provider: Optional[StateProvider] = None,
        artifact_path: Optional[Path] = None,
    ):
        self.scene = scene
        self.display = display
        self.state_provider = state_provider or GameState
        self.artifact_path = artifact_path
        self.frame = Image.new("RGBA", (display.width, display.height), (0, 0, 0, 255))

        self.frames_rendered = 0
        self.frames_flushed = 0
        self.flush_failures = 0

    @property
    def dev_mode(self) -> bool:
        return self.artifact_path is not None

    async def __call__(self, ctx: TickContext) -> None:
        started = time.perf_counter()
        logger.debug(f"Rendering a {self.frame.width}x{self.frame.height} canvas")

        state = self.state_provider()
        self.scene.draw(self.frame, ctx, state)
        if self.frame.size != (self.display.width, self.display.height):
            raise RuntimeError(
                f"Scene resized the frame to {self.frame.size}; "
                f"expected {(self.display.width, self.display.height)}"
            )
        binarize(self.frame)
        self.frames_rendered += 1

        if self.artifact_path is not None:
            save_frame(self.frame, self.artifact_path)
        else:
            await self._present()

        logger.debug(
            "Elapsed time: %.2fs, delta time: %.2fms, write frame: %.2fms",
            ctx.elapsed_time / 1000.0,
            ctx.delta_time,
            (time.perf_counter() - started) * 1000.0,
        )

    async def _present(self) -> None:
        self.display.set_image_data(self.frame)
        if not self.display.is_dirty():
            return
        try:
            if await self.display.flush():
                self.frames_flushed += 1
        except DisplayFlushError as e:
            # Snapshot untouched; the next tick retries with its own frame
            self.flush_failures += 1
            logger.warning(f"Flush failed, retrying next tick: {e}")
