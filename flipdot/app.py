"""
FlipdotApp - Composition Root

This module contains the FlipdotApp class, which is responsible for:
- Wiring transport, display, scene, render step and ticker from AppConfig
- Application lifecycle management (startup/run/shutdown)
- Stopping cleanly on SIGINT/SIGTERM
"""

import asyncio
import logging
import signal
from typing import Optional

from .config import AppConfig
from .display import Display
from .render_step import RenderStep, StateProvider
from .scene import GameState, HangmanScene
from .ticker import Ticker
from .transport import Transport, create_transport


logger = logging.getLogger(__name__)


class FlipdotApp:
    """
    Application composition root for the flip-dot pipeline.

    The transport is only connected outside development mode; in development
    mode frames go to a PNG file and the panel link is never opened.
    """

    def __init__(
        self,
        config: AppConfig,
        transport: Optional[Transport] = None,
        state_provider: Optional[StateProvider] = None,
    ):
        self.config = config
        self._transport = transport
        self._state_provider = state_provider

        # Core components - initialized during startup
        self.display: Optional[Display] = None
        self.render_step: Optional[RenderStep] = None
        self.ticker: Optional[Ticker] = None
        self._started = False

    @property
    def dev_mode(self) -> bool:
        return self.config.output.dev

    async def startup(self) -> None:
        """
        Build all components and open the panel link.

        Raises:
            TransportConnectError: If the link cannot be opened (fatal)
        """
        logger.info("Starting up flip-dot application...")
        cfg = self.config

        transport = self._transport or create_transport(cfg.transport)
        self.display = Display(cfg.geometry, transport)

        initial = GameState(
            turns_left=cfg.scene.turns_left, max_turns=cfg.scene.max_turns
        )
        self.render_step = RenderStep(
            scene=HangmanScene(word=cfg.scene.word, font_path=cfg.scene.font),
            display=self.display,
            state_provider=self._state_provider or (lambda: initial),
            artifact_path=cfg.output.frame_path if self.dev_mode else None,
        )
        self.ticker = Ticker(cfg.fps)

        if self.dev_mode:
            logger.info(f"Development mode: writing frames to {cfg.output.frame_path}")
        else:
            try:
                await self.display.connect()
            except Exception as e:
                logger.error(f"Startup failed: {e}")
                raise

        self._started = True
        logger.info("Flip-dot application startup completed")

    async def run(self) -> None:
        """Tick until stopped (signal or `shutdown`), then release the link."""
        if not self._started:
            await self.startup()
        assert self.ticker is not None and self.render_step is not None

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.ticker.request_stop)
            except (NotImplementedError, RuntimeError):
                # Not available on this platform/thread; Ctrl+C still raises
                pass

        self.ticker.start(self.render_step)
        try:
            await self.ticker.wait()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.remove_signal_handler(sig)
                except (NotImplementedError, RuntimeError):
                    pass
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop ticking, letting an in-flight flush finish, then close the link."""
        if not self._started:
            return
        logger.info("Shutting down flip-dot application...")

        try:
            if self.ticker is not None:
                await self.ticker.stop()
        finally:
            if self.display is not None:
                # close() is safe when not connected; a peer hang-up still holds a socket
                await self.display.close()
            self._started = False
            logger.info("Flip-dot application shutdown completed")
