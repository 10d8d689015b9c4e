"""
Flip-dot panel simulator.

Listens on a TCP port, decodes the same controller byte stream the serial
panels receive, and keeps an image of what the physical display would show.
Pair it with the network transport during development:

    python -m flipdot.simulator --port 3000 --frame output/simulator.png
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

import numpy as np
from PIL import Image

from .config import PanelGeometry, default_config, load_from_toml
from .frame_mapper import FrameMapper
from .protocol_config import Refresh
from .protocol_encoder import ProtocolDecodeError, ProtocolDecoder, ProtocolMessage

logger = logging.getLogger(__name__)


class PanelSimulator:
    """
    In-memory model of a flip-dot installation.

    Instant messages show immediately; buffered messages wait for the
    refresh-all command, as on the real controllers.
    """

    def __init__(self, geometry: PanelGeometry, frame_mapper: Optional[FrameMapper] = None):
        self.geometry = geometry
        self.frame_mapper = frame_mapper or FrameMapper()
        self.decoder = ProtocolDecoder()
        shape = (geometry.panel_height, geometry.panel_width)
        self.shown: Dict[int, np.ndarray] = {
            address: np.zeros(shape, dtype=bool) for address in geometry.addresses
        }
        self.pending: Dict[int, np.ndarray] = {}
        self.refresh_count = 0

    def feed(self, data: bytes) -> int:
        """
        Consume raw bytes from the link.

        Returns:
            int: Number of display refreshes the data caused

        Raises:
            ProtocolDecodeError: If the stream is malformed
        """
        return self.apply(self.decoder.feed(data))

    def apply(self, messages: Iterable[ProtocolMessage]) -> int:
        """Apply already decoded messages. Returns the number of refreshes."""
        refreshes = 0
        for message in messages:
            if self._apply(message):
                refreshes += 1
        self.refresh_count += refreshes
        return refreshes

    def _apply(self, message: ProtocolMessage) -> bool:
        if message.is_flush:
            if not self.pending:
                return False
            self.shown.update(self.pending)
            self.pending.clear()
            return True

        if message.address not in self.shown:
            logger.warning(f"Ignoring data for unknown panel address {message.address}")
            return False

        protocol = message.protocol
        assert protocol is not None
        if protocol.data_bytes != self.geometry.panel_width:
            logger.warning(
                f"Panel {message.address}: {protocol.description} does not match "
                f"panel width {self.geometry.panel_width}"
            )
            return False

        bits = self.frame_mapper.unpack_columns(message.payload, self.geometry.panel_height)
        if protocol.refresh is Refresh.BUFFER:
            self.pending[message.address] = bits
            return False
        self.shown[message.address] = bits
        return True

    def bitmap(self) -> np.ndarray:
        """Assemble the shown panels into a (height, width) display bitmap."""
        g = self.geometry
        canvas = np.zeros((g.height, g.width), dtype=bool)
        for row, addresses in enumerate(g.layout):
            for col, address in enumerate(addresses):
                canvas[
                    row * g.panel_height : (row + 1) * g.panel_height,
                    col * g.panel_width : (col + 1) * g.panel_width,
                ] = self.shown[address]
        return np.fliplr(canvas) if g.mirrored else canvas

    def image(self, scale: int = 1) -> Image.Image:
        img = Image.fromarray(self.bitmap().astype(np.uint8) * 255)
        if scale > 1:
            img = img.resize((img.width * scale, img.height * scale), Image.Resampling.NEAREST)
        return img

    def render_text(self) -> str:
        """ASCII rendering for terminal logs."""
        return "\n".join("".join("#" if v else "." for v in row) for row in self.bitmap())


async def serve(
    geometry: PanelGeometry,
    host: str = "127.0.0.1",
    port: int = 3000,
    frame_path: Optional[Path] = None,
    scale: int = 8,
    simulator: Optional[PanelSimulator] = None,
) -> None:
    """Run the simulator TCP server until cancelled."""
    simulator = simulator or PanelSimulator(geometry)

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        logger.info(f"Client connected: {peer}")
        # Partial frames are per connection; panel state is shared
        decoder = ProtocolDecoder()
        try:
            while data := await reader.read(4096):
                if simulator.apply(decoder.feed(data)):
                    logger.debug("Display refreshed:\n%s", simulator.render_text())
                    if frame_path is not None:
                        frame_path.parent.mkdir(parents=True, exist_ok=True)
                        simulator.image(scale).save(frame_path, format="PNG")
        except ProtocolDecodeError as e:
            logger.error(f"Dropping client {peer}: {e}")
        except ConnectionError as e:
            logger.info(f"Client {peer} connection lost: {e}")
        finally:
            writer.close()
            logger.info(f"Client disconnected: {peer}")

    server = await asyncio.start_server(handle, host, port)
    logger.info(
        f"Simulating {geometry.width}x{geometry.height} display on {host}:{port}"
    )
    async with server:
        await server.serve_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Flip-dot panel simulator")
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=3000, help="Port to bind to")
    parser.add_argument("--frame", type=Path, help="PNG written on every refresh")
    parser.add_argument("--verbose", action="store_true", help="Log every refresh")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    cfg = load_from_toml(args.config) if args.config else default_config(dev=True)
    try:
        asyncio.run(serve(cfg.geometry, args.host, args.port, args.frame))
    except KeyboardInterrupt:
        logger.info("Simulator stopped by user")


if __name__ == "__main__":
    main()
