# flipdot/config.py
from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional, Tuple, Union

from .protocol_config import PANEL_HEIGHT
from .validation import normalize_layout, validate_layout, validate_panel_width

logger = logging.getLogger(__name__)


Layout = Tuple[Tuple[int, ...], ...]


@dataclass(frozen=True)
class PanelGeometry:
    """
    Arrangement of sub-panels forming the display.

    `layout` holds one tuple per row of panels, each entry being the RS-485
    address of the panel at that position (top-left first).
    """

    layout: Layout
    panel_width: int = 28
    mirrored: bool = False
    panel_height: int = PANEL_HEIGHT

    def __post_init__(self) -> None:
        # Accept lists (e.g. straight from TOML) and store tuples
        object.__setattr__(self, "layout", normalize_layout(self.layout))
        validate_layout(self.layout)
        validate_panel_width(self.panel_width)
        if self.panel_height != PANEL_HEIGHT:
            raise ValueError(
                f"Protocol expects panel height {PANEL_HEIGHT}, got {self.panel_height}"
            )

    @property
    def rows(self) -> int:
        return len(self.layout)

    @property
    def columns(self) -> int:
        return len(self.layout[0])

    @property
    def width(self) -> int:
        return self.columns * self.panel_width

    @property
    def height(self) -> int:
        return self.rows * self.panel_height

    @property
    def panel_count(self) -> int:
        return self.rows * self.columns

    @property
    def addresses(self) -> list[int]:
        """Panel addresses in row-major layout order."""
        return [address for row in self.layout for address in row]


@dataclass(frozen=True)
class SerialConfig:
    kind: ClassVar[str] = "serial"

    port: str = "/dev/ttyACM0"
    baudrate: int = 57600
    timeout: float = 1.0

    def __post_init__(self) -> None:
        if self.baudrate <= 0:
            raise ValueError("Serial baudrate must be > 0")
        if self.timeout <= 0:
            raise ValueError("Serial timeout must be > 0")


@dataclass(frozen=True)
class NetworkConfig:
    kind: ClassVar[str] = "network"

    host: str = "127.0.0.1"
    port: int = 3000
    connect_timeout: float = 2.0

    def __post_init__(self) -> None:
        if not (0 < self.port <= 0xFFFF):
            raise ValueError(f"Network port must be 1-65535, got {self.port}")
        if self.connect_timeout <= 0:
            raise ValueError("Network connect_timeout must be > 0")


TransportConfig = Union[SerialConfig, NetworkConfig]


@dataclass(frozen=True)
class OutputConfig:
    dev: bool = False
    frame_path: Path = Path("output/frame.png")


@dataclass(frozen=True)
class SceneConfig:
    word: str = "BOEKEN"
    font: Optional[Path] = None
    turns_left: int = 0
    max_turns: int = 11

    def __post_init__(self) -> None:
        if self.max_turns < 0:
            raise ValueError("Scene max_turns must be >= 0")


@dataclass(frozen=True)
class AppConfig:
    geometry: PanelGeometry
    transport: TransportConfig = field(default_factory=SerialConfig)
    fps: float = 15.0
    output: OutputConfig = field(default_factory=OutputConfig)
    scene: SceneConfig = field(default_factory=SceneConfig)

    def __post_init__(self) -> None:
        if self.fps <= 0:
            raise ValueError("fps must be > 0")


DEFAULT_LAYOUT: Layout = ((1, 2, 3), (4, 5, 6), (7, 8, 9), (10, 11, 12))


def _load_transport(data: dict, dev: bool) -> TransportConfig:
    transport = data.get("transport") or {}
    kind = str(transport.get("type", "network" if dev else "serial")).lower()

    if kind == SerialConfig.kind:
        serial = transport.get("serial") or {}
        return SerialConfig(
            port=str(serial.get("port", "/dev/ttyACM0")),
            baudrate=int(serial.get("baudrate", 57600)),
            timeout=float(serial.get("timeout", 1.0)),
        )
    if kind == NetworkConfig.kind:
        network = transport.get("network") or {}
        return NetworkConfig(
            host=str(network.get("host", "127.0.0.1")),
            port=int(network.get("port", 3000)),
            connect_timeout=float(network.get("connect_timeout", 2.0)),
        )
    raise ValueError(f"Invalid transport type '{kind}' in config file")


def load_from_toml(config_path: str | Path) -> AppConfig:
    """
    Load an AppConfig from a TOML file.

    Expected TOML structure:

    [display]
    fps = 15
    panel_width = 28
    mirrored = true
    layout = [[1, 2, 3], [4, 5, 6]]

    [transport]
    type = "serial"  # serial|network

    [transport.serial]
    port = "/dev/ttyACM0"
    baudrate = 57600

    [transport.network]
    host = "127.0.0.1"
    port = 3000

    [output]
    dev = false
    frame_path = "output/frame.png"

    [scene]
    word = "BOEKEN"
    turns_left = 0
    max_turns = 11
    """
    p = Path(config_path)
    if not p.exists():
        raise FileNotFoundError(f"Configuration file not found: {p}")

    with p.open("rb") as f:
        data = tomllib.load(f)

    display = data.get("display") or {}
    output = data.get("output") or {}
    scene = data.get("scene") or {}

    dev = bool(output.get("dev", False))
    font = scene.get("font") or None

    cfg = AppConfig(
        geometry=PanelGeometry(
            layout=display.get("layout", DEFAULT_LAYOUT),
            panel_width=int(display.get("panel_width", 28)),
            mirrored=bool(display.get("mirrored", False)),
        ),
        transport=_load_transport(data, dev),
        fps=float(display.get("fps", 15.0)),
        output=OutputConfig(
            dev=dev,
            frame_path=Path(output.get("frame_path", "output/frame.png")),
        ),
        scene=SceneConfig(
            word=str(scene.get("word", "BOEKEN")),
            font=Path(font) if font else None,
            turns_left=int(scene.get("turns_left", 0)),
            max_turns=int(scene.get("max_turns", 11)),
        ),
    )

    logger.info(
        "Loaded AppConfig: %d panels, canvas=%dx%d, fps=%s, transport=%s (dev=%s)",
        cfg.geometry.panel_count,
        cfg.geometry.width,
        cfg.geometry.height,
        cfg.fps,
        cfg.transport.kind,
        cfg.output.dev,
    )
    return cfg


def default_config(dev: bool = False) -> AppConfig:
    """Twelve mirrored 28x7 panels (84x28); serial hardware, or the local simulator in dev mode."""
    transport: TransportConfig = (
        NetworkConfig(host="127.0.0.1", port=3000)
        if dev
        else SerialConfig(port="/dev/ttyACM0", baudrate=57600)
    )
    return AppConfig(
        geometry=PanelGeometry(layout=DEFAULT_LAYOUT, panel_width=28, mirrored=True),
        transport=transport,
        fps=15.0,
        output=OutputConfig(dev=dev),
    )
