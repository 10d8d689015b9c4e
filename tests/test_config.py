"""Tests for configuration loading and cross-cutting validation."""

import pytest

from flipdot.config import (
    AppConfig,
    NetworkConfig,
    PanelGeometry,
    SerialConfig,
    default_config,
    load_from_toml,
)
from flipdot.validation import LayoutValidationError, validate_layout


def write_toml(tmp_path, content: str):
    path = tmp_path / "config.toml"
    path.write_text(content)
    return path


def test_load_serial_config_from_toml(tmp_path):
    path = write_toml(
        tmp_path,
        """
[display]
fps = 20
panel_width = 14
mirrored = true
layout = [[1, 2], [3, 4]]

[transport]
type = "serial"

[transport.serial]
port = "/dev/ttyUSB1"
baudrate = 19200

[scene]
turns_left = 4
""",
    )
    cfg = load_from_toml(path)

    assert cfg.fps == 20.0
    assert cfg.geometry.layout == ((1, 2), (3, 4))
    assert (cfg.geometry.width, cfg.geometry.height) == (28, 14)
    assert cfg.geometry.mirrored is True
    assert isinstance(cfg.transport, SerialConfig)
    assert cfg.transport.port == "/dev/ttyUSB1"
    assert cfg.transport.baudrate == 19200
    assert cfg.output.dev is False
    assert cfg.scene.turns_left == 4
    assert cfg.scene.font is None


def test_load_network_config_defaults_in_dev(tmp_path):
    path = write_toml(
        tmp_path,
        """
[display]
layout = [[7]]

[output]
dev = true
frame_path = "out/frame.png"
""",
    )
    cfg = load_from_toml(path)

    assert isinstance(cfg.transport, NetworkConfig)
    assert (cfg.transport.host, cfg.transport.port) == ("127.0.0.1", 3000)
    assert cfg.output.dev is True
    assert str(cfg.output.frame_path) == "out/frame.png"
    assert (cfg.geometry.width, cfg.geometry.height) == (28, 7)


def test_load_rejects_unknown_transport(tmp_path):
    path = write_toml(tmp_path, '[transport]\ntype = "carrier-pigeon"\n')
    with pytest.raises(ValueError):
        load_from_toml(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_from_toml(tmp_path / "nope.toml")


def test_default_config():
    cfg = default_config()
    assert isinstance(cfg.transport, SerialConfig)
    assert cfg.transport.port == "/dev/ttyACM0"
    assert cfg.transport.baudrate == 57600
    assert cfg.geometry.mirrored is True
    assert (cfg.geometry.width, cfg.geometry.height) == (84, 28)

    dev = default_config(dev=True)
    assert isinstance(dev.transport, NetworkConfig)
    assert dev.output.dev is True


def test_geometry_accepts_lists():
    geometry = PanelGeometry(layout=[[3, 2, 1]], panel_width=7)  # type: ignore[arg-type]
    assert geometry.layout == ((3, 2, 1),)
    assert geometry.addresses == [3, 2, 1]
    assert (geometry.width, geometry.height, geometry.panel_count) == (21, 7, 3)


@pytest.mark.parametrize(
    "layout",
    [
        [],
        [[]],
        [[1, 2], [3]],
        [[1, 1]],
        [[256]],
    ],
)
def test_validation_bad_layouts(layout):
    with pytest.raises(LayoutValidationError):
        validate_layout(layout)


def test_validation_panel_width():
    with pytest.raises(LayoutValidationError):
        PanelGeometry(layout=((1,),), panel_width=21)


def test_invalid_scalar_values():
    with pytest.raises(ValueError):
        SerialConfig(baudrate=0)
    with pytest.raises(ValueError):
        NetworkConfig(port=0)
    with pytest.raises(ValueError):
        AppConfig(geometry=PanelGeometry(layout=((1,),)), fps=0)


@pytest.mark.parametrize(
    "layout",
    [
        [1, 2, 3],
        [[1, 2], 3],
        [["1", "2"]],
        "1,2",
    ],
)
def test_geometry_rejects_malformed_layouts(layout):
    with pytest.raises(LayoutValidationError):
        PanelGeometry(layout=layout)  # type: ignore[arg-type]
