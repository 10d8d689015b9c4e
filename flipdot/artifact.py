"""Frame output for development runs without a panel attached."""

from __future__ import annotations

from pathlib import Path

from PIL import Image


def save_frame(image: Image.Image, path: str | Path = "output/frame.png") -> Path:
    """Save a frame to disk as a PNG image, replacing the previous one."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(output_path, format="PNG")
    return output_path


__all__ = ["save_frame"]
