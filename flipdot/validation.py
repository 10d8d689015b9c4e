"""
Cross-cutting validation logic for the flip-dot pipeline.

Type-local invariants stay in the dataclass __post_init__ methods; the rules
here span several values at once:
- Panel layout shape and address uniqueness
- Panel width support by the controller protocol
- Raster frame size against the display size
"""

from typing import Sequence, Tuple


class ValidationError(ValueError):
    """Base exception for validation errors."""

    pass


class LayoutValidationError(ValidationError):
    """Raised when the panel layout is invalid."""

    pass


class FrameSizeError(ValidationError):
    """Raised when a raster frame does not match the display size."""

    pass


SUPPORTED_PANEL_WIDTHS = (7, 14, 28)


def validate_panel_width(panel_width: int) -> None:
    """
    Validate the sub-panel width against the controller protocol.

    Raises:
        LayoutValidationError: If the width is not 7, 14 or 28
    """
    if panel_width not in SUPPORTED_PANEL_WIDTHS:
        raise LayoutValidationError(
            "Unsupported panel width. Expected 7, 14, or 28; "
            f"got {panel_width}"
        )


def normalize_layout(layout: Sequence[Sequence[int]]) -> Tuple[Tuple[int, ...], ...]:
    """
    Convert a layout read from TOML (lists) into tuples of int addresses.

    Raises:
        LayoutValidationError: If the layout or one of its rows is not a list
            of integer addresses
    """
    if isinstance(layout, (str, bytes)) or not isinstance(layout, Sequence):
        raise LayoutValidationError(
            f"Layout must be a list of rows, got {type(layout).__name__}"
        )
    rows = []
    for index, row in enumerate(layout):
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
            raise LayoutValidationError(
                f"Layout row {index} must be a list of panel addresses, got {row!r}"
            )
        if not all(isinstance(a, int) and not isinstance(a, bool) for a in row):
            raise LayoutValidationError(
                f"Layout row {index} must contain integer addresses, got {list(row)!r}"
            )
        rows.append(tuple(row))
    return tuple(rows)


def validate_layout(layout: Sequence[Sequence[int]]) -> None:
    """
    Validate a panel layout descriptor.

    The layout is a list of rows, each row a list of panel addresses.

    Raises:
        LayoutValidationError: If the layout is empty, ragged, or has
            out-of-range or duplicate addresses
    """
    if not layout or not layout[0]:
        raise LayoutValidationError("Layout must contain at least one panel")

    columns = len(layout[0])
    for index, row in enumerate(layout):
        if len(row) != columns:
            raise LayoutValidationError(
                f"Layout must be rectangular: row {index} has {len(row)} panels, "
                f"expected {columns}"
            )

    addresses = [address for row in layout for address in row]
    for address in addresses:
        if not (0 <= address <= 0xFF):
            raise LayoutValidationError(
                f"Panel address must be 0-255, got {address}"
            )

    if len(addresses) != len(set(addresses)):
        duplicates = sorted(
            {addr for addr in addresses if addresses.count(addr) > 1}
        )
        raise LayoutValidationError(f"Duplicate panel addresses: {duplicates}")


def validate_frame_size(
    frame_size: Tuple[int, int], display_size: Tuple[int, int]
) -> None:
    """
    Validate that a raster frame matches the display.

    Args:
        frame_size: (width, height) of the frame
        display_size: (width, height) of the display

    Raises:
        FrameSizeError: If the sizes differ
    """
    if tuple(frame_size) != tuple(display_size):
        fw, fh = frame_size
        dw, dh = display_size
        raise FrameSizeError(
            f"display and frame must be the same size. "
            f"display: {dw}x{dh}, frame: {fw}x{fh}"
        )
