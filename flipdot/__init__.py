"""
Flip-dot frame pipeline package.

This package provides:
- A fixed-rate ticker driving a per-frame render step
- Hard-threshold binarization of RGBA frames
- A dirty-tracking display that only ships changed frames
- Serial and network transports speaking the panel controller protocol
"""

__version__ = "0.1.0"
