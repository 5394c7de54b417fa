"""Multi-layer compositing

This package provides:
- Blend modes on the 0..255 integer scale
- Layer placement (absolute or centred), scale, rotation and opacity
- The engine that merges overlay frames onto a base canvas
"""

from .blend import BlendMode, blend
from .engine import composite_frames
from .layer import CompositionLayer, Position

__all__ = [
    'BlendMode',
    'blend',
    'composite_frames',
    'CompositionLayer',
    'Position',
]
