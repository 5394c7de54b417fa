"""Frame effects

This package provides:
- Geometric transforms (resize, rotate, crop)
- Colour transforms (brightness, contrast, saturation, sepia, vignette, noise)
- Neighbourhood transforms (blur, sharpen)
- Effect chains with size tracking and named presets
"""

from .base import Effect
from .chain import PRESETS, EffectChain, get_preset
from .color import Brightness, Contrast, Noise, Saturation, Sepia, Vignette
from .convolution import Blur, Sharpen
from .geometry import Crop, Resize, Rotate

__all__ = [
    'Effect',
    'EffectChain',
    'PRESETS',
    'get_preset',
    'Resize',
    'Rotate',
    'Crop',
    'Brightness',
    'Contrast',
    'Saturation',
    'Blur',
    'Sharpen',
    'Sepia',
    'Vignette',
    'Noise',
]
