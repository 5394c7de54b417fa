"""Per-pixel colour effects

All of these preserve frame size. Channel math runs in float64 on the
0..1 or 0..255 scale and is rounded back to uint8 once at the end.
"""

import math
from typing import Optional

import numpy as np

from ..frame import Frame
from .base import Effect, to_uint8

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])
SEPIA_TONE = np.array([1.351, 1.203, 0.937])  # Row sums of the classic sepia matrix

def _clamp_unit(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)

def luminance(pixels: np.ndarray) -> np.ndarray:
    """Per-pixel luma of an (h, w, 3) array, shape (h, w, 1)"""
    return (pixels.astype(np.float64) @ LUMA_WEIGHTS)[..., None]

class Brightness(Effect):
    name = "brightness"

    def __init__(self, factor: float):
        self.factor = float(factor)

    def apply(self, frame: Frame) -> Frame:
        return Frame(to_uint8(frame.pixels.astype(np.float64) * self.factor))

class Contrast(Effect):
    """Scale each channel's distance from mid-grey by ``factor``"""

    name = "contrast"

    def __init__(self, factor: float):
        self.factor = float(factor)

    def apply(self, frame: Frame) -> Frame:
        norm = frame.pixels.astype(np.float64) / 255.0
        out = np.clip((norm - 0.5) * self.factor + 0.5, 0.0, 1.0)
        return Frame(to_uint8(out * 255.0))

class Saturation(Effect):
    """Scale chroma around the per-pixel luminance; 0 gives greyscale"""

    name = "saturation"

    def __init__(self, factor: float):
        self.factor = float(factor)

    def apply(self, frame: Frame) -> Frame:
        pixels = frame.pixels.astype(np.float64)
        luma = luminance(frame.pixels)
        return Frame(to_uint8(luma + (pixels - luma) * self.factor))

class Sepia(Effect):
    """Blend towards sepia-toned luminance by ``strength`` (0..1)"""

    name = "sepia"

    def __init__(self, strength: float = 1.0):
        self.strength = _clamp_unit(strength)

    def apply(self, frame: Frame) -> Frame:
        pixels = frame.pixels.astype(np.float64)
        sepia = np.minimum(luminance(frame.pixels) * SEPIA_TONE, 255.0)
        return Frame(to_uint8(pixels * (1.0 - self.strength) + sepia * self.strength))

class Vignette(Effect):
    """
    Radial darkening towards the corners.

    Each pixel is scaled by ``1 - (distance / (max_radius * radius)) * strength``
    clamped at 0, where ``max_radius`` is the centre-to-corner distance. The
    centre pixel is never darkened.
    """

    name = "vignette"

    def __init__(self, strength: float = 0.5, radius: float = 1.0):
        self.strength = _clamp_unit(strength)
        self.radius = _clamp_unit(radius)

    def factors(self, width: int, height: int) -> np.ndarray:
        cx, cy = width / 2.0, height / 2.0
        max_distance = math.hypot(cx, cy) * self.radius
        dx = np.arange(width, dtype=np.float64)[None, :] - cx
        dy = np.arange(height, dtype=np.float64)[:, None] - cy
        distance = np.hypot(dx, dy)
        if max_distance > 0:
            factor = 1.0 - (distance / max_distance) * self.strength
        else:
            factor = np.full(distance.shape, 0.0 if self.strength > 0 else 1.0)
        factor = np.maximum(factor, 0.0)
        factor[distance == 0] = 1.0
        return factor

    def apply(self, frame: Frame) -> Frame:
        factor = self.factors(frame.width, frame.height)
        return Frame(to_uint8(frame.pixels.astype(np.float64) * factor[..., None]))

class Noise(Effect):
    """Uniform luminance noise in ``±intensity`` (0..1), same offset per channel"""

    name = "noise"

    def __init__(self, intensity: float = 0.1, seed: Optional[int] = None):
        self.intensity = _clamp_unit(intensity)
        self._rng = np.random.default_rng(seed)

    def apply(self, frame: Frame) -> Frame:
        offsets = self._rng.uniform(-self.intensity, self.intensity, size=(frame.height, frame.width, 1))
        norm = frame.pixels.astype(np.float64) / 255.0 + offsets
        return Frame(to_uint8(np.clip(norm, 0.0, 1.0) * 255.0))
