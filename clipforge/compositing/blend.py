"""Blend modes

Blends operate on uint8 channel values widened to int32 and stay on the
0..255 integer scale throughout; results are floored like integer
division on that scale.
"""

from enum import Enum

import numpy as np

class BlendMode(Enum):
    OVERLAY = "overlay"
    ADD = "add"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    DARKEN = "darken"
    LIGHTEN = "lighten"

    @classmethod
    def parse(cls, value) -> "BlendMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown blend mode {value!r}; choose from {', '.join(m.value for m in cls)}"
            ) from None

def _overlay(base: np.ndarray, top: np.ndarray) -> np.ndarray:
    dark = (2 * base * top) // 255
    light = 255 - (2 * (255 - base) * (255 - top)) // 255
    return np.where(base < 128, dark, light)

def _add(base: np.ndarray, top: np.ndarray) -> np.ndarray:
    return np.minimum(base + top, 255)

def _multiply(base: np.ndarray, top: np.ndarray) -> np.ndarray:
    return (base * top) // 255

def _screen(base: np.ndarray, top: np.ndarray) -> np.ndarray:
    return 255 - ((255 - base) * (255 - top)) // 255

_BLENDERS = {
    BlendMode.OVERLAY: _overlay,
    BlendMode.ADD: _add,
    BlendMode.MULTIPLY: _multiply,
    BlendMode.SCREEN: _screen,
    BlendMode.DARKEN: np.minimum,
    BlendMode.LIGHTEN: np.maximum,
}

def blend(base: np.ndarray, top: np.ndarray, mode: BlendMode, opacity: float = 1.0) -> np.ndarray:
    """
    Blend ``top`` onto ``base`` (same-shaped uint8 arrays).

    With ``opacity`` below 1 the blended colour is mixed linearly over the
    base; 0 leaves the base untouched.
    """
    b = base.astype(np.int32)
    t = top.astype(np.int32)
    result = _BLENDERS[mode](b, t)
    if opacity < 1.0:
        mixed = b * (1.0 - opacity) + result * opacity
        return np.clip(np.rint(mixed), 0, 255).astype(np.uint8)
    return np.clip(result, 0, 255).astype(np.uint8)
