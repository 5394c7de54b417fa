"""Neighbourhood effects: box blur and sharpen"""

import numpy as np

from ..config import MAX_BLUR_RADIUS, MAX_SHARPEN_STRENGTH, MIN_BLUR_RADIUS
from ..frame import Frame
from .base import Effect, to_uint8

class Blur(Effect):
    """
    Box blur over the Chebyshev neighbourhood of ``radius``.

    Only neighbours inside the frame are averaged, so edges are not
    darkened. The radius is clamped to 1..20.
    """

    name = "blur"

    def __init__(self, radius: int = 2):
        self.radius = min(max(int(radius), MIN_BLUR_RADIUS), MAX_BLUR_RADIUS)

    def apply(self, frame: Frame) -> Frame:
        height, width = frame.height, frame.width
        r = self.radius

        # Summed-area table with a zero row/column in front
        table = np.zeros((height + 1, width + 1, 3), dtype=np.int64)
        table[1:, 1:] = frame.pixels.astype(np.int64).cumsum(axis=0).cumsum(axis=1)

        y0 = np.clip(np.arange(height) - r, 0, height)[:, None]
        y1 = np.clip(np.arange(height) + r + 1, 0, height)[:, None]
        x0 = np.clip(np.arange(width) - r, 0, width)[None, :]
        x1 = np.clip(np.arange(width) + r + 1, 0, width)[None, :]

        totals = table[y1, x1] - table[y0, x1] - table[y1, x0] + table[y0, x0]
        counts = (y1 - y0) * (x1 - x0)
        return Frame((totals // counts[..., None]).astype(np.uint8))

class Sharpen(Effect):
    """3x3 sharpen kernel ``[[0,-1,0],[-1,5,-1],[0,-1,0]]`` scaled by ``strength`` (0..2)"""

    name = "sharpen"

    def __init__(self, strength: float = 1.0):
        self.strength = min(max(float(strength), 0.0), MAX_SHARPEN_STRENGTH)

    def apply(self, frame: Frame) -> Frame:
        padded = np.pad(frame.pixels.astype(np.float64), ((1, 1), (1, 1), (0, 0)), mode="edge")
        centre = padded[1:-1, 1:-1]
        neighbours = padded[:-2, 1:-1] + padded[2:, 1:-1] + padded[1:-1, :-2] + padded[1:-1, 2:]
        return Frame(to_uint8((5.0 * centre - neighbours) * self.strength))
