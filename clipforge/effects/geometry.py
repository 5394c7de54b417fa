"""Geometric effects: resize, rotate, crop"""

import math

import numpy as np

from ..config import MAX_INPUT_SIDE, MAX_ROTATE_PIXELS, MAX_ROTATE_SIDE
from ..exceptions import EffectError
from ..frame import Frame
from .base import Effect, Size, round_up_even

class Resize(Effect):
    """Nearest-neighbour resample to a fixed size, rounded up to even sides"""

    name = "resize"

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise EffectError(f"Invalid resize target {width}x{height}", module="effects")
        self.width = round_up_even(int(width))
        self.height = round_up_even(int(height))

    def output_size(self, width: int, height: int) -> Size:
        return self.width, self.height

    def apply(self, frame: Frame) -> Frame:
        return Frame(resample_nearest(frame.pixels, self.width, self.height))

def resample_nearest(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Nearest-neighbour resample of an (h, w, 3) array to ``width`` x ``height``"""
    src_h, src_w = pixels.shape[:2]
    xs = np.minimum(np.arange(width) * src_w // width, src_w - 1)
    ys = np.minimum(np.arange(height) * src_h // height, src_h - 1)
    return pixels[ys[:, None], xs[None, :]]

class Rotate(Effect):
    """Rotation by ``angle`` degrees about the frame centre.

    The output is the rotated bounding box (even sides, clamped); areas
    not covered by the source stay black.
    """

    name = "rotate"

    def __init__(self, angle: float):
        self.angle = float(angle)

    def _check_input(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise EffectError(f"Invalid rotate input size {width}x{height}", module="effects")
        if width > MAX_INPUT_SIDE or height > MAX_INPUT_SIDE:
            raise EffectError(f"Rotate input too large: {width}x{height}", module="effects")

    def output_size(self, width: int, height: int) -> Size:
        self._check_input(width, height)
        radians = math.radians(self.angle)
        abs_cos = abs(math.cos(radians))
        abs_sin = abs(math.sin(radians))
        new_w = round_up_even(int(width * abs_cos + height * abs_sin))
        new_h = round_up_even(int(width * abs_sin + height * abs_cos))

        new_w = min(new_w, MAX_ROTATE_SIDE - MAX_ROTATE_SIDE % 2)
        new_h = min(new_h, MAX_ROTATE_SIDE - MAX_ROTATE_SIDE % 2)
        if new_w * new_h > MAX_ROTATE_PIXELS:
            scale = math.sqrt(MAX_ROTATE_PIXELS / (new_w * new_h))
            new_w = int(new_w * scale) // 2 * 2
            new_h = int(new_h * scale) // 2 * 2
        if new_w <= 0 or new_h <= 0:
            raise EffectError(f"Rotated size {new_w}x{new_h} is invalid", module="effects")
        return new_w, new_h

    def apply(self, frame: Frame) -> Frame:
        width, height = frame.size
        new_w, new_h = self.output_size(width, height)
        radians = math.radians(self.angle)
        cos, sin = math.cos(radians), math.sin(radians)

        dx = np.arange(new_w, dtype=np.float64)[None, :] - new_w / 2.0
        dy = np.arange(new_h, dtype=np.float64)[:, None] - new_h / 2.0
        src_x = np.trunc(width / 2.0 + dx * cos + dy * sin).astype(np.int64)
        src_y = np.trunc(height / 2.0 - dx * sin + dy * cos).astype(np.int64)
        inside = (src_x >= 0) & (src_x < width) & (src_y >= 0) & (src_y < height)

        out = np.zeros((new_h, new_w, 3), dtype=np.uint8)
        out[inside] = frame.pixels[src_y[inside], src_x[inside]]
        return Frame(out)

class Crop(Effect):
    """Copy of the sub-rectangle at (x, y), clamped to the source"""

    name = "crop"

    def __init__(self, x: int, y: int, width: int, height: int):
        if width <= 0 or height <= 0:
            raise EffectError(f"Invalid crop size {width}x{height}", module="effects")
        self.x = max(0, int(x))
        self.y = max(0, int(y))
        self.width = int(width)
        self.height = int(height)

    def output_size(self, width: int, height: int) -> Size:
        out_w = min(self.width, width - self.x)
        out_h = min(self.height, height - self.y)
        if out_w <= 0 or out_h <= 0:
            raise EffectError(
                f"Crop origin ({self.x}, {self.y}) lies outside a {width}x{height} frame",
                module="effects",
            )
        return out_w, out_h

    def apply(self, frame: Frame) -> Frame:
        out_w, out_h = self.output_size(*frame.size)
        return Frame(frame.pixels[self.y:self.y + out_h, self.x:self.x + out_w])
