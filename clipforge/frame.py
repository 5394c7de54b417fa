"""Raw RGB frames

A Frame wraps a read-only ``(height, width, 3)`` uint8 array. The wire
layout is exactly ``width * height * 3`` bytes, row-major, top-to-bottom,
left-to-right, R G B per pixel with no padding.
"""

import numpy as np

from .config import BYTES_PER_PIXEL
from .exceptions import ProtocolError

class Frame:
    """Immutable RGB bitmap"""

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != BYTES_PER_PIXEL:
            raise ValueError(f"Expected (height, width, 3) pixels, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            pixels = np.clip(pixels, 0, 255).astype(np.uint8)
        else:
            pixels = np.array(pixels, copy=True)
        pixels.flags.writeable = False
        self._pixels = pixels

    @staticmethod
    def frame_size(width: int, height: int) -> int:
        """Byte length of one raw frame"""
        return width * height * BYTES_PER_PIXEL

    @classmethod
    def from_bytes(cls, data: bytes, width: int, height: int) -> "Frame":
        expected = cls.frame_size(width, height)
        if len(data) != expected:
            raise ProtocolError(
                f"Raw frame is {len(data)} bytes, expected {expected} for {width}x{height}",
                module="frame",
            )
        pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, BYTES_PER_PIXEL)
        return cls(pixels)

    @classmethod
    def blank(cls, width: int, height: int) -> "Frame":
        """All-black frame"""
        return cls(np.zeros((height, width, BYTES_PER_PIXEL), dtype=np.uint8))

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self):
        return self.width, self.height

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the pixel array"""
        return self._pixels

    def to_array(self) -> np.ndarray:
        """Writable copy of the pixels"""
        return self._pixels.copy()

    def to_bytes(self) -> bytes:
        return self._pixels.tobytes()

    def pixel(self, x: int, y: int):
        r, g, b = self._pixels[y, x]
        return int(r), int(g), int(b)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and bool(np.array_equal(self._pixels, other._pixels))

    __hash__ = None

    def __repr__(self) -> str:
        return f"<Frame {self.width}x{self.height}>"
