"""Effect interface

An effect is a pure frame transform paired with a closed-form rule for
the size of the frame it produces. The two must agree for every input
size: ``apply(f).size == output_size(*f.size)``.
"""

from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np

from ..frame import Frame

Size = Tuple[int, int]

def round_up_even(value: int) -> int:
    return value + 1 if value % 2 else value

def to_uint8(values: np.ndarray) -> np.ndarray:
    """Round and clamp float channel values onto the 0..255 scale"""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)

class Effect(ABC):
    """Named, parameterized frame transform"""

    name = "effect"

    def output_size(self, width: int, height: int) -> Size:
        """Size of the frame produced for a ``width`` x ``height`` input"""
        return width, height

    @abstractmethod
    def apply(self, frame: Frame) -> Frame:
        """Transform ``frame`` into a new frame"""

    def __call__(self, frame: Frame) -> Frame:
        return self.apply(frame)

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in vars(self).items() if not k.startswith("_"))
        return f"{type(self).__name__}({params})"
