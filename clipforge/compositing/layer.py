"""Composition layers and their placement"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple

from .blend import BlendMode

if TYPE_CHECKING:
    from ..clips.base import Clip

@dataclass(frozen=True)
class Position:
    """Absolute pixel offset of a layer's top-left corner, or centred"""
    x: int = 0
    y: int = 0
    centered: bool = False

    @classmethod
    def center(cls) -> "Position":
        return cls(centered=True)

    def offset(self, base_size: Tuple[int, int], layer_size: Tuple[int, int]) -> Tuple[int, int]:
        """Top-left of a ``layer_size`` layer on a ``base_size`` canvas"""
        if not self.centered:
            return int(self.x), int(self.y)
        (base_w, base_h), (layer_w, layer_h) = base_size, layer_size
        return int((base_w - layer_w) / 2), int((base_h - layer_h) / 2)

@dataclass
class CompositionLayer:
    """
    One source in a composite.

    Layer 0 of a composite is the base canvas: its placement, scale,
    rotation, opacity and blend mode are ignored.
    """
    clip: "Clip"
    position: Position = Position()
    scale: float = 1.0
    rotation: float = 0.0
    opacity: float = 1.0
    blend_mode: BlendMode = BlendMode.OVERLAY

    def __post_init__(self):
        if self.scale <= 0:
            raise ValueError(f"Layer scale must be positive, got {self.scale}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Layer opacity must be within [0, 1], got {self.opacity}")
        self.blend_mode = BlendMode.parse(self.blend_mode)
