"""Compositing engine

Merges overlay frames onto a copy of a base frame. Each overlay is scaled
(nearest neighbour), optionally rotated, placed, clipped to the canvas
and blended with its layer's mode and opacity.
"""

import logging
from typing import Iterable, Optional, Tuple

import numpy as np

from ..effects.geometry import Rotate, resample_nearest
from ..exceptions import EffectError
from ..frame import Frame
from .blend import blend
from .layer import CompositionLayer

logger = logging.getLogger(__name__)

def transform_overlay(frame: Frame, layer: CompositionLayer) -> Optional[np.ndarray]:
    """Scaled and rotated pixels of an overlay, or None if it vanishes"""
    pixels = frame.pixels
    if layer.scale != 1.0:
        target_w = int(frame.width * layer.scale)
        target_h = int(frame.height * layer.scale)
        if target_w <= 0 or target_h <= 0:
            return None
        pixels = resample_nearest(pixels, target_w, target_h)
    if layer.rotation % 360:
        pixels = Rotate(layer.rotation).apply(Frame(pixels)).pixels
    return pixels

def blend_onto(canvas: np.ndarray, overlay: np.ndarray, layer: CompositionLayer) -> None:
    """Blend ``overlay`` into ``canvas`` in place, clipping to the canvas"""
    base_h, base_w = canvas.shape[:2]
    over_h, over_w = overlay.shape[:2]
    off_x, off_y = layer.position.offset((base_w, base_h), (over_w, over_h))

    x0, y0 = max(off_x, 0), max(off_y, 0)
    x1, y1 = min(off_x + over_w, base_w), min(off_y + over_h, base_h)
    if x0 >= x1 or y0 >= y1:
        return
    region = canvas[y0:y1, x0:x1]
    top = overlay[y0 - off_y:y1 - off_y, x0 - off_x:x1 - off_x]
    canvas[y0:y1, x0:x1] = blend(region, top, layer.blend_mode, layer.opacity)

def composite_frames(base: Frame, overlays: Iterable[Tuple[Frame, CompositionLayer]]) -> Frame:
    """
    Composite overlay frames onto ``base``.

    The base is copied, never mutated. With no overlays the result is
    pixel-identical to ``base``.
    """
    canvas = base.to_array()
    for frame, layer in overlays:
        try:
            overlay = transform_overlay(frame, layer)
        except EffectError as e:
            logger.debug("Layer transform failed, skipped: %s", e)
            continue
        if overlay is None:
            logger.debug("Layer scaled to nothing at scale %.3f, skipped", layer.scale)
            continue
        blend_onto(canvas, overlay, layer)
    return Frame(canvas)
