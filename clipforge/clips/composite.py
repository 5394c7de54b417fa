"""Composite clips

Layer 0 is the opaque base canvas; layers 1..n are blended onto it in
order. The composite lasts as long as its longest layer. Overlay layers
that are exhausted, or whose frame cannot be produced, are skipped for
that frame; errors from the base layer always propagate. Past the end of
the base layer the canvas is black.
"""

import logging
from typing import List, Sequence, Tuple, Union

import numpy as np

from ..compositing import CompositionLayer, composite_frames
from ..exceptions import ClipforgeError
from ..frame import Frame
from .base import Clip, ClipKind, silence

logger = logging.getLogger(__name__)

LayerSpec = Union[Clip, CompositionLayer]

class CompositeClip(Clip):
    """Multi-layer composite; size and frame rate come from layer 0"""

    kind = ClipKind.COMPOSITE

    def __init__(self, layers: Sequence[LayerSpec]):
        if not layers:
            raise ValueError("A composite needs at least one layer")
        self.layers: List[CompositionLayer] = [
            layer if isinstance(layer, CompositionLayer) else CompositionLayer(layer)
            for layer in layers
        ]
        base = self.layers[0].clip
        sources = []
        for layer in self.layers:
            for source in layer.clip._sources:
                if source not in sources:
                    sources.append(source)
        super().__init__(
            sources,
            duration=max(layer.clip.duration for layer in self.layers),
            fps=base.fps,
            width=base.width,
            height=base.height,
        )

    @property
    def base(self) -> Clip:
        return self.layers[0].clip

    @property
    def has_audio(self) -> bool:
        return self.base.has_audio

    def _audio_format(self) -> Tuple[int, int]:
        return self.base._audio_format()

    def _frame_at(self, t: float) -> Frame:
        base_clip = self.base
        if t <= base_clip.duration:
            base = base_clip._frame_at(t)
        else:
            base = Frame.blank(self.width, self.height)

        overlays = []
        for index, layer in enumerate(self.layers[1:], start=1):
            if t > layer.clip.duration:
                continue
            try:
                overlays.append((layer.clip._frame_at(t), layer))
            except ClipforgeError as e:
                logger.debug("Layer %d skipped at %.3fs: %s", index, t, e)
        return composite_frames(base, overlays)

    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        base_clip = self.base
        if t >= base_clip.duration:
            return silence(duration, *self._audio_format())
        return base_clip._audio_at(t, min(duration, base_clip.duration - t))
