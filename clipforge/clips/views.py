"""Derived clip views: time window, speed, volume, effect chain, soundtrack

Views read through their parent's internal ``_frame_at``/``_audio_at`` so
they keep working after the parent clip itself has been closed; the
underlying sources stay open through the references each view holds.
"""

import logging
from typing import Iterable, Optional, Tuple

import numpy as np

from ..effects import Effect, EffectChain
from ..exceptions import EffectError
from ..frame import Frame
from .base import Clip, ClipKind

logger = logging.getLogger(__name__)

class _View(Clip):
    """Clip defined over a single parent clip"""

    def __init__(self, parent: Clip, extra_sources=(), **overrides):
        params = dict(
            duration=parent.duration,
            fps=parent.fps,
            width=parent.width,
            height=parent.height,
            start=parent.start,
            speed_factor=parent.speed_factor,
            volume=parent.volume,
        )
        params.update(overrides)
        sources = list(parent._sources)
        sources.extend(s for s in extra_sources if s not in sources)
        super().__init__(sources, **params)
        self.parent = parent

    @property
    def has_audio(self) -> bool:
        return self.parent.has_audio

    def _audio_format(self) -> Tuple[int, int]:
        return self.parent._audio_format()

class SubClip(_View):
    """Window ``[start, end)`` of the parent, re-based to start at 0"""

    kind = ClipKind.SUBCLIP

    def __init__(self, parent: Clip, start: float, end: float):
        super().__init__(
            parent,
            duration=end - start,
            start=parent.start + start * parent.speed_factor,
        )
        self.offset = float(start)

    def _frame_at(self, t: float) -> Frame:
        return self.parent._frame_at(min(self.offset + t, self.parent.duration))

    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        return self.parent._audio_at(self.offset + t, duration)

class SpeedClip(_View):
    """Parent played ``factor`` times faster; duration shrinks accordingly"""

    kind = ClipKind.SPEED

    def __init__(self, parent: Clip, factor: float):
        super().__init__(
            parent,
            duration=parent.duration / factor,
            speed_factor=parent.speed_factor * factor,
        )
        self.factor = float(factor)

    def _frame_at(self, t: float) -> Frame:
        return self.parent._frame_at(min(t * self.factor, self.parent.duration))

    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        source_t = min(t * self.factor, self.parent.duration)
        window = min(duration * self.factor, self.parent.duration - source_t)
        target = int(round(duration * self.sample_rate))
        if window <= 0:
            return np.zeros((target, self.channels), dtype=np.float32)
        samples = self.parent._audio_at(source_t, window)
        return resample(samples, target)

def resample(samples: np.ndarray, count: int) -> np.ndarray:
    """Linearly resample ``(n, channels)`` samples to ``count`` rows"""
    channels = samples.shape[1]
    if count <= 0 or not len(samples):
        return np.zeros((max(count, 0), channels), dtype=np.float32)
    if len(samples) == count:
        return samples
    src = np.linspace(0.0, 1.0, num=len(samples))
    dst = np.linspace(0.0, 1.0, num=count)
    out = np.empty((count, channels), dtype=np.float32)
    for ch in range(channels):
        out[:, ch] = np.interp(dst, src, samples[:, ch])
    return out

class VolumeClip(_View):
    """Parent with its audio scaled by ``factor``; frames unchanged"""

    kind = ClipKind.VOLUME

    def __init__(self, parent: Clip, factor: float):
        super().__init__(parent, volume=parent.volume * factor)
        self.factor = float(factor)

    def _frame_at(self, t: float) -> Frame:
        return self.parent._frame_at(t)

    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        return (self.parent._audio_at(t, duration) * self.factor).astype(np.float32)

class EffectClip(_View):
    """
    Parent frames passed through an effect chain.

    The declared size is recomputed from the chain's size rules on every
    mutation; a frame whose actual size disagrees is an EffectError.
    """

    kind = ClipKind.EFFECT

    def __init__(self, parent: Clip, effects: Iterable[Effect] = ()):
        chain = effects if isinstance(effects, EffectChain) else EffectChain(effects)
        width, height = chain.size_for(parent.width, parent.height)
        super().__init__(parent, width=width, height=height)
        self.chain = chain

    @property
    def effects(self):
        return self.chain.effects

    def add_effect(self, effect: Effect) -> None:
        self._require_open()
        self.chain.append(effect)
        self._update_size()

    def _update_size(self) -> None:
        self.width, self.height = self.chain.size_for(self.parent.width, self.parent.height)
        logger.debug("Effect chain %r now produces %dx%d", self.chain, self.width, self.height)

    def with_effects(self, *effects) -> Clip:
        # Extend a copy of this chain rather than nesting another view
        self._require_open()
        return EffectClip(self.parent, self.chain.copy().extend(effects))

    def _frame_at(self, t: float) -> Frame:
        frame = self.chain.apply(self.parent._frame_at(t))
        if frame.size != self.size:
            raise EffectError(
                f"Effect chain produced {frame.width}x{frame.height}, declared {self.width}x{self.height}",
                module="clip",
            )
        return frame

    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        return self.parent._audio_at(t, duration)

class SoundtrackClip(_View):
    """
    Parent frames with the sound of another clip, or muted.

    With ``audio=None`` the clip is silent at the parent's sample format.
    Otherwise samples come from ``audio`` and go silent past its end; the
    view holds references on both clips' sources.
    """

    kind = ClipKind.SOUNDTRACK

    def __init__(self, parent: Clip, audio: Optional[Clip]):
        extra = audio._sources if audio is not None else ()
        super().__init__(parent, extra_sources=extra)
        self.audio = audio

    @property
    def has_audio(self) -> bool:
        return self.audio is not None and self.audio.has_audio

    def _audio_format(self) -> Tuple[int, int]:
        if self.audio is not None:
            return self.audio._audio_format()
        return self.parent._audio_format()

    def _frame_at(self, t: float) -> Frame:
        return self.parent._frame_at(t)

    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        sample_rate, channels = self._audio_format()
        target = int(round(duration * sample_rate))
        if not self.has_audio or t >= self.audio.duration:
            return np.zeros((target, channels), dtype=np.float32)
        samples = self.audio._audio_at(t, min(duration, self.audio.duration - t))
        if len(samples) < target:
            padding = np.zeros((target - len(samples), channels), dtype=np.float32)
            samples = np.concatenate([samples, padding])
        return samples
