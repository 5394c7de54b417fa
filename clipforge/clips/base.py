"""Clip interface

A clip is a time-bounded, speed-scaled view over one or more shared
sources. Every variant in the closed set (source, audio file, subclip,
speed, volume, effect, soundtrack, composite) derives from Clip and
implements only ``_frame_at`` and ``_audio_at``; the public
``get_frame``/``get_audio_frame`` own the closed-state and range checks.

Each clip holds one reference on every SharedSource it reads from, so
closing a clip never invalidates another clip derived from the same file.
"""

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

import numpy as np

from ..config import AUDIO_CHUNK_SECONDS
from ..exceptions import RangeError, StateError
from ..frame import Frame

if TYPE_CHECKING:
    from .source import SharedSource

class ClipKind(Enum):
    SOURCE = "source"
    SUBCLIP = "subclip"
    SPEED = "speed"
    VOLUME = "volume"
    EFFECT = "effect"
    COMPOSITE = "composite"
    AUDIO = "audio"
    SOUNDTRACK = "soundtrack"

def silence(duration: float, sample_rate: int, channels: int) -> np.ndarray:
    return np.zeros((max(int(round(duration * sample_rate)), 0), channels), dtype=np.float32)

class Clip(ABC):
    """
    Base of all clip variants.

    Attributes:
        duration: Clip length in seconds
        start: Offset of the clip's first frame in source time
        speed_factor: Source seconds per clip second
        fps, width, height: Output frame geometry and rate
        volume: Audio gain relative to the source
    """

    kind: ClipKind

    def __init__(
        self,
        sources: Iterable["SharedSource"],
        duration: float,
        fps: float,
        width: int,
        height: int,
        start: float = 0.0,
        speed_factor: float = 1.0,
        volume: float = 1.0,
    ):
        self.duration = float(duration)
        self.fps = float(fps)
        self.width = int(width)
        self.height = int(height)
        self.start = float(start)
        self.speed_factor = float(speed_factor)
        self.volume = float(volume)
        self._closed = False
        self._close_lock = threading.Lock()
        self._sources: Tuple["SharedSource", ...] = ()
        acquired = []
        try:
            for source in sources:
                acquired.append(source.acquire())
        except StateError:
            for source in acquired:
                source.release()
            raise
        self._sources = tuple(acquired)

    @property
    def end(self) -> float:
        """Offset just past the clip's last frame in source time"""
        return self.start + self.duration * self.speed_factor

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sample_rate(self) -> int:
        return self._audio_format()[0]

    @property
    def channels(self) -> int:
        return self._audio_format()[1]

    @property
    def has_audio(self) -> bool:
        return False

    def _audio_format(self) -> Tuple[int, int]:
        raise NotImplementedError

    def _require_open(self) -> None:
        if self._closed:
            raise StateError(f"{type(self).__name__} is closed", module="clip")

    def _check_time(self, t: float) -> None:
        if not 0 <= t <= self.duration:
            raise RangeError(f"Time {t:.3f}s outside [0, {self.duration:.3f}]", module="clip")

    def get_frame(self, t: float) -> Frame:
        """
        Frame at clip-local time ``t`` seconds.

        Raises:
            RangeError: ``t`` outside [0, duration]; nothing is spawned
            StateError: The clip is closed
        """
        self._require_open()
        self._check_time(t)
        return self._frame_at(t)

    def get_audio_frame(self, t: float, duration: float = AUDIO_CHUNK_SECONDS) -> np.ndarray:
        """Audio samples ``(samples, channels)`` for ``duration`` seconds from ``t``"""
        self._require_open()
        self._check_time(t)
        window = min(duration, self.duration - t)
        if window <= 0:
            return silence(0, self.sample_rate, self.channels)
        return self._audio_at(t, window)

    @abstractmethod
    def _frame_at(self, t: float) -> Frame:
        """Frame at an already validated clip-local time"""

    @abstractmethod
    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        """Samples for an already validated, non-empty window"""

    def iter_frames(self, fps: Optional[float] = None):
        """Yield ``(t, frame)`` at ``fps`` (default: the clip's own rate)"""
        fps = fps or self.fps
        for i in range(int(self.duration * fps)):
            t = i / fps
            if t > self.duration:
                break
            yield t, self.get_frame(t)

    # Transforms; each returns a new, independently closable clip

    def subclip(self, start: float, end: float) -> "Clip":
        if start < 0 or end > self.duration or start >= end:
            raise RangeError(
                f"Invalid subclip bounds [{start:.3f}, {end:.3f}] for a {self.duration:.3f}s clip",
                module="clip",
            )
        self._require_open()
        from .views import SubClip
        return SubClip(self, start, end)

    def with_speed(self, factor: float) -> "Clip":
        if factor <= 0:
            raise ValueError(f"Speed factor must be positive, got {factor}")
        self._require_open()
        from .views import SpeedClip
        return SpeedClip(self, factor)

    def with_volume(self, factor: float) -> "Clip":
        if factor < 0:
            raise ValueError(f"Volume factor must not be negative, got {factor}")
        self._require_open()
        from .views import VolumeClip
        return VolumeClip(self, factor)

    def with_effects(self, *effects) -> "Clip":
        self._require_open()
        from .views import EffectClip
        return EffectClip(self, effects)

    def with_audio(self, audio: "Clip") -> "Clip":
        """This clip's frames with ``audio``'s sound; silence past its end"""
        self._require_open()
        audio._require_open()
        from .views import SoundtrackClip
        return SoundtrackClip(self, audio)

    def without_audio(self) -> "Clip":
        self._require_open()
        from .views import SoundtrackClip
        return SoundtrackClip(self, None)

    def close(self) -> None:
        """Release this clip's source references (idempotent)"""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        for source in self._sources:
            source.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self.width}x{self.height} "
            f"{self.duration:.3f}s @ {self.fps:.2f} fps>"
        )
