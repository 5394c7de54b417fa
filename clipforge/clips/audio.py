"""Audio-only clips

An AudioFileClip reads sound from a file with or without a video stream.
It has no frames: its size is 0x0 and get_frame is a StateError. Subclip,
speed and volume views apply to it like to any other clip, and it can be
attached to a video clip through ``with_audio``.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from ..exceptions import ClipforgeError, StateError
from ..frame import Frame
from ..process import ProcessSupervisor
from ..transcoder import AudioReader, MediaInfo
from .base import Clip, ClipKind
from .source import SharedSource

logger = logging.getLogger(__name__)

class AudioFileClip(Clip):
    """
    Clip over the audio stream of a media file.

    Args:
        source: Shared source whose ``audio`` reader is open
        info: Media properties of the file
        sample_rate: Output sample rate; defaults to the stream's own
        channels: Output channel count; defaults to the stream's own
    """

    kind = ClipKind.AUDIO

    def __init__(
        self,
        source: SharedSource,
        info: MediaInfo,
        sample_rate: Optional[int] = None,
        channels: Optional[int] = None,
    ):
        if source.audio is None:
            raise StateError(f"Source {source.path} has no audio reader", module="clip")
        super().__init__([source], duration=info.duration, fps=0.0, width=0, height=0)
        self.source = source
        self.info = info
        self._sample_rate = sample_rate or source.audio.sample_rate
        self._channels = channels or source.audio.channels

    @classmethod
    def open(cls, path: Union[str, Path], supervisor: ProcessSupervisor) -> "AudioFileClip":
        """
        Read the media properties of ``path`` and open an audio clip over it.

        Raises:
            ProbeError: The file is missing, unreadable or has no audio
        """
        path = Path(path)
        audio = AudioReader(path, supervisor)
        try:
            info = audio.open()
        except ClipforgeError:
            audio.close()
            raise
        logger.info(
            "Opened audio %s (%.2fs, %d Hz, %d ch)",
            path.name, info.duration, audio.sample_rate, audio.channels,
        )
        return cls(SharedSource(path, None, audio), info)

    @property
    def path(self) -> Path:
        return self.source.path

    @property
    def has_audio(self) -> bool:
        return True

    def _audio_format(self) -> Tuple[int, int]:
        return self._sample_rate, self._channels

    def with_sample_rate(self, sample_rate: int) -> "AudioFileClip":
        """Same audio resampled to ``sample_rate`` Hz"""
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")
        self._require_open()
        return AudioFileClip(self.source, self.info, sample_rate, self._channels)

    def with_channels(self, channels: int) -> "AudioFileClip":
        """Same audio remixed to ``channels`` channels"""
        if channels <= 0:
            raise ValueError(f"Channel count must be positive, got {channels}")
        self._require_open()
        return AudioFileClip(self.source, self.info, self._sample_rate, channels)

    def _frame_at(self, t: float) -> Frame:
        raise StateError(f"{self.path.name} is an audio clip and has no frames", module="clip")

    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        return self.source.audio.read(t, duration, self._sample_rate, self._channels)

    def __repr__(self) -> str:
        return (
            f"<AudioFileClip {self.path.name} {self.duration:.3f}s "
            f"@ {self._sample_rate} Hz x{self._channels}>"
        )
