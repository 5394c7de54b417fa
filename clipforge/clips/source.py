"""File-backed clips and the shared decoder handle"""

import logging
import threading
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from ..config import DEFAULT_CHANNELS, DEFAULT_FPS, DEFAULT_SAMPLE_RATE
from ..exceptions import ClipforgeError, StateError
from ..frame import Frame
from ..process import ProcessSupervisor
from ..transcoder import AudioReader, MediaInfo, VideoReader
from .base import Clip, ClipKind, silence

logger = logging.getLogger(__name__)

class SharedSource:
    """
    Reference-counted decoders for one media file.

    Every clip reading from the file holds one reference; the readers are
    closed when the last reference is released. Acquiring a closed source
    is a StateError. Audio-only sources carry no video reader.
    """

    def __init__(self, path: Path, video: Optional[VideoReader], audio: Optional[AudioReader] = None):
        self.path = path
        self.video = video
        self.audio = audio
        self._refs = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def refcount(self) -> int:
        with self._lock:
            return self._refs

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire(self) -> "SharedSource":
        with self._lock:
            if self._closed:
                raise StateError(f"Source {self.path} is closed", module="source")
            self._refs += 1
        return self

    def release(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._refs -= 1
            if self._refs > 0:
                return
            self._closed = True
        logger.debug("Last reference to %s released, closing readers", self.path)
        if self.video is not None:
            self.video.close()
        if self.audio is not None:
            self.audio.close()

class SourceClip(Clip):
    """Clip over a whole media file"""

    kind = ClipKind.SOURCE

    def __init__(self, source: SharedSource, info: MediaInfo):
        super().__init__(
            [source],
            duration=info.duration,
            fps=info.fps or DEFAULT_FPS,
            width=info.width,
            height=info.height,
        )
        self.source = source
        self.info = info

    @classmethod
    def open(cls, path: Union[str, Path], supervisor: ProcessSupervisor) -> "SourceClip":
        """
        Probe ``path`` and open a clip over it.

        Raises:
            ProbeError: The file is missing, unreadable or has no video
        """
        path = Path(path)
        video = VideoReader(path, supervisor)
        try:
            info = video.open()
        except ClipforgeError:
            video.close()
            raise
        audio = None
        if info.has_audio:
            audio = AudioReader(path, supervisor)
            try:
                audio.open(info)
            except ClipforgeError as e:
                logger.warning("Audio of %s unavailable: %s", path.name, e)
                audio.close()
                audio = None
        return cls(SharedSource(path, video, audio), info)

    @property
    def path(self) -> Path:
        return self.source.path

    @property
    def has_audio(self) -> bool:
        return self.source.audio is not None

    def _audio_format(self) -> Tuple[int, int]:
        if self.source.audio is not None:
            return self.source.audio.sample_rate, self.source.audio.channels
        return DEFAULT_SAMPLE_RATE, DEFAULT_CHANNELS

    def _frame_at(self, t: float) -> Frame:
        return self.source.video.get_frame(t)

    def _audio_at(self, t: float, duration: float) -> np.ndarray:
        if self.source.audio is None:
            return silence(duration, *self._audio_format())
        return self.source.audio.read(t, duration)
