"""Audio streaming through ffmpeg

Samples travel as interleaved 32-bit little-endian floats. Reads are
duration-limited windows returned as ``(samples, channels)`` float32
arrays; writes push the same layout into an encoder's stdin.
"""

import logging
import subprocess
import threading
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ..config import (
    AUDIO_CHUNK_SECONDS, BYTES_PER_SAMPLE, DEFAULT_AUDIO_BITRATE,
    DEFAULT_AUDIO_CODEC, DEFAULT_CHANNELS, DEFAULT_SAMPLE_RATE,
)
from ..exceptions import ProbeError, ProtocolError, RangeError, StateError
from ..process import ProcessSupervisor
from .command_builders import build_audio_encode_command, build_audio_read_command
from .probe import MediaInfo, probe_media
from .writer import PipeWriter

logger = logging.getLogger(__name__)

SAMPLE_DTYPE = np.dtype("<f4")

def empty_samples(channels: int) -> np.ndarray:
    return np.zeros((0, channels), dtype=np.float32)

class AudioReader:
    """Reads windows of decoded audio from a media file"""

    def __init__(self, path: Union[str, Path], supervisor: ProcessSupervisor):
        self.path = Path(path)
        self.supervisor = supervisor
        self.token = supervisor.token.child()
        self.info: Optional[MediaInfo] = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def sample_rate(self) -> int:
        return self._require_open().audio_sample_rate or DEFAULT_SAMPLE_RATE

    @property
    def channels(self) -> int:
        return self._require_open().audio_channels or DEFAULT_CHANNELS

    def open(self, info: Optional[MediaInfo] = None) -> MediaInfo:
        """Probe the source (or reuse ``info``) and require an audio stream"""
        with self._lock:
            if self._closed:
                raise StateError(f"Audio reader for {self.path} is closed", module="audio")
            if self.info is None:
                info = info or probe_media(self.path)
                if not info.has_audio:
                    raise ProbeError(f"No audio stream in {self.path}", module="audio")
                self.info = info
            return self.info

    def _require_open(self) -> MediaInfo:
        if self._closed:
            raise StateError(f"Audio reader for {self.path} is closed", module="audio")
        if self.info is None:
            raise StateError(f"Audio reader for {self.path} was never opened", module="audio")
        return self.info

    def read(
        self,
        timestamp: float,
        duration: float = AUDIO_CHUNK_SECONDS,
        sample_rate: Optional[int] = None,
        channels: Optional[int] = None,
    ) -> np.ndarray:
        """
        Read ``duration`` seconds of samples starting at ``timestamp``.

        The window is clamped to the end of the stream, so reads near the end
        return fewer samples and a read at exactly the end returns none.
        ``sample_rate`` and ``channels`` override the stream's own format;
        ffmpeg resamples and remixes to match.

        Raises:
            RangeError: Timestamp outside [0, duration]
            ProtocolError: Byte count is not a whole number of sample frames
            ProcessExitError: ffmpeg exited non-zero
        """
        info = self._require_open()
        if not 0 <= timestamp <= info.duration:
            raise RangeError(
                f"Timestamp {timestamp:.3f}s outside [0, {info.duration:.3f}] for {self.path.name}",
                module="audio",
            )
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        sample_rate = sample_rate or self.sample_rate
        channels = channels or self.channels
        window = min(duration, info.duration - timestamp)
        if window <= 0:
            return empty_samples(channels)

        cmd = build_audio_read_command(self.path, timestamp, window, sample_rate, channels)
        process = self.supervisor.start(
            cmd[0], cmd[1:],
            stdout=subprocess.PIPE,
            capture_stderr=True,
            token=self.token,
        )
        try:
            data = process.stdout.read()
            if process.wait() != 0:
                raise process.exit_error_with_stderr(f"Reading audio of {self.path.name} at {timestamp:.3f}s failed", "audio")
        finally:
            process.stdout.close()

        frame_bytes = BYTES_PER_SAMPLE * channels
        if len(data) % frame_bytes:
            raise ProtocolError(
                f"Audio read returned {len(data)} bytes, not a multiple of {frame_bytes}",
                module="audio",
            )
        return np.frombuffer(data, dtype=SAMPLE_DTYPE).astype(np.float32).reshape(-1, channels)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.token.cancel()

    def __enter__(self) -> "AudioReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

class AudioWriter(PipeWriter):
    """Encodes interleaved float samples into an audio file"""

    module = "audio"

    def __init__(self, supervisor: ProcessSupervisor):
        super().__init__(supervisor)
        self.sample_rate = DEFAULT_SAMPLE_RATE
        self.channels = DEFAULT_CHANNELS
        self.samples_written = 0

    def open(
        self,
        destination: Union[str, Path],
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = DEFAULT_CHANNELS,
        codec: str = DEFAULT_AUDIO_CODEC,
        bitrate: str = DEFAULT_AUDIO_BITRATE,
    ) -> "AudioWriter":
        if sample_rate <= 0 or channels <= 0:
            raise ValueError(f"Invalid audio format {sample_rate} Hz / {channels} ch")
        cmd = build_audio_encode_command(destination, sample_rate, channels, codec, bitrate)
        self.sample_rate, self.channels = sample_rate, channels
        self._spawn(destination, cmd)
        logger.info("Encoding audio %s (%d Hz, %d ch, %s %s)", destination, sample_rate, channels, codec, bitrate)
        return self

    def write_samples(self, samples: np.ndarray) -> None:
        """
        Push ``(samples, channels)`` float data into the encoder.

        Raises:
            ProtocolError: Channel count differs from the declared one
            ProcessExitError: The encoder already exited or the pipe broke
        """
        self._require_open()
        samples = np.asarray(samples, dtype=np.float32)
        if samples.ndim == 1 and self.channels == 1:
            samples = samples.reshape(-1, 1)
        if samples.ndim != 2 or samples.shape[1] != self.channels:
            raise ProtocolError(
                f"Samples shaped {samples.shape}, encoder expects {self.channels} channel(s)",
                module=self.module,
            )
        if not len(samples):
            return
        self._write(samples.astype(SAMPLE_DTYPE).tobytes(), f"sample {self.samples_written}")
        self.samples_written += len(samples)
