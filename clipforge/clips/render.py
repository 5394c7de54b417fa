"""Rendering clips to files

Frames are requested at ``i / fps`` and pushed through one encoder in
order. If anything fails the encoder is aborted, which terminates and
unregisters its process before the error reaches the caller.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from ..config import (
    AUDIO_CHUNK_SECONDS, DEFAULT_AUDIO_BITRATE, DEFAULT_AUDIO_CODEC,
    DEFAULT_VIDEO_BITRATE, DEFAULT_VIDEO_CODEC, PROGRESS_LOG_INTERVAL,
)
from ..process import ProcessSupervisor
from ..transcoder import AudioWriter, VideoWriter
from .base import Clip

logger = logging.getLogger(__name__)

def write_videofile(
    clip: Clip,
    path: Union[str, Path],
    supervisor: ProcessSupervisor,
    fps: Optional[float] = None,
    codec: str = DEFAULT_VIDEO_CODEC,
    bitrate: str = DEFAULT_VIDEO_BITRATE,
) -> int:
    """
    Encode every frame of ``clip`` into ``path``.

    Args:
        clip: Clip to render
        path: Destination container file (overwritten)
        supervisor: Supervisor owning the encoder process
        fps: Output frame rate (default: the clip's)
        codec: ffmpeg video codec
        bitrate: Target video bitrate

    Returns:
        Number of frames written
    """
    fps = fps or clip.fps
    total = int(clip.duration * fps)
    writer = VideoWriter(supervisor)
    start_time = time.time()
    try:
        writer.open(path, clip.width, clip.height, fps, codec, bitrate)
        for i in range(total):
            t = i / fps
            if t > clip.duration:
                break
            writer.write_frame(clip.get_frame(t))
            if i % PROGRESS_LOG_INTERVAL == 0:
                logger.info("Rendering %s: %.1f%% (%d/%d)", Path(path).name, i / total * 100, i, total)
        writer.close()
    except BaseException:
        writer.abort()
        raise
    elapsed = time.time() - start_time
    logger.info("Wrote %d frames to %s in %.1fs", writer.frames_written, path, elapsed)
    return writer.frames_written

def write_audiofile(
    clip: Clip,
    path: Union[str, Path],
    supervisor: ProcessSupervisor,
    codec: str = DEFAULT_AUDIO_CODEC,
    bitrate: str = DEFAULT_AUDIO_BITRATE,
    chunk: float = AUDIO_CHUNK_SECONDS,
) -> int:
    """
    Encode the audio of ``clip`` into ``path`` in ``chunk``-second windows.

    Returns:
        Number of sample frames written
    """
    writer = AudioWriter(supervisor)
    steps = int(clip.duration / chunk) + 1
    try:
        writer.open(path, clip.sample_rate, clip.channels, codec, bitrate)
        for i in range(steps):
            t = i * chunk
            if t >= clip.duration:
                break
            writer.write_samples(clip.get_audio_frame(t, chunk))
        writer.close()
    except BaseException:
        writer.abort()
        raise
    logger.info("Wrote %d audio samples to %s", writer.samples_written, path)
    return writer.samples_written
