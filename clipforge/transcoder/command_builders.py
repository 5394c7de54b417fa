"""Helper functions for building ffmpeg commands

All commands share the same quiet global flags and are compiled through
ffmpeg-python so argument quoting and ordering stay consistent.
"""

import logging
from pathlib import Path
from typing import List, Union

import ffmpeg

from ..config import (
    DEFAULT_AUDIO_BITRATE, DEFAULT_AUDIO_CODEC, DEFAULT_VIDEO_BITRATE,
    DEFAULT_VIDEO_CODEC, ENCODER_THREADS, FFMPEG_BINARY, OUTPUT_PIXEL_FORMAT,
    PIXEL_FORMAT, SAMPLE_FORMAT,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

def _compile(stream) -> List[str]:
    cmd = stream.global_args("-hide_banner", "-loglevel", "error").compile(cmd=FFMPEG_BINARY)
    logger.debug("ffmpeg command: %s", " ".join(cmd))
    return cmd

def build_frame_command(source: PathLike, timestamp: float) -> List[str]:
    """Build ffmpeg command emitting exactly one rgb24 frame on stdout.

    The seek is placed before the input for fast keyframe seeking.
    """
    stream = (
        ffmpeg
        .input(str(source), ss=f"{timestamp:.6f}")
        .output("pipe:", map="0:v:0", vframes=1, format="image2pipe", pix_fmt=PIXEL_FORMAT, vcodec="rawvideo")
    )
    return _compile(stream)

def build_encode_command(
    destination: PathLike,
    width: int,
    height: int,
    fps: float,
    codec: str = DEFAULT_VIDEO_CODEC,
    bitrate: str = DEFAULT_VIDEO_BITRATE,
) -> List[str]:
    """Build ffmpeg command encoding raw rgb24 frames read from stdin"""
    stream = (
        ffmpeg
        .input("pipe:", format="rawvideo", pix_fmt=PIXEL_FORMAT, s=f"{width}x{height}", framerate=fps)
        .output(
            str(destination),
            vcodec=codec,
            video_bitrate=bitrate,
            pix_fmt=OUTPUT_PIXEL_FORMAT,
            threads=ENCODER_THREADS,
        )
        .overwrite_output()
    )
    return _compile(stream)

def build_audio_read_command(
    source: PathLike,
    timestamp: float,
    duration: float,
    sample_rate: int,
    channels: int,
) -> List[str]:
    """Build ffmpeg command extracting f32le samples for a time window"""
    stream = (
        ffmpeg
        .input(str(source), ss=f"{timestamp:.6f}", t=f"{duration:.6f}")
        .output(
            "pipe:",
            map="0:a:0",
            format=SAMPLE_FORMAT,
            acodec=f"pcm_{SAMPLE_FORMAT}",
            ar=sample_rate,
            ac=channels,
            vn=None,
        )
    )
    return _compile(stream)

def build_audio_encode_command(
    destination: PathLike,
    sample_rate: int,
    channels: int,
    codec: str = DEFAULT_AUDIO_CODEC,
    bitrate: str = DEFAULT_AUDIO_BITRATE,
) -> List[str]:
    """Build ffmpeg command encoding raw f32le samples read from stdin"""
    stream = (
        ffmpeg
        .input("pipe:", format=SAMPLE_FORMAT, ar=sample_rate, ac=channels)
        .output(str(destination), acodec=codec, audio_bitrate=bitrate)
        .overwrite_output()
    )
    return _compile(stream)
