"""Streaming raw media through ffmpeg

This package provides:
- ffmpeg command construction
- Metadata probing
- The single-frame decoder and long-lived frame encoder
- Audio window reads and audio encoding
"""

from .audio import AudioReader, AudioWriter
from .probe import MediaInfo, parse_frame_rate, parse_probe, probe_media
from .reader import VideoReader
from .writer import VideoWriter

__all__ = [
    'AudioReader',
    'AudioWriter',
    'MediaInfo',
    'parse_frame_rate',
    'parse_probe',
    'probe_media',
    'VideoReader',
    'VideoWriter',
]
