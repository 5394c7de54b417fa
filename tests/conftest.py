"""Shared fixtures for clipforge tests

Decoder-level tests substitute tiny Python child processes for ffmpeg;
clip-level tests use an in-memory reader whose frames encode the source
timestamp they were requested at.
"""

import sys
from pathlib import Path
from typing import List

import numpy as np
import pytest

from clipforge.clips import AudioFileClip, SharedSource, SourceClip
from clipforge.exceptions import RangeError, StateError
from clipforge.frame import Frame
from clipforge.process import ProcessSupervisor
from clipforge.transcoder import MediaInfo

def python_command(code: str) -> List[str]:
    """Command line running ``code`` in a fresh interpreter"""
    return [sys.executable, "-c", code]

def timestamp_value(t: float) -> int:
    """Pixel value FakeVideoReader uses to tag a frame requested at ``t``"""
    return int(round(t * 10)) % 256

class FakeVideoReader:
    """In-memory stand-in for VideoReader"""

    def __init__(self, info: MediaInfo):
        self.info = info
        self.requests: List[float] = []
        self.closed = False
        self.fail_at = set()

    def get_frame(self, t: float) -> Frame:
        if self.closed:
            raise StateError("fake reader closed", module="fake")
        if not 0 <= t <= self.info.duration:
            raise RangeError(f"{t} out of range", module="fake")
        if round(t, 6) in self.fail_at:
            raise StateError(f"decode failure at {t}", module="fake")
        self.requests.append(t)
        pixels = np.full((self.info.height, self.info.width, 3), timestamp_value(t), dtype=np.uint8)
        return Frame(pixels)

    def close(self) -> None:
        self.closed = True

class FakeAudioReader:
    """In-memory stand-in for AudioReader producing a constant signal"""

    def __init__(self, sample_rate: int = 1000, channels: int = 2, level: float = 0.5):
        self.sample_rate = sample_rate
        self.channels = channels
        self.level = level
        self.closed = False
        self.requests: List[tuple] = []

    def read(self, t: float, duration: float, sample_rate: int = None, channels: int = None) -> np.ndarray:
        sample_rate = sample_rate or self.sample_rate
        channels = channels or self.channels
        self.requests.append((t, duration, sample_rate, channels))
        count = int(round(duration * sample_rate))
        return np.full((count, channels), self.level, dtype=np.float32)

    def close(self) -> None:
        self.closed = True

@pytest.fixture
def supervisor():
    sup = ProcessSupervisor(grace_period=1.0, reaper_interval=60.0)
    yield sup
    sup.close()

@pytest.fixture
def make_clip():
    """Factory for SourceClips backed by FakeVideoReader"""
    def factory(duration=10.0, fps=30.0, width=64, height=48, audio=False):
        info = MediaInfo(duration=duration, width=width, height=height, fps=fps, has_audio=audio)
        video = FakeVideoReader(info)
        audio_reader = FakeAudioReader() if audio else None
        source = SharedSource(Path("fake.mp4"), video, audio_reader)
        return SourceClip(source, info)
    return factory

@pytest.fixture
def make_audio_clip():
    """Factory for AudioFileClips backed by FakeAudioReader"""
    def factory(duration=2.0, sample_rate=1000, channels=2, level=0.5):
        info = MediaInfo(
            duration=duration, has_audio=True,
            audio_sample_rate=sample_rate, audio_channels=channels,
        )
        reader = FakeAudioReader(sample_rate, channels, level)
        return AudioFileClip(SharedSource(Path("song.m4a"), None, reader), info)
    return factory
