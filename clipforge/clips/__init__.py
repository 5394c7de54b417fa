"""Clips: time-bounded views over media sources

This package provides:
- The closed set of clip variants (source, audio file, subclip, speed,
  volume, effect, soundtrack, composite)
- Reference-counted sharing of decoders between derived clips
- Rendering clips to video and audio files
"""

from .audio import AudioFileClip
from .base import Clip, ClipKind
from .composite import CompositeClip
from .render import write_audiofile, write_videofile
from .source import SharedSource, SourceClip
from .views import EffectClip, SoundtrackClip, SpeedClip, SubClip, VolumeClip

__all__ = [
    'AudioFileClip',
    'Clip',
    'ClipKind',
    'CompositeClip',
    'EffectClip',
    'SharedSource',
    'SoundtrackClip',
    'SourceClip',
    'SpeedClip',
    'SubClip',
    'VolumeClip',
    'write_audiofile',
    'write_videofile',
]
