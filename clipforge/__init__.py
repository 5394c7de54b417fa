"""
clipforge - programmatic video editing on top of ffmpeg

This package provides a frame-level editing toolkit that:
- Supervises every ffmpeg process it spawns and never leaks one
- Streams raw rgb24 frames to and from ffmpeg over pipes
- Applies ordered effect chains (geometry, color, convolution) to frames
- Composites several clips into one with selectable blend modes
- Exposes clips as time-windowed, speed-scaled views over a source

Decoding and encoding are delegated entirely to the ffmpeg binary; all
pixel work happens in numpy.
"""

__version__ = "0.1.0"
