"""Configuration settings for clipforge

This module centralizes all configuration settings including:
- External transcoder binaries
- Process supervision timings
- Default encoding parameters
- Effect safety limits

User-configurable settings are read from environment variables; everything
else is an internal constant used throughout the package.
"""

import os
from pathlib import Path

# Transcoder binaries (user definable)
FFMPEG_BINARY = os.environ.get("CLIPFORGE_FFMPEG", "ffmpeg")
FFPROBE_BINARY = os.environ.get("CLIPFORGE_FFPROBE", "ffprobe")

# LOG_DIR: user definable with default of "$HOME/clipforge_logs"
LOG_DIR = Path(os.environ.get("CLIPFORGE_LOG_DIR", str(Path.home() / "clipforge_logs")))

# Logging configuration
LOG_LEVEL = os.environ.get("CLIPFORGE_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL

# Process supervision
GRACE_PERIOD = float(os.environ.get("CLIPFORGE_GRACE_PERIOD", "5.0"))  # SIGTERM -> SIGKILL wait (seconds)
REAPER_INTERVAL = float(os.environ.get("CLIPFORGE_REAPER_INTERVAL", "30.0"))  # Diagnostic scan period (seconds)
KILL_SETTLE_TIMEOUT = 1.0  # Wait for the monitor to observe a SIGKILL
STDERR_TAIL_LINES = 50  # Lines of transcoder stderr kept per process

# Raw video wire format
PIXEL_FORMAT = "rgb24"
BYTES_PER_PIXEL = 3

# Video encoding defaults
DEFAULT_VIDEO_CODEC = "libx264"
DEFAULT_VIDEO_BITRATE = "1000k"
DEFAULT_FPS = 25.0
OUTPUT_PIXEL_FORMAT = "yuv420p"  # Broadest player compatibility
ENCODER_THREADS = 1

# Audio defaults
DEFAULT_AUDIO_CODEC = "aac"
DEFAULT_AUDIO_BITRATE = "128k"
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_CHANNELS = 2
AUDIO_CHUNK_SECONDS = 0.1
SAMPLE_FORMAT = "f32le"
BYTES_PER_SAMPLE = 4

# Effect limits
MAX_INPUT_SIDE = 8192
MAX_ROTATE_SIDE = 4096  # 4K
MAX_ROTATE_PIXELS = 16 * 1024 * 1024
MIN_BLUR_RADIUS = 1
MAX_BLUR_RADIUS = 20
MAX_SHARPEN_STRENGTH = 2.0

# Rendering
PROGRESS_LOG_INTERVAL = 100  # Frames between progress log lines
