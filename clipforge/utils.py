"""Utility functions for clipforge"""

import logging
import shutil
from datetime import datetime

from .config import FFMPEG_BINARY, FFPROBE_BINARY

logger = logging.getLogger(__name__)

def get_timestamp() -> str:
    """Get current timestamp string"""
    return datetime.now().strftime("%Y%m%d_%H%M%S")

def check_dependencies() -> bool:
    """Check that the ffmpeg and ffprobe binaries can be found"""
    missing = [binary for binary in (FFMPEG_BINARY, FFPROBE_BINARY) if shutil.which(binary) is None]
    for binary in missing:
        logger.error("Required binary not found: %s", binary)
    return not missing

def format_timestamp(seconds: float) -> str:
    """Format seconds as HH:MM:SS.mmm"""
    seconds = max(seconds, 0.0)
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{int(hours):02d}:{int(minutes):02d}:{secs:06.3f}"
