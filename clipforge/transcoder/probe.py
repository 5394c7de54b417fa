"""Media metadata probing

Responsibilities:
- Run ffprobe with JSON output of format and all streams
- Parse duration, video geometry, frame rate and audio properties
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import ffmpeg

from ..config import FFPROBE_BINARY
from ..exceptions import ProbeError

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class MediaInfo:
    """Probed properties of a media file"""
    duration: float = 0.0
    width: int = 0
    height: int = 0
    fps: float = 0.0
    bit_rate: Optional[str] = None
    codec: Optional[str] = None
    has_audio: bool = False
    audio_codec: Optional[str] = None
    audio_sample_rate: int = 0
    audio_channels: int = 0

    @property
    def has_video(self) -> bool:
        return self.width > 0 and self.height > 0

def parse_frame_rate(value: Optional[str]) -> float:
    """Parse an ffprobe ``num/den`` rate; 0.0 when missing or malformed"""
    if not value:
        return 0.0
    try:
        if "/" in value:
            num, den = value.split("/", 1)
            den_f = float(den)
            return float(num) / den_f if den_f else 0.0
        return float(value)
    except ValueError:
        logger.debug("Unparseable frame rate %r", value)
        return 0.0

def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default

def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default

def parse_probe(data: Dict[str, Any]) -> MediaInfo:
    """Build MediaInfo from ffprobe's ``-show_format -show_streams`` JSON.

    The first video and the first audio stream win.
    """
    fmt = data.get("format", {})
    fields: Dict[str, Any] = {
        "duration": _to_float(fmt.get("duration")),
        "bit_rate": fmt.get("bit_rate"),
    }
    for stream in data.get("streams", []):
        codec_type = stream.get("codec_type")
        if codec_type == "video" and "width" not in fields:
            fields["width"] = _to_int(stream.get("width"))
            fields["height"] = _to_int(stream.get("height"))
            fields["codec"] = stream.get("codec_name")
            fields["fps"] = parse_frame_rate(stream.get("r_frame_rate"))
        elif codec_type == "audio" and not fields.get("has_audio"):
            fields["has_audio"] = True
            fields["audio_codec"] = stream.get("codec_name")
            fields["audio_channels"] = _to_int(stream.get("channels"))
            fields["audio_sample_rate"] = _to_int(stream.get("sample_rate"))
    return MediaInfo(**fields)

def probe_media(path: Union[str, Path]) -> MediaInfo:
    """
    Probe a media file.

    Raises:
        ProbeError: If the file is missing, ffprobe fails or the output
            cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise ProbeError(f"File not found: {path}", module="probe")
    try:
        data = ffmpeg.probe(str(path), cmd=FFPROBE_BINARY)
    except ffmpeg.Error as e:
        stderr = e.stderr.decode(errors="replace").strip() if e.stderr else ""
        raise ProbeError(f"ffprobe failed for {path}: {stderr or e}", module="probe") from e
    except (OSError, ValueError) as e:
        raise ProbeError(f"ffprobe failed for {path}: {e}", module="probe") from e
    info = parse_probe(data)
    logger.debug(
        "Probed %s: %.3fs %dx%d @ %.3f fps, audio=%s",
        path, info.duration, info.width, info.height, info.fps, info.has_audio,
    )
    return info
