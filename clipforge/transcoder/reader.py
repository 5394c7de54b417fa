"""Frame decoder

Every get_frame call is one atomic request: spawn an ffmpeg process that
seeks to the timestamp and emits exactly one raw rgb24 frame, read exactly
``width * height * 3`` bytes, await the exit, then build the Frame. No
decoder process survives between calls.
"""

import logging
import subprocess
import threading
from pathlib import Path
from typing import IO, Optional, Union

from ..exceptions import (
    ProbeError, ProcessExitError, ProcessNotFoundError, ProtocolError, RangeError, StateError,
)
from ..frame import Frame
from ..process import ManagedProcess, ProcessSupervisor
from .command_builders import build_frame_command
from .probe import MediaInfo, probe_media

logger = logging.getLogger(__name__)

def read_exact(stream: IO[bytes], size: int) -> bytes:
    """Read up to ``size`` bytes, stopping early only at end of stream"""
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)

def discard_process(supervisor: ProcessSupervisor, process: ManagedProcess) -> None:
    """Terminate a process whose output is no longer wanted"""
    try:
        supervisor.terminate(process.pid)
    except ProcessNotFoundError:
        pass

class VideoReader:
    """Decodes single frames from a media file through ffmpeg.

    Args:
        path: Source media file
        supervisor: Supervisor that owns the decode processes
    """

    def __init__(self, path: Union[str, Path], supervisor: ProcessSupervisor):
        self.path = Path(path)
        self.supervisor = supervisor
        self.token = supervisor.token.child()
        self.info: Optional[MediaInfo] = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> MediaInfo:
        """Probe the source and cache its properties"""
        with self._lock:
            if self._closed:
                raise StateError(f"Reader for {self.path} is closed", module="reader")
            if self.info is None:
                info = probe_media(self.path)
                if not info.has_video:
                    raise ProbeError(f"No video stream in {self.path}", module="reader")
                self.info = info
                logger.info("Opened %s (%dx%d, %.2fs)", self.path.name, info.width, info.height, info.duration)
            return self.info

    def _require_open(self) -> MediaInfo:
        if self._closed:
            raise StateError(f"Reader for {self.path} is closed", module="reader")
        if self.info is None:
            raise StateError(f"Reader for {self.path} was never opened", module="reader")
        return self.info

    def get_frame(self, timestamp: float) -> Frame:
        """
        Decode the frame at ``timestamp`` seconds.

        Raises:
            RangeError: Timestamp outside [0, duration], before any spawn
            ProtocolError: ffmpeg produced fewer or more bytes than one frame
            ProcessExitError: ffmpeg exited non-zero or kept running after the frame
            StateError: Reader closed or never opened
        """
        info = self._require_open()
        if not 0 <= timestamp <= info.duration:
            raise RangeError(
                f"Timestamp {timestamp:.3f}s outside [0, {info.duration:.3f}] for {self.path.name}",
                module="reader",
            )

        cmd = build_frame_command(self.path, timestamp)
        process = self.supervisor.start(
            cmd[0], cmd[1:],
            stdout=subprocess.PIPE,
            capture_stderr=True,
            token=self.token,
        )
        expected = Frame.frame_size(info.width, info.height)
        grace = self.supervisor.grace_period
        try:
            data = read_exact(process.stdout, expected)
            if len(data) != expected:
                discard_process(self.supervisor, process)
                process.wait()
                raise ProtocolError(
                    f"Short read at {timestamp:.3f}s: got {len(data)} of {expected} bytes\n{process.stderr_tail()}".rstrip(),
                    module="reader",
                )
            returncode = process.wait(grace)
            if returncode is None:
                discard_process(self.supervisor, process)
                process.wait()
            # Anything left in the pipe after the frame breaks the one-frame framing
            if process.stdout.read(1):
                raise ProtocolError(
                    f"Decoder at {timestamp:.3f}s produced more than {expected} bytes\n{process.stderr_tail()}".rstrip(),
                    module="reader",
                )
            if returncode is None:
                raise ProcessExitError(
                    f"Decoding {self.path.name} at {timestamp:.3f}s did not exit within {grace:.1f}s after the frame; terminated",
                    module="reader",
                    exit_code=process.returncode,
                    stderr=process.stderr_tail(),
                )
            if returncode != 0:
                raise process.exit_error_with_stderr(f"Decoding {self.path.name} at {timestamp:.3f}s failed", "reader")
        finally:
            process.stdout.close()
        return Frame.from_bytes(data, info.width, info.height)

    def close(self) -> None:
        """Close the reader and terminate any in-flight decodes (idempotent)"""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.token.cancel()
        logger.debug("Closed reader for %s", self.path)

    def __enter__(self) -> "VideoReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
