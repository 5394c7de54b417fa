"""Frame encoder

One long-lived ffmpeg process per output file. Raw frames are pushed into
its stdin in caller order; closing stdin signals end of stream and the
process finalizes the container.
"""

import logging
import subprocess
import threading
from pathlib import Path
from typing import List, Optional, Union

from ..config import DEFAULT_FPS, DEFAULT_VIDEO_BITRATE, DEFAULT_VIDEO_CODEC
from ..exceptions import EffectError, ProcessExitError, ProtocolError, StateError
from ..frame import Frame
from ..process import ManagedProcess, ProcessSupervisor
from .command_builders import build_encode_command
from .reader import discard_process

logger = logging.getLogger(__name__)

class PipeWriter:
    """Lifecycle shared by encoders that consume raw data on stdin"""

    module = "writer"

    def __init__(self, supervisor: ProcessSupervisor):
        self.supervisor = supervisor
        self.token = supervisor.token.child()
        self.path: Optional[Path] = None
        self.process: Optional[ManagedProcess] = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def _spawn(self, path: Union[str, Path], cmd: List[str]) -> None:
        with self._lock:
            if self._closed:
                raise StateError("Writer is closed", module=self.module)
            if self.process is not None:
                raise StateError(f"Writer already open for {self.path}", module=self.module)
            self.path = Path(path)
            self.process = self.supervisor.start(
                cmd[0], cmd[1:],
                stdin=subprocess.PIPE,
                capture_stderr=True,
                token=self.token,
            )

    def _require_open(self) -> ManagedProcess:
        if self._closed:
            raise StateError(f"Writer for {self.path} is closed", module=self.module)
        if self.process is None:
            raise StateError("Writer was never opened", module=self.module)
        return self.process

    def _write(self, data: bytes, what: str) -> None:
        process = self._require_open()
        if not process.is_running():
            raise process.exit_error_with_stderr(f"Encoder exited before {what}", self.module)
        try:
            process.stdin.write(data)
            process.stdin.flush()
        except (BrokenPipeError, ValueError, OSError) as e:
            if process.wait(self.supervisor.grace_period) is None:
                discard_process(self.supervisor, process)
                raise ProcessExitError(
                    f"Encoder pipe closed while writing {what}; encoder still running, terminated",
                    module=self.module,
                    exit_code=process.returncode,
                    stderr=process.stderr_tail(),
                ) from e
            raise process.exit_error_with_stderr(f"Encoder pipe closed while writing {what}", self.module) from e

    def close(self, timeout: Optional[float] = None) -> None:
        """
        Signal end of stream and wait for the encoder to finalize.

        The wait is unbounded unless ``timeout`` is given; on timeout the
        process is terminated and ProcessExitError is raised.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        process = self.process
        if process is None:
            self.token.cancel()
            return
        try:
            try:
                process.stdin.close()
            except (BrokenPipeError, OSError) as e:
                logger.debug("Closing encoder stdin for %s failed: %s", self.path, e)
            returncode = process.wait(timeout)
            if returncode is None:
                discard_process(self.supervisor, process)
                raise ProcessExitError(
                    f"Encoder for {self.path} did not finish within {timeout}s",
                    module=self.module,
                    stderr=process.stderr_tail(),
                )
            if returncode != 0:
                raise process.exit_error_with_stderr(f"Encoding {self.path} failed", self.module)
            logger.debug("Finalized %s", self.path)
        finally:
            self.token.cancel()

    def abort(self) -> None:
        """Terminate the encoder without finalizing (idempotent)"""
        with self._lock:
            self._closed = True
        process = self.process
        if process is not None:
            try:
                process.stdin.close()
            except (BrokenPipeError, OSError):
                pass
            discard_process(self.supervisor, process)
            logger.warning("Aborted encoder for %s", self.path)
        self.token.cancel()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()

class VideoWriter(PipeWriter):
    """Encodes raw rgb24 frames into a container file"""

    def __init__(self, supervisor: ProcessSupervisor):
        super().__init__(supervisor)
        self.width = 0
        self.height = 0
        self.fps = DEFAULT_FPS
        self.frames_written = 0

    def open(
        self,
        destination: Union[str, Path],
        width: int,
        height: int,
        fps: float = DEFAULT_FPS,
        codec: str = DEFAULT_VIDEO_CODEC,
        bitrate: str = DEFAULT_VIDEO_BITRATE,
    ) -> "VideoWriter":
        if width <= 0 or height <= 0:
            raise EffectError(f"Invalid output size {width}x{height}", module=self.module)
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        cmd = build_encode_command(destination, width, height, fps, codec, bitrate)
        self.width, self.height, self.fps = width, height, fps
        self._spawn(destination, cmd)
        logger.info("Encoding %s (%dx%d @ %.2f fps, %s %s)", destination, width, height, fps, codec, bitrate)
        return self

    def write_frame(self, frame: Frame) -> None:
        """
        Push one frame into the encoder.

        Raises:
            ProtocolError: Frame size differs from the declared size; nothing
                is written
            ProcessExitError: The encoder already exited or the pipe broke
        """
        self._require_open()
        if frame.width != self.width or frame.height != self.height:
            raise ProtocolError(
                f"Frame is {frame.width}x{frame.height}, encoder expects {self.width}x{self.height}",
                module=self.module,
            )
        self._write(frame.to_bytes(), f"frame {self.frames_written}")
        self.frames_written += 1
