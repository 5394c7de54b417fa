"""Managed process wrapper

A ManagedProcess pairs a running subprocess with the bookkeeping the
supervisor needs: a cancellation token, a completion signal that fires
exactly once with the exit result, an optional cleanup callback and an
optional stderr tail.

Only the monitoring thread started by the supervisor ever calls
``Popen.wait``; everyone else observes completion through ``wait`` and
``is_running``.
"""

import logging
import os
import subprocess
import threading
import time
from collections import deque
from typing import Callable, IO, List, Optional

from ..config import STDERR_TAIL_LINES
from ..exceptions import ProcessExitError
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

class ManagedProcess:
    """A supervised external process.

    Attributes:
        pid: Process id (also the process group id)
        args: Full command line
        start_time: Wall-clock spawn time
        token: Cancellation token for this process
    """

    def __init__(self, popen: subprocess.Popen, args: List[str], token: CancellationToken):
        self._popen = popen
        self.pid = popen.pid
        self.args = args
        self.start_time = time.time()
        self.token = token
        self.returncode: Optional[int] = None
        self.exit_error: Optional[ProcessExitError] = None
        self._done = threading.Event()
        self._cleanup: Optional[Callable[[], None]] = None
        self._terminating = False
        self._lock = threading.Lock()
        self._stderr_lines: deque = deque(maxlen=STDERR_TAIL_LINES)
        self._stderr_thread: Optional[threading.Thread] = None

    @property
    def stdin(self) -> Optional[IO[bytes]]:
        return self._popen.stdin

    @property
    def stdout(self) -> Optional[IO[bytes]]:
        return self._popen.stdout

    @property
    def name(self) -> str:
        return self.args[0] if self.args else "?"

    def set_cleanup(self, cleanup: Callable[[], None]) -> None:
        """Register a callback invoked once after the process exits"""
        self._cleanup = cleanup

    def is_running(self) -> bool:
        """Non-blocking check of the completion signal"""
        return not self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Wait for exit; returns the exit code, or None on timeout"""
        if not self._done.wait(timeout):
            return None
        return self.returncode

    def stderr_tail(self) -> str:
        """Last captured stderr lines (empty when stderr is not captured)"""
        if self._stderr_thread is not None and not self.is_running():
            self._stderr_thread.join(timeout=1.0)
        return "\n".join(self._stderr_lines)

    def mark_terminating(self) -> bool:
        """Flag the process as being terminated; False if already flagged"""
        with self._lock:
            if self._terminating:
                return False
            self._terminating = True
            return True

    def signal_group(self, sig: int) -> None:
        """Send ``sig`` to the whole process group while the leader is alive"""
        if not self.is_running():
            return
        try:
            if hasattr(os, "killpg"):
                os.killpg(self.pid, sig)
            else:
                self._popen.send_signal(sig)
        except ProcessLookupError:
            logger.debug("Process group %d already gone", self.pid)
        except PermissionError as e:
            logger.warning("Cannot signal process group %d: %s", self.pid, e)

    def start_stderr_reader(self) -> None:
        """Drain stderr into the bounded tail buffer on a daemon thread"""
        stream = self._popen.stderr
        if stream is None:
            return
        self._stderr_thread = threading.Thread(
            target=self._stream_reader,
            args=(stream,),
            name=f"stderr-{self.pid}",
            daemon=True,
        )
        self._stderr_thread.start()

    def _stream_reader(self, stream) -> None:
        try:
            for line in iter(stream.readline, b''):
                self._stderr_lines.append(line.decode(errors="replace").rstrip())
        except (OSError, ValueError) as e:
            self._stderr_lines.append(f"Error reading stderr: {e}")
        finally:
            stream.close()

    def monitor(self, on_exit: Callable[["ManagedProcess"], None]) -> None:
        """Body of the monitoring thread: block on exit, then publish it"""
        returncode = self._popen.wait()
        self.returncode = returncode
        if returncode != 0:
            self.exit_error = ProcessExitError(
                f"{self.name} (pid {self.pid}) exited with code {returncode}",
                module="process",
                exit_code=returncode,
            )
        on_exit(self)
        self._done.set()
        if self._cleanup is not None:
            try:
                self._cleanup()
            except Exception:
                logger.exception("Cleanup for pid %d failed", self.pid)

    def exit_error_with_stderr(self, message: str, module: str) -> ProcessExitError:
        """Build a ProcessExitError for the caller of an in-flight operation"""
        return ProcessExitError(
            f"{message}: {self.name} (pid {self.pid}) exited with code {self.returncode}",
            module=module,
            exit_code=self.returncode,
            stderr=self.stderr_tail(),
        )

    def __repr__(self) -> str:
        state = "running" if self.is_running() else f"exited({self.returncode})"
        return f"<ManagedProcess pid={self.pid} {self.name} {state}>"
