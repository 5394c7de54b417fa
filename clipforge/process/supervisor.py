"""Process supervisor for external transcoder processes

Responsibilities:
- Spawn processes in their own process group and register them by pid
- Run one monitoring thread per process that reaps it and unregisters it
- Terminate with SIGTERM, escalating to SIGKILL after a grace period
- Run a periodic, purely diagnostic reaper
- Terminate everything still registered on shutdown

Every process started here has exactly one reaper: its own monitoring
thread. The periodic reaper only reports, it never removes entries.
"""

import logging
import os
import signal
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, IO, List, Mapping, Optional, Sequence, Union

import psutil

from ..config import GRACE_PERIOD, KILL_SETTLE_TIMEOUT, REAPER_INTERVAL
from ..exceptions import ProcessNotFoundError, SpawnError, StateError
from .cancellation import CancellationToken
from .managed import ManagedProcess

logger = logging.getLogger(__name__)

SIGKILL = getattr(signal, "SIGKILL", signal.SIGTERM)

StreamSpec = Optional[Union[int, IO]]

class ProcessRegistry:
    """pid -> ManagedProcess map guarded by a lock.

    A pid is present iff its process has been started and not yet reaped.
    """

    def __init__(self):
        self._processes: Dict[int, ManagedProcess] = {}
        self._lock = threading.Lock()

    def add(self, process: ManagedProcess) -> None:
        with self._lock:
            self._processes[process.pid] = process

    def remove(self, process: ManagedProcess) -> bool:
        """Remove ``process`` if it is the entry registered under its pid"""
        with self._lock:
            if self._processes.get(process.pid) is process:
                del self._processes[process.pid]
                return True
            return False

    def get(self, pid: int) -> Optional[ManagedProcess]:
        with self._lock:
            return self._processes.get(pid)

    def snapshot(self) -> List[ManagedProcess]:
        with self._lock:
            return list(self._processes.values())

    def pids(self) -> List[int]:
        with self._lock:
            return list(self._processes)

    def clear(self) -> None:
        with self._lock:
            self._processes.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._processes)

    def __contains__(self, pid: int) -> bool:
        with self._lock:
            return pid in self._processes

class ProcessSupervisor:
    """Owns every transcoder process spawned by clipforge.

    Usable as a context manager; leaving the block closes the supervisor,
    which terminates all registered processes and refuses new ones.
    """

    def __init__(self, grace_period: float = GRACE_PERIOD, reaper_interval: float = REAPER_INTERVAL):
        self.grace_period = grace_period
        self.reaper_interval = reaper_interval
        self.registry = ProcessRegistry()
        self.token = CancellationToken()
        self._closed = False
        self._lifecycle_lock = threading.Lock()
        self._reaper = threading.Thread(target=self._reaper_loop, name="process-reaper", daemon=True)
        self._reaper.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def start(
        self,
        command: str,
        args: Sequence[str] = (),
        env: Optional[Mapping[str, str]] = None,
        working_dir: Optional[str] = None,
        stdin: StreamSpec = None,
        stdout: StreamSpec = None,
        capture_stderr: bool = False,
        token: Optional[CancellationToken] = None,
        cleanup: Optional[Callable[[], None]] = None,
    ) -> ManagedProcess:
        """
        Launch ``command`` in its own process group and register it.

        Args:
            command: Executable name or path
            args: Arguments following the executable
            env: Extra environment variables layered over ``os.environ``
            working_dir: Working directory for the child
            stdin/stdout: ``subprocess.PIPE``, a file object or None
            capture_stderr: Keep a tail of stderr (otherwise discarded)
            token: Owner token; the process token is derived from it
            cleanup: Callback invoked after the process exits

        Returns:
            The registered ManagedProcess

        Raises:
            StateError: If the supervisor or owner token is already closed
            SpawnError: If the executable cannot be located or launched
        """
        cmd = [command, *args]
        parent_token = token or self.token
        if parent_token.cancelled:
            raise StateError(f"Owner cancelled, refusing to start {command}", module="supervisor")

        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        with self._lifecycle_lock:
            if self._closed:
                raise StateError(f"Supervisor closed, refusing to start {command}", module="supervisor")
            try:
                popen = subprocess.Popen(
                    cmd,
                    stdin=stdin,
                    stdout=stdout,
                    stderr=subprocess.PIPE if capture_stderr else subprocess.DEVNULL,
                    env=full_env,
                    cwd=working_dir,
                    start_new_session=True,
                )
            except (OSError, ValueError) as e:
                raise SpawnError(f"Failed to start {command}: {e}", module="supervisor") from e

            process = ManagedProcess(popen, cmd, parent_token.child())
            if cleanup is not None:
                process.set_cleanup(cleanup)
            self.registry.add(process)

        if capture_stderr:
            process.start_stderr_reader()
        monitor = threading.Thread(
            target=process.monitor,
            args=(self._on_exit,),
            name=f"monitor-{process.pid}",
            daemon=True,
        )
        monitor.start()
        process.token.add_callback(lambda: self._terminate_in_background(process))

        logger.debug("Started %s (pid %d)", " ".join(cmd), process.pid)
        return process

    def _on_exit(self, process: ManagedProcess) -> None:
        self.registry.remove(process)
        process.token.detach()
        logger.debug("pid %d exited with code %s", process.pid, process.returncode)

    def _terminate_in_background(self, process: ManagedProcess) -> None:
        if process.pid not in self.registry:
            return
        threading.Thread(
            target=self._terminate_quietly,
            args=(process.pid,),
            name=f"terminate-{process.pid}",
            daemon=True,
        ).start()

    def _terminate_quietly(self, pid: int) -> None:
        try:
            self.terminate(pid)
        except ProcessNotFoundError:
            pass

    def terminate(self, pid: int) -> None:
        """
        Terminate the process group of ``pid``.

        Sends SIGTERM, waits up to the grace period, then SIGKILLs the group
        and any escaped descendants. Returns once the exit has been observed
        (or the post-kill settle timeout expired); never raises for a slow
        or stubborn process.

        Raises:
            ProcessNotFoundError: If ``pid`` is not registered
        """
        process = self.registry.get(pid)
        if process is None:
            raise ProcessNotFoundError(f"Process {pid} is not registered", module="supervisor")

        if not process.mark_terminating():
            # Someone else is already terminating it; just observe completion
            process.wait(self.grace_period + KILL_SETTLE_TIMEOUT)
            return

        logger.debug("Sending SIGTERM to process group %d", pid)
        process.signal_group(signal.SIGTERM)
        if process.wait(self.grace_period) is not None:
            return

        logger.warning("Process %d ignored SIGTERM for %.1fs, killing", pid, self.grace_period)
        self._kill_tree(process)
        if process.wait(KILL_SETTLE_TIMEOUT) is None:
            logger.error("Process %d still not reaped after SIGKILL", pid)

    def _kill_tree(self, process: ManagedProcess) -> None:
        try:
            descendants = psutil.Process(process.pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            descendants = []
        process.signal_group(SIGKILL)
        for child in descendants:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                pass
            except psutil.AccessDenied as e:
                logger.warning("Cannot kill descendant %d of %d: %s", child.pid, process.pid, e)

    def terminate_all(self) -> None:
        """Terminate every currently registered process concurrently"""
        pids = self.registry.pids()
        if not pids:
            return
        logger.info("Terminating %d transcoder process(es)", len(pids))
        with ThreadPoolExecutor(max_workers=len(pids)) as pool:
            list(pool.map(self._terminate_quietly, pids))

    def process_count(self) -> int:
        """Number of registered processes at the instant of the call"""
        return len(self.registry)

    def _reaper_loop(self) -> None:
        while not self.token.wait(self.reaper_interval):
            try:
                self.reap()
            except Exception:
                logger.exception("Reaper pass failed")

    def reap(self) -> int:
        """
        Diagnostic scan of registered processes.

        Logs processes that already exited with an error and live processes
        the kernel reports as zombies. Never removes registry entries.

        Returns:
            Number of abnormal processes found
        """
        abnormal = 0
        for process in self.registry.snapshot():
            if not process.is_running():
                if process.exit_error is not None:
                    abnormal += 1
                    logger.warning("Process %d exited abnormally: %s", process.pid, process.exit_error)
                continue
            try:
                info = psutil.Process(process.pid)
                if info.status() == psutil.STATUS_ZOMBIE:
                    abnormal += 1
                    logger.warning("Process %d (%s) is a zombie", process.pid, process.name)
                else:
                    logger.debug(
                        "Process %d (%s) alive, rss %.1f MiB",
                        process.pid, process.name, info.memory_info().rss / (1024 * 1024),
                    )
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass
        return abnormal

    def close(self) -> None:
        """Stop the reaper, terminate all processes and refuse new ones"""
        with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True
        self.token.cancel()
        self.terminate_all()
        if self._reaper is not threading.current_thread():
            self._reaper.join(timeout=1.0)
        self.registry.clear()
        logger.debug("Process supervisor closed")

    def __enter__(self) -> "ProcessSupervisor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
