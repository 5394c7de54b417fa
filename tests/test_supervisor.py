"""Tests for the process supervisor

These spawn real short-lived Python child processes in place of ffmpeg.
"""

import os
import subprocess
import threading
import time
from unittest.mock import MagicMock

import psutil
import pytest

from clipforge.exceptions import ProcessExitError, ProcessNotFoundError, SpawnError, StateError
from clipforge.process import ProcessRegistry, ProcessSupervisor

from conftest import python_command

pytestmark = pytest.mark.skipif(os.name != "posix", reason="process groups require POSIX")

SLEEPER = "import time; time.sleep(30)"
STUBBORN = (
    "import signal, sys, time\n"
    "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
    "print('ready', flush=True)\n"
    "time.sleep(30)\n"
)

def _gone(pid):
    try:
        return psutil.Process(pid).status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True

def start(supervisor, code, **kwargs):
    cmd = python_command(code)
    return supervisor.start(cmd[0], cmd[1:], **kwargs)

def test_start_registers_and_exit_unregisters(supervisor):
    process = start(supervisor, "pass")
    assert process.pid > 0
    assert process.wait(10) == 0
    assert supervisor.process_count() == 0
    assert process.exit_error is None
    assert supervisor.token._callbacks == []
    assert not process.is_running()

def test_nonzero_exit_sets_exit_error(supervisor):
    process = start(supervisor, "import sys; sys.stderr.write('bad input\\n'); sys.exit(3)", capture_stderr=True)
    assert process.wait(10) == 3
    assert isinstance(process.exit_error, ProcessExitError)
    assert process.exit_error.exit_code == 3
    assert "bad input" in process.stderr_tail()

def test_missing_executable_is_spawn_error(supervisor):
    with pytest.raises(SpawnError):
        supervisor.start("/nonexistent/clipforge-test-binary")
    assert supervisor.process_count() == 0

def test_cleanup_runs_after_exit(supervisor):
    done = threading.Event()
    process = start(supervisor, "pass", cleanup=done.set)
    process.wait(10)
    assert done.wait(5)

def test_env_and_working_dir(supervisor, tmp_path):
    process = start(
        supervisor,
        "import os; print(os.environ['CLIPFORGE_TEST'], os.getcwd())",
        env={"CLIPFORGE_TEST": "marker"},
        working_dir=str(tmp_path),
        stdout=subprocess.PIPE,
    )
    output = process.stdout.read().decode()
    process.wait(10)
    process.stdout.close()
    assert "marker" in output
    assert os.path.realpath(str(tmp_path)) in output

def test_terminate_graceful(supervisor):
    process = start(supervisor, SLEEPER)
    assert supervisor.process_count() == 1
    started = time.monotonic()
    supervisor.terminate(process.pid)
    assert time.monotonic() - started < supervisor.grace_period
    assert supervisor.process_count() == 0
    assert process.returncode == -15

def test_terminate_escalates_to_kill():
    supervisor = ProcessSupervisor(grace_period=0.5, reaper_interval=60.0)
    try:
        process = start(supervisor, STUBBORN, stdout=subprocess.PIPE)
        assert process.stdout.readline().strip() == b"ready"
        started = time.monotonic()
        supervisor.terminate(process.pid)
        elapsed = time.monotonic() - started
        assert elapsed < 0.5 + 1.0 + 0.5
        assert process.returncode == -9
        assert supervisor.process_count() == 0
        process.stdout.close()
    finally:
        supervisor.close()

def test_terminate_unknown_pid(supervisor):
    with pytest.raises(ProcessNotFoundError):
        supervisor.terminate(999999)

def test_terminate_reaches_process_group(supervisor):
    code = (
        "import subprocess, sys, time\n"
        "child = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(30)'])\n"
        "print(child.pid, flush=True)\n"
        "time.sleep(30)\n"
    )
    process = start(supervisor, code, stdout=subprocess.PIPE)
    grandchild = int(process.stdout.readline())
    supervisor.terminate(process.pid)
    process.stdout.close()
    deadline = time.monotonic() + 5
    while not _gone(grandchild):
        if time.monotonic() > deadline:
            pytest.fail("grandchild survived group termination")
        time.sleep(0.05)

def test_cancelling_owner_token_terminates(supervisor):
    owner = supervisor.token.child()
    process = start(supervisor, SLEEPER, token=owner)
    owner.cancel()
    assert process.wait(5) is not None
    assert supervisor.process_count() == 0

def test_start_with_cancelled_token_fails(supervisor):
    owner = supervisor.token.child()
    owner.cancel()
    with pytest.raises(StateError):
        start(supervisor, "pass", token=owner)

def test_close_terminates_everything_and_refuses_new_work():
    supervisor = ProcessSupervisor(grace_period=1.0, reaper_interval=60.0)
    processes = [start(supervisor, SLEEPER) for _ in range(3)]
    assert supervisor.process_count() == 3
    supervisor.close()
    assert supervisor.process_count() == 0
    assert all(p.wait(1) is not None for p in processes)
    with pytest.raises(StateError):
        start(supervisor, "pass")
    supervisor.close()

def test_context_manager_closes():
    with ProcessSupervisor(grace_period=1.0, reaper_interval=60.0) as supervisor:
        process = start(supervisor, SLEEPER)
    assert supervisor.closed
    assert process.wait(1) is not None

def test_reap_reports_abnormal_exit_without_removing(supervisor, caplog):
    stale = MagicMock()
    stale.pid = 424242
    stale.is_running.return_value = False
    stale.exit_error = ProcessExitError("exited with code 1", module="test", exit_code=1)
    supervisor.registry.add(stale)

    with caplog.at_level("WARNING", logger="clipforge.process.supervisor"):
        assert supervisor.reap() == 1
    assert "424242" in caplog.text
    assert supervisor.process_count() == 1
    supervisor.registry.remove(stale)

def test_reap_ignores_healthy_processes(supervisor):
    process = start(supervisor, SLEEPER)
    assert supervisor.reap() == 0
    supervisor.terminate(process.pid)

def test_reaper_thread_runs_periodically():
    supervisor = ProcessSupervisor(grace_period=1.0, reaper_interval=0.05)
    try:
        called = threading.Event()
        supervisor.reap = lambda: called.set() or 0
        assert called.wait(5)
    finally:
        supervisor.close()

def test_registry_remove_requires_identity():
    registry = ProcessRegistry()
    first, second = MagicMock(pid=1), MagicMock(pid=1)
    registry.add(first)
    assert not registry.remove(second)
    assert 1 in registry
    assert registry.remove(first)
    assert len(registry) == 0
