"""Supervision of externally spawned transcoder processes

This package provides:
- Cancellation tokens tying process lifetimes to their owners
- A managed process wrapper with a single monitoring thread each
- The supervisor that starts, terminates and reaps every process
"""

from .cancellation import CancellationToken
from .managed import ManagedProcess
from .supervisor import ProcessRegistry, ProcessSupervisor

__all__ = [
    'CancellationToken',
    'ManagedProcess',
    'ProcessRegistry',
    'ProcessSupervisor',
]
