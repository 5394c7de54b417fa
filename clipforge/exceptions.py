"""Custom exceptions for clipforge"""

class ClipforgeError(Exception):
    """Base exception for all clipforge errors"""
    def __init__(self, message: str, module: str = None):
        self.message = message
        self.module = module or "unknown"
        super().__init__(f"[{self.module}] {self.message}")

class SpawnError(ClipforgeError):
    """External executable missing or failed to start"""

class ProtocolError(ClipforgeError):
    """Raw stream contract violated (short read, wrong size, dimension mismatch)"""

class ProcessExitError(ClipforgeError):
    """External process exited with a non-zero status or was killed"""
    def __init__(self, message: str, module: str = None, exit_code: int = None, stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(message, module)

class RangeError(ClipforgeError):
    """Timestamp or subclip bounds outside the clip"""

class StateError(ClipforgeError):
    """Operation on a closed or never-opened resource"""

class ProcessNotFoundError(ClipforgeError):
    """No registered process with the requested pid"""

class ProbeError(ClipforgeError):
    """Media metadata could not be retrieved or parsed"""

class EffectError(ClipforgeError):
    """Invalid effect parameters or input size"""
