"""Exception hierarchy for pipeline failures.

Run-level errors (``DiscoveryError``, ``WritePermissionError``) stop the
whole run. ``ValidationError``, ``SegmentError`` and ``MergeFatalError`` are
confined to the pair being processed.
"""

from __future__ import annotations

from typing import Sequence


class PipelineError(Exception):
    pass


class DiscoveryError(PipelineError):
    pass


class ValidationError(PipelineError):
    pass


class WritePermissionError(PipelineError, PermissionError):
    def __init__(self, directory: str, reason: str) -> None:
        super().__init__(f"directory {directory} is not writable: {reason}")
        self.directory = directory


class EngineError(PipelineError):
    def __init__(
        self,
        message: str,
        cmd: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        text = super().__str__()
        if self.returncode is not None:
            text += f" (rc={self.returncode})"
        tail = self.stderr.strip().splitlines()[-3:]
        if tail:
            text += ": " + " | ".join(tail)
        return text


class SegmentError(EngineError):
    pass


class MergeFatalError(PipelineError):
    def __init__(self, index: int, message: str) -> None:
        super().__init__(f"clip {index:02d}: {message}")
        self.index = index
