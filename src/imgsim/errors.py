"""Error types for imgsim.

Every failure the CLI reports is one of the subclasses below. Library code
raises them; only :func:`imgsim.cli.main` turns them into an ``error: ...``
line and exit code 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ImgsimError(Exception):
    """Base class for all imgsim errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ArgumentError(ImgsimError):
    """Malformed command-line invocation."""


class InvalidAlgorithm(ImgsimError):
    """An algorithm token that does not name a known hash algorithm."""

    def __init__(self, token: str) -> None:
        super().__init__("unknown hash algorithm")
        self.token = token


class ImageDecodeError(ImgsimError):
    """An image that could not be opened or decoded."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None) -> None:
        reason = str(cause) if cause is not None else "cannot decode image"
        # Pillow and the OS usually name the file already.
        if str(path) not in reason:
            reason = f"{path}: {reason}"
        super().__init__(reason)
        self.path = path
