"""Decoder-level protocol violation."""
from __future__ import annotations


class MalformedFrameError(ValueError):
    """Raised when a ``data:`` payload is not valid JSON.

    The decoder cannot tell provider garbage from a local bug, so the whole
    decode fails instead of silently dropping tokens.

    Attributes:
        payload: The offending payload text (after prefix stripping).
    """

    def __init__(self, message: str, payload: str = "") -> None:
        super().__init__(message)
        self.payload = payload


__all__ = ["MalformedFrameError"]
