"""Cooperative cancellation primitives (public API facade).

Purpose
-------
Expose the cancellation constructs used by the completion client and the
proxy relay via the canonical ``quillchat.base.cancellation`` import path
while the concrete implementations live under ``cancellation_parts``.

Notes
-----
- ``CancellationToken`` signals cancellation across the outbound request, the
  body read loop, and any timer bound to it.
- ``Deadline`` binds a token to an absolute wall-clock budget on the running
  event loop.
- ``CancelledError`` is raised by guarded awaits that observe a cancellation.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken
from .cancellation_parts.deadline import Deadline

__all__ = ["CancellationToken", "CancelledError", "Deadline"]
