"""Delta callback signature exposed to the UI layer.

Invoked once per extracted content fragment, in stream order. It may be a
plain function or a coroutine function; the client awaits its completion
before reading the next chunk.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Union

DeltaCallback = Callable[[str], Union[None, Awaitable[Optional[object]]]]

__all__ = ["DeltaCallback"]
