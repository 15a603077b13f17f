"""Chunk-pull helper shared by the client read loop and the relay copy loop."""

from __future__ import annotations

from typing import AsyncIterator, Optional


async def next_chunk(iterator: AsyncIterator[bytes]) -> Optional[bytes]:
    """Return the next chunk, or ``None`` at end of stream.

    Wrapping ``__anext__`` keeps ``StopAsyncIteration`` from crossing a task
    boundary when the pull runs under :meth:`CancellationToken.guard`.
    """
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return None


__all__ = ["next_chunk"]
