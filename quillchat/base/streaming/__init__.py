"""Streaming package.

Exposes the incremental SSE frame decoder and the delta-extraction helpers.
"""

from .chunks import next_chunk
from .sse_decoder import DONE_SENTINEL, SseDecoder, decode_stream, extract_delta

__all__ = ["DONE_SENTINEL", "SseDecoder", "decode_stream", "extract_delta", "next_chunk"]
