"""Wire DTOs for completion requests and relay envelopes."""

from .chat import ChatMessage, CompletionRequest, ProxyEnvelope, Role

__all__ = ["ChatMessage", "CompletionRequest", "ProxyEnvelope", "Role"]
