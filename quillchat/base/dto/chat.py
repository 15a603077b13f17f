"""
Pydantic DTOs for OpenAI-compatible chat completion requests.

Purpose
-------
Define the request shape the completion client serializes and the envelope
it wraps that request in for proxy mode.

External dependencies: Pydantic only (no network calls).

Design
------
- ``CompletionRequest`` allows unknown fields so provider-specific knobs
  (``top_p``, ``stop``...) pass through untouched.
- Non-empty ``messages`` is deliberately not enforced here; callers own that.
- ``stream`` is forced to ``True`` by :meth:`CompletionRequest.to_payload`
  regardless of what the caller set.
- ``ProxyEnvelope`` serializes with camelCase keys (``baseUrl``, ``apiKey``)
  because that is the relay's wire format.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """One chat message: a role and its text content."""

    role: Role
    content: str


class CompletionRequest(BaseModel):
    """Chat completion request sent to the provider.

    Parameters:
        model: Target model identifier.
        messages: Ordered conversation messages.
        temperature: Optional sampling temperature.
        max_tokens: Optional completion token cap.
        stream: Ignored on input; always transmitted as ``True``.
    """

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    model: str
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: bool = True

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body to transmit, with ``stream`` forced true."""
        payload = self.model_dump(exclude_none=True)
        payload["stream"] = True
        return payload


class ProxyEnvelope(BaseModel):
    """Wire message posted to the relay in proxy mode.

    The credential travels in the body; no Authorization header is sent to
    the relay itself.
    """

    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field(alias="baseUrl", min_length=1)
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    request: CompletionRequest

    def to_payload(self) -> Dict[str, Any]:
        """Return the camelCase JSON body with the inner ``stream`` forced true."""
        body: Dict[str, Any] = {"baseUrl": self.base_url, "request": self.request.to_payload()}
        if self.api_key:
            body["apiKey"] = self.api_key
        return body


__all__ = ["Role", "ChatMessage", "CompletionRequest", "ProxyEnvelope"]
