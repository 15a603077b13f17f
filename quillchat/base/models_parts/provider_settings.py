"""
Provider settings read by the completion client.

``ProviderSettings`` holds what one configured provider needs to run a call
(base URL, credential, default model, temperature, optional custom
instructions). ``Settings`` holds the list of providers and which one is
active, and normalizes itself so an active provider always exists.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from ...config.defaults import (
    DEFAULT_MODEL,
    DEFAULT_PROVIDER_ID,
    DEFAULT_PROVIDER_NAME,
    DEFAULT_TEMPERATURE,
)


_CAMEL_TO_SNAKE = {
    "baseUrl": "base_url",
    "apiKey": "api_key",
    "defaultModel": "default_model",
    "customInstructions": "custom_instructions",
}


def _new_provider_id() -> str:
    return f"provider-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class ProviderSettings:
    """One configured OpenAI-compatible provider.

    Attributes:
        id: Stable identifier.
        name: Display name.
        base_url: Provider base URL (without ``/v1/chat/completions``).
        api_key: Bearer credential; empty string when unset.
        default_model: Model used when a request does not name one.
        temperature: Default sampling temperature.
        custom_instructions: Optional system prompt prepended to requests.
    """

    id: str = field(default_factory=_new_provider_id)
    name: str = "New Provider"
    base_url: str = ""
    api_key: str = ""
    default_model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    custom_instructions: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderSettings":
        """Build settings from a (possibly partial, camelCase) mapping."""
        defaults = cls()

        def pick(snake: str, camel: str, default: Any) -> Any:
            if snake in data and data[snake] is not None:
                return data[snake]
            if camel in data and data[camel] is not None:
                return data[camel]
            return default

        temperature = pick("temperature", "temperature", defaults.temperature)
        return cls(
            id=str(pick("id", "id", defaults.id)),
            name=str(pick("name", "name", defaults.name)),
            base_url=str(pick("base_url", "baseUrl", "")),
            api_key=str(pick("api_key", "apiKey", "")),
            default_model=str(pick("default_model", "defaultModel", DEFAULT_MODEL)),
            temperature=float(temperature) if isinstance(temperature, (int, float)) else DEFAULT_TEMPERATURE,
            custom_instructions=str(pick("custom_instructions", "customInstructions", "")),
        )

    def with_updates(self, updates: Dict[str, Any]) -> "ProviderSettings":
        """Return a copy with ``updates`` applied (snake or camelCase keys); ``id`` is kept."""
        merged = self.to_dict()
        for key, value in updates.items():
            merged[_CAMEL_TO_SNAKE.get(key, key)] = value
        merged["id"] = self.id
        return ProviderSettings.from_dict(merged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "base_url": self.base_url,
            "api_key": self.api_key,
            "default_model": self.default_model,
            "temperature": self.temperature,
            "custom_instructions": self.custom_instructions,
        }


def default_provider() -> ProviderSettings:
    return ProviderSettings(id=DEFAULT_PROVIDER_ID, name=DEFAULT_PROVIDER_NAME)


@dataclass(frozen=True)
class Settings:
    """All configured providers plus the active selection."""

    providers: List[ProviderSettings] = field(default_factory=lambda: [default_provider()])
    active_provider_id: str = DEFAULT_PROVIDER_ID

    def normalized(self) -> "Settings":
        """Return settings whose ``active_provider_id`` names an existing provider.

        An empty provider list is replaced by the default provider; an unknown
        active id falls back to the first provider.
        """
        if not self.providers:
            return Settings()
        if any(p.id == self.active_provider_id for p in self.providers):
            return self
        return replace(self, active_provider_id=self.providers[0].id)

    def active(self) -> ProviderSettings:
        """Return the active provider (first provider when the id is unknown)."""
        normalized = self.normalized()
        for provider in normalized.providers:
            if provider.id == normalized.active_provider_id:
                return provider
        return normalized.providers[0]

    def find(self, provider_id: str) -> Optional[ProviderSettings]:
        return next((p for p in self.providers if p.id == provider_id), None)


__all__ = ["ProviderSettings", "Settings", "default_provider"]
