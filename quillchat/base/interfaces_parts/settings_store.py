"""SettingsStore Protocol (single-class module).

Read-mostly source of the active provider's base URL, credential, default
model, and temperature. The completion client only reads from it.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable

from ..models_parts.provider_settings import ProviderSettings, Settings


@runtime_checkable
class SettingsStore(Protocol):
    """Interface for provider settings persistence."""

    def get(self) -> Settings:  # pragma: no cover - interface
        """Return the current (normalized) settings."""
        ...

    def set(self, settings: Settings) -> Settings:  # pragma: no cover - interface
        """Replace the settings, normalize, persist, and return them."""
        ...

    def active_provider(self) -> ProviderSettings:  # pragma: no cover - interface
        """Return the active provider."""
        ...

    def set_active_provider(self, provider_id: str) -> Settings:  # pragma: no cover - interface
        ...

    def add_provider(self, **fields: Any) -> ProviderSettings:  # pragma: no cover - interface
        """Append a provider and make it active."""
        ...

    def update_provider(self, provider_id: str, updates: Dict[str, Any]) -> Settings:  # pragma: no cover - interface
        ...

    def remove_provider(self, provider_id: str) -> Settings:  # pragma: no cover - interface
        """Remove a provider; removing the last one restores the default."""
        ...


__all__ = ["SettingsStore"]
