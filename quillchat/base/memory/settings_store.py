"""In-memory implementation of SettingsStore.

Keeps :class:`Settings` normalized after every mutation so an active
provider always exists. :func:`settings_from_env` seeds a store from the
merged client configuration (``QUILLCHAT_*`` environment variables and the
optional config file).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional

from ...config import get_client_config
from ...config.defaults import DEFAULT_PROVIDER_ID, DEFAULT_PROVIDER_NAME
from ..models_parts.provider_settings import ProviderSettings, Settings


class InMemorySettingsStore:
    """Settings held in process memory."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = (settings or Settings()).normalized()

    def get(self) -> Settings:
        return self._settings

    def set(self, settings: Settings) -> Settings:
        self._settings = settings.normalized()
        return self._settings

    def active_provider(self) -> ProviderSettings:
        return self._settings.active()

    def set_active_provider(self, provider_id: str) -> Settings:
        return self.set(replace(self._settings, active_provider_id=provider_id))

    def add_provider(self, **fields: Any) -> ProviderSettings:
        fields.setdefault("name", f"Provider {len(self._settings.providers) + 1}")
        provider = ProviderSettings.from_dict(fields)
        self.set(
            Settings(
                providers=[*self._settings.providers, provider],
                active_provider_id=provider.id,
            )
        )
        return provider

    def update_provider(self, provider_id: str, updates: Dict[str, Any]) -> Settings:
        providers = [
            p.with_updates(updates) if p.id == provider_id else p
            for p in self._settings.providers
        ]
        return self.set(replace(self._settings, providers=providers))

    def remove_provider(self, provider_id: str) -> Settings:
        remaining = [p for p in self._settings.providers if p.id != provider_id]
        if not remaining:
            return self.set(Settings())
        active = self._settings.active_provider_id
        if active == provider_id:
            active = remaining[0].id
        return self.set(Settings(providers=remaining, active_provider_id=active))


def settings_from_env(overrides: Optional[Dict[str, Any]] = None) -> InMemorySettingsStore:
    """Return a store holding one default provider built from configuration."""
    cfg = get_client_config(overrides)
    provider = ProviderSettings.from_dict(
        {
            "id": DEFAULT_PROVIDER_ID,
            "name": DEFAULT_PROVIDER_NAME,
            "base_url": cfg.get("base_url") or "",
            "api_key": cfg.get("api_key") or "",
            "default_model": cfg.get("model"),
            "temperature": cfg.get("temperature"),
        }
    )
    return InMemorySettingsStore(Settings(providers=[provider], active_provider_id=provider.id))


__all__ = ["InMemorySettingsStore", "settings_from_env"]
