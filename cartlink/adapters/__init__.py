"""Adapter registry and factory.

Adapters are auto-discovered from modules in this package. Any `BaseAdapter`
subclass with a non-empty `name` attribute will be registered under that
retailer key.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from ..errors import ConfigurationError
from .base import BaseAdapter

__all__ = [
    "ADAPTERS",
    "AdapterFactory",
    "BaseAdapter",
    "ConfigCheck",
    "get_adapter_display_name",
    "list_adapters",
]

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = 60


def _discover_adapters() -> dict[str, type[BaseAdapter]]:
    discovered: dict[str, type[BaseAdapter]] = {}

    # Walk sibling modules under this package (cartlink.adapters.*).
    for module_info in pkgutil.iter_modules(__path__):  # type: ignore[name-defined]
        if module_info.ispkg or module_info.name.startswith("_") or module_info.name == "base":
            continue

        module = importlib.import_module(f"{__name__}.{module_info.name}")
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if obj is BaseAdapter or not issubclass(obj, BaseAdapter) or inspect.isabstract(obj):
                continue
            adapter_name = getattr(obj, "name", None)
            if isinstance(adapter_name, str) and adapter_name.strip():
                discovered.setdefault(adapter_name, obj)

    return dict(sorted(discovered.items()))


ADAPTERS: dict[str, type[BaseAdapter]] = _discover_adapters()


def list_adapters() -> list[str]:
    """List all supported retailer keys."""
    return list(ADAPTERS.keys())


def get_adapter_display_name(name: str) -> str:
    """Get a human-friendly display name for a retailer key."""
    cls = ADAPTERS.get(name)
    return getattr(cls, "display_name", name) if cls else name


@dataclass
class ConfigCheck:
    is_valid: bool
    missing_vars: list[str]


class AdapterFactory:
    """Resolves retailer keys to long-lived adapter instances.

    Instances are built lazily on first use and cached for the lifetime of the
    factory; the first successful construction wins. Credentials come from
    ``env`` (``os.environ`` when None) and are bound at construction.
    """

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        adapters: Mapping[str, type[BaseAdapter]] | None = None,
    ):
        self.env = env
        self._transport = transport
        self._registry = dict(adapters if adapters is not None else ADAPTERS)
        self._cache: dict[str, BaseAdapter] = {}

    def get_supported_websites(self) -> list[str]:
        return list(self._registry.keys())

    def is_website_supported(self, website: str) -> bool:
        return website in self._registry

    def get_adapter(self, website: str) -> BaseAdapter:
        """Return the cached adapter for ``website``, building it if needed.

        Raises:
            ConfigurationError: unknown website or the adapter could not be built
        """
        if (adapter := self._cache.get(website)) is not None:
            return adapter

        cls = self._registry.get(website)
        if cls is None:
            raise ConfigurationError(f"Unsupported website: {website}")

        try:
            adapter = cls.from_env(self.env, transport=self._transport)
        except Exception as exc:
            raise ConfigurationError(f"Failed to initialize {website} adapter: {exc}") from exc

        logger.info("Initialized %s adapter", cls.display_name)
        self._cache[website] = adapter
        return adapter

    def validate_website_config(self, website: str) -> ConfigCheck:
        """Report missing required variables without building the adapter."""
        cls = self._registry.get(website)
        if cls is None:
            return ConfigCheck(is_valid=False, missing_vars=[])
        missing = cls.missing_config(self.env)
        return ConfigCheck(is_valid=not missing, missing_vars=missing)

    def get_rate_limit(self, website: str) -> int:
        if (adapter := self._cache.get(website)) is not None:
            return adapter.get_rate_limit()
        cls = self._registry.get(website)
        return getattr(cls, "rate_limit_per_minute", DEFAULT_RATE_LIMIT)

    def clear_cache(self) -> None:
        """Forget cached adapters (test isolation, credential rotation)."""
        self._cache.clear()

    async def aclose(self) -> None:
        """Close every cached adapter's HTTP clients and clear the cache."""
        for adapter in self._cache.values():
            await adapter.aclose()
        self.clear_cache()
