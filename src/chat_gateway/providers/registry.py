"""Bindings from provider identity to a live, authenticated upstream client."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Union

from openai import AsyncOpenAI

from chat_gateway._exceptions import NoProviderConfigured
from chat_gateway.providers import (
    BASE_URLS,
    ENV_PRIORITY,
    Provider,
    default_headers,
    find_api_key,
    infer_provider,
)

__all__ = ["ProviderBinding", "ProviderRegistry"]


@dataclass(frozen=True, slots=True)
class ProviderBinding:
    """An authenticated handle on one provider. Replaced, never mutated."""
    provider: Provider
    client: AsyncOpenAI
    base_url: Optional[str] = None


class ProviderRegistry:
    """
    Holds at most one binding per provider and picks one for each request.

    The first binding ever installed becomes the default. When the requested or
    inferred provider has no binding, resolution falls back to the default;
    pass ``fallback_to_default=False`` to turn that into an error instead.
    """

    def __init__(
        self,
        *,
        fallback_to_default: bool = True,
        timeout: float = 60.0,
        max_retries: int = 2,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.fallback_to_default = fallback_to_default
        self.timeout = timeout
        self.max_retries = max_retries
        self.logger = logger or logging.getLogger(__name__)
        self.name = name if name is not None else self.__class__.__name__
        self._lock = threading.Lock()
        self._bindings: Mapping[Provider, ProviderBinding] = MappingProxyType({})
        self._default: Optional[Provider] = None

    # Alternate constructor
    @classmethod
    def from_env(cls, **kwargs: object) -> "ProviderRegistry":
        """
        Build a registry from ``*_API_KEY`` environment variables.

        Providers are installed in ``ENV_PRIORITY`` order, so the first key
        found picks the default provider.
        """
        registry = cls(**kwargs)  # type: ignore[arg-type]
        for provider in ENV_PRIORITY:
            key = find_api_key(provider)
            if key:
                registry.configure(provider, key)
        if registry.default is None:
            registry._log("No provider API key found in environment", logging.WARNING)
        else:
            registry._log(f"Default provider: {registry.default}")
        return registry

    @property
    def default(self) -> Optional[Provider]:
        return self._default

    def configure(
        self,
        provider: Union[Provider, str],
        credential: Optional[str] = None,
        *,
        client: Optional[AsyncOpenAI] = None,
        base_url: Optional[str] = None,
    ) -> ProviderBinding:
        """
        Install or replace the binding for *provider*.

        Args:
            provider: Provider identity.
            credential: API key. Not validated here; a bad key fails on first use.
            client: Optional pre-configured ``AsyncOpenAI`` used verbatim instead
                of building one from *credential*.
            base_url: Overrides the provider's standard endpoint.
        """
        provider = Provider(provider)
        if client is None:
            if not credential:
                raise ValueError(f"An API key is required to configure {provider!s}")
            url = base_url or BASE_URLS[provider]
            client = AsyncOpenAI(
                api_key=credential,
                base_url=url,
                timeout=self.timeout,
                max_retries=self.max_retries,
                default_headers=default_headers(provider) or None,
            )
        else:
            url = base_url or getattr(client, "base_url", None)
            url = str(url) if url is not None else None

        binding = ProviderBinding(provider=provider, client=client, base_url=url)
        with self._lock:
            # Swap in a fresh mapping so readers see the old one or the new one.
            self._bindings = MappingProxyType({**self._bindings, provider: binding})
            if self._default is None:
                self._default = provider
        self._log(f"{provider} client configured")
        return binding

    def resolve(
        self,
        provider: Union[Provider, str, None] = None,
        model: Optional[str] = None,
    ) -> ProviderBinding:
        """
        Pick the binding for a request.

        An explicit, bound *provider* wins; otherwise the provider is inferred
        from *model*; otherwise the default is used.

        Raises:
            NoProviderConfigured: Nothing is bound, or (with fallback disabled)
                the wanted provider is not bound.
        """
        bindings = self._bindings
        default = self._default

        wanted: Union[Provider, str, None] = None
        if provider:
            try:
                wanted = Provider(provider)
            except ValueError:
                # Unknown ids are treated like a provider that is not bound.
                wanted = str(provider)
        if wanted is not None and wanted in bindings:
            return bindings[wanted]

        if model:
            inferred = infer_provider(model)
            if inferred is not None:
                if inferred in bindings:
                    return bindings[inferred]
                wanted = wanted or inferred

        if wanted is not None and not self.fallback_to_default:
            raise NoProviderConfigured(f"Provider {wanted!s} is not configured")

        if default is None or default not in bindings:
            raise NoProviderConfigured(
                "No LLM API key configured. Please set DEEPSEEK_API_KEY, "
                "OPENROUTER_API_KEY, OPENAI_API_KEY or MOONSHOT_API_KEY"
            )
        if wanted is not None:
            self._log(f"{wanted} is not configured, falling back to {default}", logging.DEBUG)
        return bindings[default]

    def list_available(self) -> list[Provider]:
        """Currently bound providers, in installation order."""
        return list(self._bindings)

    async def aclose(self) -> None:
        """Close every bound client. Safe to call multiple times."""
        for binding in list(self._bindings.values()):
            close = getattr(binding.client, "close", None)
            if close:
                await close()

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")
