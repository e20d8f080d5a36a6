from __future__ import annotations

import os
import re
from enum import StrEnum
from typing import Callable, Final, Optional

from dotenv import load_dotenv

load_dotenv()


class Provider(StrEnum):
    DEEPSEEK = "deepseek"
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    MOONSHOT = "moonshot"


_ENV_VARS: Final[dict[Provider, str]] = {
    Provider.DEEPSEEK: "DEEPSEEK_API_KEY",
    Provider.OPENROUTER: "OPENROUTER_API_KEY",
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.MOONSHOT: "MOONSHOT_API_KEY",
}

BASE_URLS: Final[dict[Provider, str]] = {
    Provider.DEEPSEEK: "https://api.deepseek.com",
    Provider.OPENROUTER: "https://openrouter.ai/api/v1",
    Provider.OPENAI: "https://api.openai.com/v1",
    Provider.MOONSHOT: "https://api.moonshot.cn/v1",
}

# Order in which environment credentials are picked up; the first one found
# becomes the default provider.
ENV_PRIORITY: Final[tuple[Provider, ...]] = (
    Provider.DEEPSEEK,
    Provider.OPENROUTER,
    Provider.OPENAI,
    Provider.MOONSHOT,
)

_O_SERIES = re.compile(r"^o\d")

# Evaluated top to bottom; the first matching predicate names the provider.
MODEL_RULES: Final[tuple[tuple[Callable[[str], bool], Provider], ...]] = (
    (lambda model: model.startswith("deepseek"), Provider.DEEPSEEK),
    (lambda model: "/" in model, Provider.OPENROUTER),
    (lambda model: model.startswith("gpt-") or bool(_O_SERIES.match(model)), Provider.OPENAI),
    (lambda model: model.startswith(("moonshot-", "kimi-")), Provider.MOONSHOT),
)


def infer_provider(model: str) -> Optional[Provider]:
    """Return the provider implied by *model*'s name, or None."""
    for predicate, provider in MODEL_RULES:
        if predicate(model):
            return provider
    return None


def default_headers(provider: Provider) -> dict[str, str]:
    """Extra HTTP headers a provider expects on every request."""
    if provider is Provider.OPENROUTER:
        return {
            "HTTP-Referer": os.environ.get("APP_URL", "http://localhost:3000"),
            "X-Title": "LeoChat",
        }
    return {}


def get_api_key(provider: Provider) -> str:
    """Return the API key for *provider* or raise RuntimeError."""
    try:
        env_var = _ENV_VARS[provider]
    except KeyError:
        raise RuntimeError(f"No config for {provider!s}") from None

    try:
        return os.environ[env_var]
    except KeyError as exc:
        raise RuntimeError(f"{env_var} missing") from exc


def find_api_key(provider: Provider) -> Optional[str]:
    """Like :func:`get_api_key` but returns None for a missing or empty key."""
    return os.environ.get(_ENV_VARS[provider]) or None


__all__ = [
    "Provider",
    "BASE_URLS",
    "ENV_PRIORITY",
    "MODEL_RULES",
    "infer_provider",
    "default_headers",
    "get_api_key",
    "find_api_key",
]
